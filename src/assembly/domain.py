"""Domain models used throughout the framework."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ProducerSpec:
    """Registration-time record of a producer's declaration.

    Attributes:
        name: The provided name under which the producer's artifact is stored.
        producer_type: The registered :class:`~assembly.producer.Producer` subclass.
        required: Names of dependencies the producer cannot build without, in declaration order.
        optional: Names of dependencies the producer can do without, in declaration order.
        index: Position of the producer in registration order, used to break ordering ties.
    """

    name: str
    producer_type: type
    required: tuple[str, ...]
    optional: tuple[str, ...]
    index: int

    @property
    def dependencies(self) -> tuple[str, ...]:
        """Required then optional dependency names."""
        return self.required + self.optional

    @property
    def type_name(self) -> str:
        return self.producer_type.__name__


class ContainerState(Enum):
    """Lifecycle of a :class:`~assembly.container.Container`.

    ``BUILT`` and ``FAILED`` are both terminal: once a build has been attempted
    the container accepts neither registrations nor another build.
    """

    CREATED = "created"
    BUILT = "built"
    FAILED = "failed"
