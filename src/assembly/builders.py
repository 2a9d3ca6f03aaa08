"""High level entry point for building a container in one call."""

from typing import Any, Iterable, Mapping, Optional

from assembly.container import Container
from assembly.registry import ProducerRegistry

__all__ = ["make_container"]


def make_container(
    producers: Iterable[type] = (),
    context: Any = None,
    configuration: Optional[Mapping[str, Any]] = None,
    registry: Optional[ProducerRegistry] = None,
    require_optional: bool = False,
) -> Container:
    """Construct and return a fully built :class:`Container`.

    Args:
        producers: Producer types to register, in addition to any already in ``registry``.
        context: Opaque application context handed to every producer.
        configuration: Raw configuration keyed by provided name.
        registry: An optional registry to build from. A fresh one is used if omitted.
        require_optional: If True, every optional dependency must have a registered producer.

    Returns:
        The built container.

    Raises:
        DependencyError: If dependencies are unknown, cyclic, missing or misconfigured.

    Example:
        >>> container = make_container(
        ...     [LoggerProducer, TimingProducer],
        ...     context=AppContext(name="shop", env="test"),
        ...     configuration={"logger": {"enabled": True}, "timing": {"enabled": True}},
        ... )
        >>> container["timing"]
    """
    container = Container(
        context=context,
        configuration=configuration,
        producers=producers,
        registry=registry,
        require_optional=require_optional,
    )
    container.build()
    return container
