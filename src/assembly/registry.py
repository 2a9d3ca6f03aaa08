"""Registration and lookup of producer types."""

import inspect
import logging
import re
from typing import Callable, Iterator, Optional, Sequence

from assembly.domain import ProducerSpec
from assembly.errors import (
    DependencyError,
    DuplicateProducerError,
    ProducerDefinitionError,
    RegistrationAfterBuildError,
    UnknownProducerError,
)
from assembly.producer import Producer

__all__ = ["ProducerRegistry", "ProducerSpec", "is_valid_name"]

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")


def is_valid_name(name) -> bool:
    """Check whether ``name`` can be used as a provided or dependency name.

    Example:
        >>> is_valid_name("hype_person")   # True
        >>> is_valid_name("feature-flags") # True
        >>> is_valid_name("2fast")         # False
        >>> is_valid_name("")              # False
    """
    return isinstance(name, str) and _NAME_PATTERN.fullmatch(name) is not None


class ProducerRegistry:
    """An explicit, host-owned set of producer types keyed by provided name.

    Registration order is preserved and used to break ties when ordering the
    build, so identical registration sequences always build in the same order.
    The registry is closed by the container when a build starts.

    Example:
        >>> registry = ProducerRegistry()
        >>>
        >>> @registry.producer()
        >>> class LoggerProducer(Producer):
        ...     provides = "logger"
        ...
        ...     def build(self):
        ...         return logging.getLogger("app")
        >>>
        >>> registry.get("logger")  # LoggerProducer
    """

    def __init__(self, producers: Sequence[type] = ()):
        self._specs: dict[str, ProducerSpec] = {}
        self._closed = False
        for producer_type in producers:
            self.register(producer_type)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        """Refuse any further registrations."""
        self._closed = True

    def register(self, producer_type: type) -> ProducerSpec:
        """Register a producer type explicitly.

        Args:
            producer_type: A :class:`Producer` subclass declaring ``provides``,
                and optionally ``requires`` and ``optional``.

        Returns:
            The :class:`ProducerSpec` recorded for the producer.

        Raises:
            RegistrationAfterBuildError: If the registry has been closed by a build.
            ProducerDefinitionError: If the declaration is malformed.
            DuplicateProducerError: If another producer already provides the same name.
        """
        if self._closed:
            raise RegistrationAfterBuildError(_describe(producer_type))

        spec = _make_spec(producer_type, len(self._specs))
        existing = self._specs.get(spec.name)
        if existing is not None:
            raise DuplicateProducerError(spec.name, existing.type_name, spec.type_name)

        self._specs[spec.name] = spec
        logger.debug(
            "Registered %s providing '%s' (requires %s, optional %s)",
            spec.type_name, spec.name, list(spec.required), list(spec.optional),
        )
        return spec

    def producer(
        self,
        provides: Optional[str] = None,
        requires: Optional[Sequence[str]] = None,
        optional: Optional[Sequence[str]] = None,
    ) -> Callable:
        """Decorator to register a class as a producer.

        Args:
            provides: Optional provided name, overriding the class attribute.
            requires: Optional required dependency names, overriding the class attribute.
            optional: Optional optional dependency names, overriding the class attribute.

        Returns:
            A decorator that registers the class and returns it unchanged.

        Example:
            @registry.producer(provides="flags", requires=["logger", "timing"])
            class FlagsProducer(Producer):
                ...
        """
        overrides = {
            attribute: value
            for attribute, value in (("provides", provides), ("requires", requires), ("optional", optional))
            if value is not None
        }

        def decorator(cls):
            previous = {
                attribute: cls.__dict__[attribute] for attribute in overrides if attribute in cls.__dict__
            }
            for attribute, value in overrides.items():
                setattr(cls, attribute, value)
            try:
                self.register(cls)
            except DependencyError:
                for attribute in overrides:
                    if attribute in previous:
                        setattr(cls, attribute, previous[attribute])
                    else:
                        delattr(cls, attribute)
                raise
            return cls

        return decorator

    def registered_producers(self) -> list[ProducerSpec]:
        """All registered producers, in registration order."""
        return list(self._specs.values())

    def spec_for(self, name: str) -> ProducerSpec:
        """Look up the registration record of the producer providing ``name``.

        Raises:
            UnknownProducerError: If no producer provides ``name``.
        """
        try:
            return self._specs[name]
        except KeyError:
            raise UnknownProducerError(name) from None

    def get(self, name: str) -> type:
        """Look up the producer type providing ``name``.

        Raises:
            UnknownProducerError: If no producer provides ``name``.
        """
        return self.spec_for(name).producer_type

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ProducerSpec]:
        return iter(self.registered_producers())

    def __len__(self) -> int:
        return len(self._specs)


def _describe(producer_type) -> str:
    return getattr(producer_type, "__name__", repr(producer_type))


def _make_spec(producer_type, index: int) -> ProducerSpec:
    """Validate a producer declaration and record it as a ProducerSpec.

    Names are checked once here so a malformed declaration fails at
    registration rather than surfacing as a confusing lookup error mid-build.
    """
    type_name = _describe(producer_type)
    if not (inspect.isclass(producer_type) and issubclass(producer_type, Producer)):
        raise ProducerDefinitionError(type_name, "producers must subclass Producer")

    name = producer_type.provided_name()
    if name is None:
        raise ProducerDefinitionError(type_name, "no provided name is declared")
    if not is_valid_name(name):
        raise ProducerDefinitionError(type_name, _malformed(name))

    for attribute in ("requires", "optional"):
        declared = getattr(producer_type, attribute)
        if not isinstance(declared, (tuple, list)):
            raise ProducerDefinitionError(
                type_name,
                f"'{attribute}' must be a tuple or list of names, not {declared!r}",
            )

    required = _checked_names(type_name, "requires", producer_type.required_dependency_names())
    optional = _checked_names(type_name, "optional", producer_type.optional_dependency_names())

    overlap = [n for n in required if n in optional]
    if overlap:
        raise ProducerDefinitionError(
            type_name,
            f"dependencies {', '.join(overlap)} are declared both required and optional",
        )

    return ProducerSpec(name, producer_type, required, optional, index)


def _checked_names(type_name: str, attribute: str, names: tuple[str, ...]) -> tuple[str, ...]:
    for name in names:
        if not is_valid_name(name):
            raise ProducerDefinitionError(type_name, f"'{attribute}' has {_malformed(name)}")

    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ProducerDefinitionError(
            type_name, f"'{attribute}' lists {', '.join(duplicates)} more than once"
        )
    return names


def _malformed(name) -> str:
    return (
        f"malformed name {name!r}: names must start with a letter or underscore "
        "and contain only letters, digits, '_', '.' or '-'"
    )
