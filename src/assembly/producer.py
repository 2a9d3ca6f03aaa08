"""The producer contract.

A producer is a class that knows how to build one named artifact. Everything
the container needs to know about it is declared statically as class
attributes, so the dependency graph can be computed before any producer is
instantiated:

    >>> class TimingProducer(Producer):
    ...     provides = "timing"
    ...     requires = ("logger",)
    ...     optional = ("hype_person",)
    ...
    ...     def enabled(self) -> bool:
    ...         return self.configuration().get("enabled") is True
    ...
    ...     def build(self) -> Timing:
    ...         return Timing(self.dependencies["logger"])

Producer authors should note that the container treats a *falsy* artifact the
same as a missing one when it is a required dependency of another producer. A
producer whose ``build()`` returns ``0``, ``""`` or an empty collection will
therefore fail every producer that requires it.
"""

import copy
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, ClassVar, Optional

from assembly.errors import AbstractMethodError, ConfigurationValidationError
from assembly.validation import ConfigurationValidator, ValidationResult

__all__ = ["Producer", "deep_merge"]

_UNSET = object()


class Producer:
    """Base class for every buildable unit.

    Class attributes:
        provides: The provided name of the artifact this producer builds.
        requires: Names of artifacts that must be present and truthy before this producer builds.
        optional: Names of artifacts this producer uses when available; absent ones arrive as None.
        default_configuration: Defaults the raw configuration slice is merged over.
        validator: Optional collaborator used by :meth:`validate`.
    """

    provides: ClassVar[Optional[str]] = None
    requires: ClassVar[tuple[str, ...]] = ()
    optional: ClassVar[tuple[str, ...]] = ()
    default_configuration: ClassVar[Mapping[str, Any]] = MappingProxyType({})
    validator: ClassVar[Optional[ConfigurationValidator]] = None

    def __init__(self, context: Any, config: Any, dependencies: Mapping[str, Any]):
        self.context = context
        self.raw_config = config
        self.dependencies = MappingProxyType(dict(dependencies))
        self._configuration = _UNSET

    @classmethod
    def provided_name(cls) -> Optional[str]:
        return cls.provides

    @classmethod
    def required_dependency_names(cls) -> tuple[str, ...]:
        return tuple(cls.requires)

    @classmethod
    def optional_dependency_names(cls) -> tuple[str, ...]:
        return tuple(cls.optional)

    @classmethod
    def dependency_names(cls) -> tuple[str, ...]:
        return cls.required_dependency_names() + cls.optional_dependency_names()

    @classmethod
    def defines_load_requirements(cls) -> bool:
        return cls.load_requirements is not Producer.load_requirements

    def enabled(self) -> bool:
        """Whether the container should build this producer. Disabled by default."""
        return False

    def configuration(self) -> Any:
        """The raw configuration slice merged over :attr:`default_configuration`.

        Raw values win over defaults at every nested key. A raw slice that is
        not a mapping is returned as-is. The result is computed once per instance.
        """
        if self._configuration is _UNSET:
            self._configuration = self._merge_configuration()
        return self._configuration

    def _merge_configuration(self) -> Any:
        defaults = self.default_configuration
        if self.raw_config is None:
            return deep_merge(defaults, {})
        if not isinstance(self.raw_config, Mapping):
            return self.raw_config
        return deep_merge(defaults, self.raw_config)

    def validate(self) -> ValidationResult:
        if self.validator is None:
            return ValidationResult.ok(self.configuration())
        return self.validator.validate(self.configuration())

    def ensure_valid(self) -> ValidationResult:
        """Validate the configuration, raising if it is invalid.

        Raises:
            ConfigurationValidationError: Naming this producer and every validation error.
        """
        result = self.validate()
        if not result.success:
            raise ConfigurationValidationError(self.provided_name(), result.errors)
        return result

    def load_requirements(self) -> None:
        """Load any external capability the artifact needs.

        The container calls this once, before :meth:`build`, only on producers
        that override it.
        """
        raise AbstractMethodError(type(self).__name__, "load_requirements")

    def build(self) -> Any:
        raise AbstractMethodError(type(self).__name__, "build")

    def __repr__(self):
        return f"<{type(self).__name__} provides={self.provided_name()!r}>"


def deep_merge(defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``overrides`` into a copy of ``defaults``, recursing into nested mappings.

    Example:
        >>> deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}})
        {'a': {'x': 1, 'y': 3}, 'b': 1}
    """
    merged = {
        key: deep_merge(value, {}) if isinstance(value, Mapping) else copy.deepcopy(value)
        for key, value in defaults.items()
    }
    for key, value in overrides.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(existing, value)
        else:
            merged[key] = value
    return merged
