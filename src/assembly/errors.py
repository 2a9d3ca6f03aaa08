"""Exceptions raised while registering producers and building a container.

Every exception derives from :class:`DependencyError`, so hosts that only care
whether a container could be assembled can catch that single type.
"""

from typing import Iterable, Optional

__all__ = [
    "DependencyError",
    "ProducerDefinitionError",
    "DuplicateProducerError",
    "UnknownProducerError",
    "CyclicDependencyError",
    "MissingDependencyError",
    "DuplicateBuildError",
    "RegistrationAfterBuildError",
    "IncompleteBuildError",
    "ConfigurationValidationError",
    "AbstractMethodError",
]


class DependencyError(Exception):
    """Raised when a producer's dependency cannot be resolved or is misdeclared."""

    pass


class ProducerDefinitionError(DependencyError):
    """Raised at registration when a producer type declares itself incorrectly."""

    def __init__(self, producer: str, message: str):
        super().__init__(f"Producer {producer} is misdeclared: {message}")
        self.producer = producer


class DuplicateProducerError(ProducerDefinitionError):
    """Raised when two registered producers share a provided name."""

    def __init__(self, name: str, existing: str, duplicate: str):
        super().__init__(
            duplicate,
            f"provided name '{name}' is already provided by {existing}",
        )
        self.name = name


class UnknownProducerError(DependencyError):
    def __init__(self, name: str, requested_by: Optional[str] = None, reason: Optional[str] = None):
        if reason is None:
            reason = "no producer is registered under this name. Did you remember to register it?"
        subject = f"Unknown producer '{name}'"
        if requested_by is not None:
            subject += f" requested by '{requested_by}'"
        super().__init__(f"{subject}: {reason}")
        self.name = name
        self.requested_by = requested_by


class CyclicDependencyError(DependencyError):
    """Raised when the dependency graph contains a cycle.

    Attributes:
        cycle: Provided names along one offending cycle, first name repeated last.
    """

    def __init__(self, cycle: Iterable[str]):
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency between producers: {' -> '.join(self.cycle)}")


class MissingDependencyError(DependencyError):
    def __init__(self, producer: str, missing: Iterable[str]):
        self.producer = producer
        self.missing = list(missing)
        super().__init__(
            f"Dependencies for `{producer}` are not present: {', '.join(self.missing)}"
        )


class DuplicateBuildError(DependencyError):
    def __init__(self):
        super().__init__("Cannot build a container more than once")


class RegistrationAfterBuildError(DependencyError):
    def __init__(self, producer: str):
        super().__init__(f"Cannot register {producer} after the container has been built")
        self.producer = producer


class IncompleteBuildError(DependencyError):
    """Raised when artifacts are requested from a container without a completed build."""

    pass


class ConfigurationValidationError(DependencyError):
    def __init__(self, producer: str, errors: Iterable[str]):
        self.producer = producer
        self.errors = list(errors)
        super().__init__(
            f"Configuration for `{producer}` is invalid: {', '.join(self.errors)}"
        )


class AbstractMethodError(DependencyError, NotImplementedError):
    def __init__(self, producer: str, method: str):
        super().__init__(f"{producer} must override {method}()")
        self.producer = producer
        self.method = method
