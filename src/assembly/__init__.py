"""Assembly dependency injection container.

Assembly builds the long-lived collaborators of an application (loggers,
feature flags, clients) from declarative producers. Each producer states the
name of the artifact it builds and the names of the artifacts it needs; the
container orders them topologically, builds each exactly once, and hands the
host a read-only map of the results.

Key Features:
    - Statically declared dependencies, checked at registration time
    - Deterministic build order with cycle detection
    - Required and optional dependencies, with per-producer enablement
    - Default configuration deep-merged with host configuration
    - Optional configuration validation through pydantic models
    - Explicit registries, no global state

Basic Usage:
    >>> from assembly import Producer, make_container
    >>>
    >>> class LoggerProducer(Producer):
    ...     provides = "logger"
    ...
    ...     def enabled(self):
    ...         return True
    ...
    ...     def build(self):
    ...         return logging.getLogger("app")
    >>>
    >>> container = make_container([LoggerProducer])
    >>> logger = container["logger"]

The framework consists of several core modules:
    - producer: The producer contract and configuration merging
    - registry: Producer registration and declaration checks
    - graph: Dependency graph and topological ordering
    - resolver: Per-producer dependency resolution
    - container: Build orchestration and artifact access
    - builders: One-call container construction
    - validation: Configuration validation collaborators
    - errors: Framework-specific exceptions
"""

from assembly.builders import make_container
from assembly.container import Container
from assembly.domain import ContainerState, ProducerSpec
from assembly.errors import (
    AbstractMethodError,
    ConfigurationValidationError,
    CyclicDependencyError,
    DependencyError,
    DuplicateBuildError,
    DuplicateProducerError,
    IncompleteBuildError,
    MissingDependencyError,
    ProducerDefinitionError,
    RegistrationAfterBuildError,
    UnknownProducerError,
)
from assembly.graph import DependencyGraph
from assembly.producer import Producer
from assembly.registry import ProducerRegistry
from assembly.resolver import resolve
from assembly.validation import ConfigurationValidator, SchemaValidator, ValidationResult

__all__ = [
    "AbstractMethodError",
    "ConfigurationValidationError",
    "ConfigurationValidator",
    "Container",
    "ContainerState",
    "CyclicDependencyError",
    "DependencyError",
    "DependencyGraph",
    "DuplicateBuildError",
    "DuplicateProducerError",
    "IncompleteBuildError",
    "MissingDependencyError",
    "Producer",
    "ProducerDefinitionError",
    "ProducerRegistry",
    "ProducerSpec",
    "RegistrationAfterBuildError",
    "SchemaValidator",
    "UnknownProducerError",
    "ValidationResult",
    "make_container",
    "resolve",
]
