"""
Orchestrates a single build of every registered producer.

A :class:`Container` owns a :class:`~assembly.registry.ProducerRegistry`, the
host's raw configuration and an opaque context. Building it computes the
dependency graph, orders producers topologically, and runs each producer in
turn, resolving its dependencies from the artifacts built before it.

A container builds exactly once. It leaves the ``CREATED`` state as soon as
:meth:`Container.build` is entered, so a failed build cannot be retried; the
host constructs a fresh container instead.
"""

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from assembly.domain import ContainerState, ProducerSpec
from assembly.errors import (
    DuplicateBuildError,
    IncompleteBuildError,
    RegistrationAfterBuildError,
    UnknownProducerError,
)
from assembly.graph import DependencyGraph
from assembly.registry import ProducerRegistry
from assembly.resolver import resolve

__all__ = ["Container"]

logger = logging.getLogger(__name__)


class Container:
    """
    A container of artifacts, built from a registry of producers.

    Artifacts are stored under their producer's provided name. Disabled
    producers are recorded with ``None``: :meth:`to_map` includes those
    entries, while :meth:`fetch` refuses them.

    Example:
        >>> container = Container(
        ...     context=AppContext(name="shop", env="test"),
        ...     configuration={"logger": {"enabled": True, "level": "INFO"}},
        ...     producers=[LoggerProducer, TimingProducer],
        ... )
        >>> container.build()
        >>> container.fetch("logger")
    """

    def __init__(
        self,
        context: Any = None,
        configuration: Optional[Mapping[str, Any]] = None,
        producers: Iterable[type] = (),
        registry: Optional[ProducerRegistry] = None,
        require_optional: bool = False,
    ):
        self._context = context
        self._configuration = configuration if configuration is not None else {}
        self._registry = registry if registry is not None else ProducerRegistry()
        self._require_optional = require_optional
        self._state = ContainerState.CREATED
        self._artifacts: dict[str, Any] = {}
        self._build_order: Optional[list[str]] = None

        for producer_type in producers:
            self.register(producer_type)

    @property
    def state(self) -> ContainerState:
        return self._state

    @property
    def is_built(self) -> bool:
        """True once a build has been attempted, whether or not it succeeded."""
        return self._state is not ContainerState.CREATED

    @property
    def registry(self) -> ProducerRegistry:
        return self._registry

    @property
    def context(self) -> Any:
        return self._context

    def register(self, producer_type: type) -> list[type]:
        """Register another producer before the container is built.

        Returns:
            Every registered producer type, in registration order.

        Raises:
            RegistrationAfterBuildError: If a build has already been attempted.
        """
        if self.is_built:
            raise RegistrationAfterBuildError(getattr(producer_type, "__name__", repr(producer_type)))
        self._registry.register(producer_type)
        return [spec.producer_type for spec in self._registry.registered_producers()]

    def dependency_graph(self) -> DependencyGraph:
        """The dependency graph of the currently registered producers."""
        return DependencyGraph.from_registry(self._registry, self._require_optional)

    def build_order(self) -> list[str]:
        """Provided names in the order they are (or would be) built."""
        if self._build_order is not None:
            return list(self._build_order)
        return self.dependency_graph().topological_order()

    def build(self) -> Mapping[str, Any]:
        """Build every registered producer in dependency order.

        Returns:
            A read-only view of the artifact map, see :meth:`to_map`.

        Raises:
            DuplicateBuildError: If a build has already been attempted.
            UnknownProducerError: If a declared dependency has no producer.
            CyclicDependencyError: If producers depend on each other in a cycle.
            MissingDependencyError: If a required dependency is disabled or built falsy.
            ConfigurationValidationError: If an enabled producer's configuration is invalid.
        """
        if self.is_built:
            raise DuplicateBuildError()

        self._state = ContainerState.FAILED
        self._registry.close()

        graph = self.dependency_graph()
        self._build_order = graph.topological_order()
        logger.info("Building %d producers in order: %s", len(self._build_order), self._build_order)

        for name in self._build_order:
            spec = self._registry.spec_for(name)
            try:
                self._artifacts[name] = self._build_one(spec)
            except Exception:
                logger.warning("Build failed at producer '%s' (%s)", name, spec.type_name)
                raise

        self._state = ContainerState.BUILT
        logger.info(
            "Built %d of %d producers",
            sum(1 for artifact in self._artifacts.values() if artifact is not None),
            len(self._artifacts),
        )
        return self.to_map()

    def _build_one(self, spec: ProducerSpec) -> Any:
        dependencies = resolve(spec, self._artifacts)
        producer = spec.producer_type(
            self._context, self._configuration.get(spec.name, {}), dependencies
        )

        if not producer.enabled():
            logger.debug("Producer '%s' is disabled", spec.name)
            return None

        producer.ensure_valid()
        if producer.defines_load_requirements():
            producer.load_requirements()

        logger.debug("Building '%s' with %s", spec.name, list(dependencies))
        return producer.build()

    def fetch(self, name: str) -> Any:
        """Fetch a built artifact by provided name.

        Raises:
            IncompleteBuildError: If the container has not been built successfully.
            UnknownProducerError: If no producer provides ``name``, or its producer was disabled.
        """
        self._ensure_built()
        if name not in self._artifacts:
            raise UnknownProducerError(name)
        artifact = self._artifacts[name]
        if artifact is None:
            raise UnknownProducerError(
                name, reason="the producer built no artifact (disabled or returned None)"
            )
        return artifact

    def to_map(self) -> Mapping[str, Any]:
        """A read-only view of every artifact, with ``None`` for disabled producers.

        Raises:
            IncompleteBuildError: If the container has not been built successfully.
        """
        self._ensure_built()
        return MappingProxyType(self._artifacts)

    def _ensure_built(self):
        if self._state is ContainerState.CREATED:
            raise IncompleteBuildError("Container has not been built yet")
        if self._state is ContainerState.FAILED:
            raise IncompleteBuildError(
                "Container build failed; construct a new container to build again"
            )

    def __getitem__(self, name: str) -> Any:
        return self.fetch(name)

    def __contains__(self, name: str) -> bool:
        return self._state is ContainerState.BUILT and self._artifacts.get(name) is not None
