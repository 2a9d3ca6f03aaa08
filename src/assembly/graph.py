"""The dependency graph between producers.

Each node is a provided name; each edge points from a producer to a producer
whose artifact it declares as a dependency. The graph is built once from a
:class:`~assembly.registry.ProducerRegistry` and traversed in topological order
to decide the order in which the container builds producers.
"""

import heapq
import logging
from collections import defaultdict
from typing import Iterator, Mapping, Sequence

from assembly.errors import CyclicDependencyError, UnknownProducerError
from assembly.registry import ProducerRegistry

__all__ = ["DependencyGraph"]

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    A directed graph mapping each provided name to the names it depends on.

    Node insertion order is the tie-break for traversal: whenever several
    producers are ready to build, the one inserted first goes first.
    """

    def __init__(self, dependencies: Mapping[str, Sequence[str]]):
        self._dependencies: dict[str, list[str]] = {
            name: list(names) for name, names in dependencies.items()
        }
        self._index = {name: i for i, name in enumerate(self._dependencies)}
        for dependee, names in self._dependencies.items():
            for name in names:
                if name not in self._dependencies:
                    raise UnknownProducerError(name, requested_by=dependee)

    @classmethod
    def from_registry(
        cls, registry: ProducerRegistry, require_optional: bool = False
    ) -> "DependencyGraph":
        """
        Construct a graph where each registered producer maps to the producers it depends on.

        Args:
            registry: Registry holding the producers, in registration order.
            require_optional: If True, optional dependencies must also be provided by a
                registered producer. If False (default), optional dependencies with no
                producer are left out of the graph and later resolve to None.

        Raises:
            UnknownProducerError: If a dependency cannot be matched to a registered producer.
        """
        dependencies: dict[str, list[str]] = {}

        for spec in registry.registered_producers():
            edges = []
            for name in spec.required:
                if name not in registry:
                    raise UnknownProducerError(
                        name,
                        requested_by=spec.name,
                        reason="it is a required dependency but no producer provides it",
                    )
                edges.append(name)

            for name in spec.optional:
                if name in registry:
                    edges.append(name)
                elif require_optional:
                    raise UnknownProducerError(
                        name,
                        requested_by=spec.name,
                        reason="it is an optional dependency but no producer provides it",
                    )
                else:
                    logger.debug(
                        "Optional dependency '%s' of '%s' has no producer and will resolve to None",
                        name, spec.name,
                    )

            dependencies[spec.name] = edges

        return cls(dependencies)

    def dependencies_of(self, name: str) -> list[str]:
        try:
            return list(self._dependencies[name])
        except KeyError:
            raise UnknownProducerError(name) from None

    def as_dict(self) -> dict[str, list[str]]:
        return {name: list(names) for name, names in self._dependencies.items()}

    def topological_order(self) -> list[str]:
        """
        Order the producers so each one follows everything it depends on.

        Returns:
            Every provided name in the graph, dependencies first.

        Raises:
            CyclicDependencyError: If any cycle remains. No partial order is returned.
        """
        unmet: dict[str, set[str]] = {
            name: set(names) for name, names in self._dependencies.items()
        }
        dependents: dict[str, list[str]] = defaultdict(list)
        for dependee, names in unmet.items():
            for name in names:
                dependents[name].append(dependee)

        ready = [(self._index[name], name) for name, names in unmet.items() if len(names) == 0]
        heapq.heapify(ready)

        order = []
        while len(ready) > 0:
            _, next_item = heapq.heappop(ready)
            order.append(next_item)

            for dependee in dependents[next_item]:
                remaining = unmet[dependee]
                remaining.discard(next_item)
                if len(remaining) == 0:
                    heapq.heappush(ready, (self._index[dependee], dependee))

        if len(order) < len(self._dependencies):
            ordered = set(order)
            raise CyclicDependencyError(
                self._find_cycle([name for name in self._dependencies if name not in ordered])
            )

        return order

    def _find_cycle(self, unordered: list[str]) -> list[str]:
        """Walk unmet dependencies from the first unordered node until a node repeats.

        Every node left over after traversal has at least one dependency that is
        also left over, so the walk always closes a cycle.
        """
        stuck = set(unordered)
        path: list[str] = []
        position: dict[str, int] = {}
        node = unordered[0]
        while node not in position:
            position[node] = len(path)
            path.append(node)
            node = next(name for name in self._dependencies[node] if name in stuck)
        return path[position[node]:] + [node]

    def __contains__(self, name: str) -> bool:
        return name in self._dependencies

    def __iter__(self) -> Iterator[str]:
        return iter(self._dependencies)

    def __len__(self) -> int:
        return len(self._dependencies)
