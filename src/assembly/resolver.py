"""Resolve a producer's declared dependencies against the artifacts built so far."""

from typing import Any, Mapping

from assembly.domain import ProducerSpec
from assembly.errors import MissingDependencyError

__all__ = ["resolve"]


def resolve(spec: ProducerSpec, built_artifacts: Mapping[str, Any]) -> dict[str, Any]:
    """Select the artifacts a producer declared, and nothing else.

    A required dependency counts as missing when it is absent from
    ``built_artifacts`` *or* present with a falsy value. Disabled producers
    store ``None``, so requiring a disabled producer fails here rather than
    handing the dependent a ``None``. Optional dependencies that are missing
    resolve to ``None``.

    Args:
        spec: Registration record of the producer being built.
        built_artifacts: Artifacts built so far, keyed by provided name.

    Returns:
        Declared dependency names, required then optional, mapped to their artifacts.

    Raises:
        MissingDependencyError: Naming the producer and every missing required dependency.

    Example:
        >>> resolve(flags_spec, {"logger": logger, "timing": timing, "unrelated": 1})
        {'logger': logger, 'timing': timing, 'hype_person': None}
    """
    missing = [name for name in spec.required if not built_artifacts.get(name)]
    if missing:
        raise MissingDependencyError(spec.name, missing)

    return {name: built_artifacts.get(name) for name in spec.dependencies}
