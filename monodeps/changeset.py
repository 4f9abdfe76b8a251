"""Changeset queries: changed paths to affected targets."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from monodeps.graph import DependencyGraph
from monodeps.log import get_logger
from monodeps.models import ChangesetResult, Target

logger = get_logger("changeset")


def changeset(
    graph: DependencyGraph, changed_paths: Iterable[str | Path]
) -> ChangesetResult:
    """Map changed paths to their owning targets and all their dependents.

    Paths outside every package are reported in ``unowned`` and otherwise
    ignored.
    """
    seeds: set[Target] = set()
    unowned: list[str] = []
    for path in changed_paths:
        owners = graph.resolver.path_to_targets(path)
        if not owners:
            logger.info("%s is not part of any package", path)
            unowned.append(str(path))
            continue
        seeds.update(owners)

    affected = graph.downstream(seeds) | seeds
    return ChangesetResult(
        seeds=frozenset(seeds), affected=frozenset(affected), unowned=tuple(unowned)
    )


def query_changeset(
    graph: DependencyGraph, changed_paths: Iterable[str | Path]
) -> frozenset[Target]:
    """Targets affected by changed_paths: their owners plus all dependents."""
    return changeset(graph, changed_paths).affected


def query_downstream(
    graph: DependencyGraph, target_id: Target | str
) -> frozenset[Target]:
    """Transitive dependents of a target, ``//path`` or ``//path:kind`` label.

    A package label seeds the query with all of the package's targets.

    Raises:
        InvalidLabelError: If the label is malformed.
        UnknownTargetError: If the label names nothing in the graph.
    """
    if isinstance(target_id, Target):
        seeds: tuple[Target, ...] = (target_id,)
    else:
        seeds = graph.lookup(target_id)
    return graph.downstream(seeds)
