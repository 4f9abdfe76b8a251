"""Dependency graph construction and traversal."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

import networkx as nx

from monodeps.config import WorkspaceConfig, load_config
from monodeps.discovery import discover_packages
from monodeps.errors import UnknownTargetError
from monodeps.log import get_logger
from monodeps.models import GraphExport, Package, Target, TargetDraft, UnresolvedSpec
from monodeps.registry import InferrerRegistry, PackageInference
from monodeps.resolver import TargetResolver

logger = get_logger("graph")


class DependencyGraph:
    """Targets of one workspace snapshot and the edges between them.

    An edge from A to B means A depends on B. The graph is read-only once
    built; cycles are tolerated by every traversal.
    """

    def __init__(
        self,
        root: Path,
        resolver: TargetResolver,
        graph: nx.DiGraph,
        unresolved: Sequence[UnresolvedSpec] = (),
    ) -> None:
        self.root = root
        self.resolver = resolver
        self._graph = graph
        self.unresolved = list(unresolved)

    def __contains__(self, target: object) -> bool:
        return target in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def packages(self) -> list[Package]:
        return self.resolver.packages

    @property
    def targets(self) -> list[Target]:
        return sorted(self._graph.nodes)

    @property
    def edges(self) -> list[tuple[Target, Target]]:
        return sorted(self._graph.edges, key=lambda e: (e[0].label, e[1].label))

    @property
    def warnings(self) -> list[tuple[Package, str]]:
        """Per-package warnings, such as manifests that failed to parse."""
        return [(p, w) for p in self.packages for w in p.warnings]

    def lookup(self, label: str) -> tuple[Target, ...]:
        return self.resolver.lookup(label)

    def _require(self, target: Target) -> None:
        if target not in self._graph:
            raise UnknownTargetError(f"{target.label} is not in the graph")

    def dependencies(self, target: Target) -> frozenset[Target]:
        """Direct dependencies of target."""
        self._require(target)
        return frozenset(self._graph.successors(target))

    def dependents(self, target: Target) -> frozenset[Target]:
        """Direct dependents of target."""
        self._require(target)
        return frozenset(self._graph.predecessors(target))

    def downstream(self, seeds: Iterable[Target]) -> frozenset[Target]:
        """Every target depending, directly or transitively, on a seed.

        A seed is only part of the result when it sits on a cycle.
        """
        return self._closure(seeds, self._graph.predecessors)

    def upstream(self, seeds: Iterable[Target]) -> frozenset[Target]:
        """Every target a seed depends on, directly or transitively."""
        return self._closure(seeds, self._graph.successors)

    def _closure(
        self, seeds: Iterable[Target], step: Callable[[Target], Iterable[Target]]
    ) -> frozenset[Target]:
        queue: deque[Target] = deque()
        for seed in seeds:
            self._require(seed)
            queue.append(seed)
        visited: set[Target] = set()
        while queue:
            current = queue.popleft()
            for neighbor in step(current):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        return frozenset(visited)

    def cycles(self) -> list[list[Target]]:
        """Elementary dependency cycles, each rotated to start at its lowest label."""
        found: list[list[Target]] = []
        for cycle in nx.simple_cycles(self._graph):
            start = cycle.index(min(cycle))
            found.append(cycle[start:] + cycle[:start])
        found.sort(key=lambda c: [t.label for t in c])
        return found

    def export(self) -> GraphExport:
        return GraphExport(
            workspace=self.root.name, targets=self.targets, edges=self.edges
        )


def build_graph(
    workspace_root: Path,
    *,
    config: WorkspaceConfig | None = None,
    registry: InferrerRegistry | None = None,
    fast: bool = False,
    max_workers: int | None = None,
) -> DependencyGraph:
    """Scan a workspace and build its dependency graph.

    Args:
        workspace_root: Directory holding workspace.json.
        config: Workspace settings; loaded from workspace.json when omitted.
        registry: Inferrers to run; the built-in ones when omitted.
        fast: Infer packages in parallel worker processes.
        max_workers: Worker process limit for ``fast``.

    Returns:
        The complete DependencyGraph.

    Raises:
        GraphError: On any fatal configuration, scan or inference error. No
            partial graph is ever returned.
    """
    root = workspace_root.resolve()
    config = config or load_config(root)
    registry = registry or InferrerRegistry.default(config)

    listings = discover_packages(
        root,
        marker=config.package_marker,
        manifests=registry.manifests,
        extra_ignores=config.ignore,
    )
    logger.info("found %d packages under %s", len(listings), root)

    if fast and len(listings) > 1:
        from monodeps.parallel import infer_packages_parallel

        inferences = infer_packages_parallel(
            registry, listings, max_workers=max_workers
        )
    else:
        inferences = registry.infer_all(listings)

    return assemble_graph(root, inferences)


def assemble_graph(
    root: Path, inferences: Iterable[PackageInference]
) -> DependencyGraph:
    """Turn per-package inference results into a validated graph.

    Every target is enumerated before any edge is resolved.

    Raises:
        AmbiguousInferenceError: If any package failed inference; the other
            failures are attached as exception notes.
        UnresolvedDependencyError: If an explicit dependency does not resolve.
    """
    inferences = sorted(inferences, key=lambda inf: inf.path)

    errors = [err for inf in inferences for err in inf.errors]
    if errors:
        first = errors[0]
        for other in errors[1:]:
            first.add_note(str(other))
        raise first

    packages: dict[str, Package] = {}
    drafts: list[tuple[Target, TargetDraft]] = []
    for inference in inferences:
        targets = tuple(Target(inference.path, d.kind) for d in inference.drafts)
        packages[inference.path] = Package(
            path=inference.path, targets=targets, warnings=list(inference.warnings)
        )
        drafts.extend(zip(targets, inference.drafts))

    resolver = TargetResolver(root, packages.values())
    graph = nx.DiGraph()
    graph.add_nodes_from(target for target, _ in drafts)

    unresolved: list[UnresolvedSpec] = []
    for target, draft in drafts:
        for spec in draft.deps:
            result = resolver.resolve(spec, target, explicit=draft.explicit)
            if isinstance(result, UnresolvedSpec):
                logger.debug("%s: dropped %s (%s)", target, spec, result.reason)
                unresolved.append(result)
                if result.dangling:
                    packages[target.path].warnings.append(
                        f"{target.label} dependency {spec.value!r} dropped: "
                        f"{result.reason}"
                    )
                continue
            graph.add_edge(target, result)

    dependency_graph = DependencyGraph(root, resolver, graph, unresolved)
    for cycle in dependency_graph.cycles():
        logger.info("dependency cycle: %s", " -> ".join(t.label for t in cycle))
    return dependency_graph
