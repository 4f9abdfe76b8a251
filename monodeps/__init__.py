"""Monorepo package dependency tracking and changeset queries."""

from monodeps.changeset import changeset, query_changeset, query_downstream
from monodeps.graph import DependencyGraph, build_graph
from monodeps.models import BuildKind, ChangesetResult, Target

__version__ = "0.1.0"

__all__ = [
    "BuildKind",
    "ChangesetResult",
    "DependencyGraph",
    "Target",
    "build_graph",
    "changeset",
    "query_changeset",
    "query_downstream",
]
