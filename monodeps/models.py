"""Core data structures for monodeps."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from monodeps.errors import InvalidLabelError


class BuildKind(enum.Enum):
    """The build system a target was inferred from."""

    PYTHON = "python"
    RUST = "rust"
    GENERIC = "generic"


class SpecKind(enum.Enum):
    """How a dependency identifier was written in its manifest."""

    PATH = "path"
    LABEL = "label"
    NAME = "name"


def validate_package_path(path: str) -> str:
    """Check a workspace-relative POSIX directory path.

    The empty string is the workspace root. Absolute paths, ``.``/``..``
    components and empty components are rejected.
    """
    if not path:
        return path
    if path.startswith("/"):
        raise InvalidLabelError(f"package path cannot be absolute: {path!r}")
    for component in path.split("/"):
        if not component:
            raise InvalidLabelError(f"empty component in package path: {path!r}")
        if component in (".", ".."):
            raise InvalidLabelError(
                f"'.' and '..' are not allowed in package path: {path!r}"
            )
    return path


def parse_label(label: str) -> tuple[str, BuildKind | None]:
    """Split ``//path`` or ``//path:kind`` into (path, kind).

    Raises:
        InvalidLabelError: If the label is malformed or names an unknown kind.
    """
    if not label.startswith("//"):
        raise InvalidLabelError(f"label must start with '//': {label!r}")
    body = label[2:]
    kind: BuildKind | None = None
    if ":" in body:
        body, kind_name = body.rsplit(":", 1)
        try:
            kind = BuildKind(kind_name)
        except ValueError:
            raise InvalidLabelError(
                f"unknown build kind {kind_name!r} in label {label!r}"
            ) from None
    return validate_package_path(body.rstrip("/")), kind


@dataclass(frozen=True)
class Target:
    """A typed unit of dependency tracking: one per (directory, build kind)."""

    path: str
    kind: BuildKind

    def __post_init__(self) -> None:
        validate_package_path(self.path)

    @property
    def package(self) -> str:
        return f"//{self.path}"

    @property
    def label(self) -> str:
        return f"//{self.path}:{self.kind.value}"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Target):
            return NotImplemented
        return self.label < other.label

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class DependencySpec:
    """A dependency identifier exactly as declared in a manifest."""

    value: str
    kind: SpecKind = SpecKind.PATH

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TargetDraft:
    """A target proposed by an inferrer, before its dependencies are resolved."""

    kind: BuildKind
    deps: tuple[DependencySpec, ...] = ()
    explicit: bool = False
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class NotApplicable:
    """The inferrer's manifest is absent from the directory."""


NOT_APPLICABLE = NotApplicable()


@dataclass(frozen=True)
class Targets:
    """The inferrer recognized the directory and proposes these drafts.

    ``final`` stops the registry from running any later inferrer on the
    same directory.
    """

    drafts: tuple[TargetDraft, ...]
    final: bool = False

    def __post_init__(self) -> None:
        if not self.drafts:
            raise ValueError("Targets outcome needs at least one draft")


@dataclass(frozen=True)
class Ambiguous:
    """The inferrer found evidence it cannot resolve on its own."""

    reason: str


InferenceOutcome = NotApplicable | Targets | Ambiguous


@dataclass(frozen=True)
class PackageListing:
    """A package directory as seen by the inferrers.

    ``contents`` only holds files some inferrer asked for.
    """

    path: str
    contents: dict[str, bytes] = field(default_factory=dict, compare=False)

    def read(self, name: str) -> bytes | None:
        return self.contents.get(name)


@dataclass
class Package:
    """A directory marked by a package boundary file."""

    path: str
    targets: tuple[Target, ...] = ()
    warnings: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"//{self.path}"


@dataclass(frozen=True)
class UnresolvedSpec:
    """A dependency spec that did not become a graph edge."""

    target: Target
    spec: DependencySpec
    reason: str
    dangling: bool = False


@dataclass(frozen=True)
class ChangesetResult:
    """Targets affected by a set of changed paths."""

    seeds: frozenset[Target]
    affected: frozenset[Target]
    unowned: tuple[str, ...] = ()

    def labels(self) -> list[str]:
        return sorted(t.label for t in self.affected)


@dataclass
class GraphExport:
    """Nodes and edges of a dependency graph, ready for serialization."""

    workspace: str
    targets: list[Target] = field(default_factory=list)
    edges: list[tuple[Target, Target]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspace": self.workspace,
            "targets": [
                {"label": t.label, "package": t.package, "kind": t.kind.value}
                for t in self.targets
            ],
            "edges": [
                {"source": src.label, "target": dst.label} for src, dst in self.edges
            ],
        }
