"""Package inferrers, one per supported build system."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from monodeps.config import DEFAULT_PACKAGE_MARKER, DEFAULT_REQUIREMENTS_FILES
from monodeps.errors import ParseError
from monodeps.log import get_logger
from monodeps.manifests import parse_boundary, parse_cargo_toml, parse_requirements
from monodeps.models import (
    NOT_APPLICABLE,
    Ambiguous,
    BuildKind,
    DependencySpec,
    InferenceOutcome,
    PackageListing,
    TargetDraft,
    Targets,
)

logger = get_logger("inferrers")

CARGO_MANIFEST = "Cargo.toml"


class Inferrer(Protocol):
    """Recognizes one kind of package from a directory listing."""

    name: str
    manifests: tuple[str, ...]

    def classify(self, listing: PackageListing) -> InferenceOutcome: ...


class BoundaryInferrer:
    """Targets declared explicitly in the package marker.

    A plain marker is not applicable. Declared targets win outright: the
    registry runs no further inferrer on the directory.
    """

    name = "boundary"

    def __init__(self, marker: str = DEFAULT_PACKAGE_MARKER) -> None:
        self.marker = marker
        self.manifests = (marker,)

    def classify(self, listing: PackageListing) -> InferenceOutcome:
        contents = listing.read(self.marker)
        if contents is None:
            return NOT_APPLICABLE
        try:
            declared = parse_boundary(contents, source=self.marker)
        except ParseError as exc:
            return Ambiguous(f"malformed package marker: {exc}")
        if declared is None:
            return NOT_APPLICABLE
        drafts = tuple(
            TargetDraft(kind=d.kind, deps=d.deps, explicit=True) for d in declared
        )
        return Targets(drafts, final=True)


def _manifest_draft(
    kind: BuildKind,
    files: Sequence[tuple[str, bytes]],
    parse: Callable[..., list[DependencySpec]],
    path: str,
) -> TargetDraft:
    """Build one draft from the manifests present, downgrading parse errors."""
    deps: list[DependencySpec] = []
    warnings: list[str] = []
    for name, contents in files:
        try:
            deps.extend(parse(contents, source=name))
        except ParseError as exc:
            logger.debug("//%s: %s", path, exc)
            warnings.append(f"{exc}; treating it as declaring no dependencies")
    return TargetDraft(kind=kind, deps=tuple(deps), warnings=tuple(warnings))


class CargoInferrer:
    """Rust crates, from Cargo.toml."""

    name = "cargo"
    manifests = (CARGO_MANIFEST,)

    def classify(self, listing: PackageListing) -> InferenceOutcome:
        contents = listing.read(CARGO_MANIFEST)
        if contents is None:
            return NOT_APPLICABLE
        draft = _manifest_draft(
            BuildKind.RUST, [(CARGO_MANIFEST, contents)], parse_cargo_toml, listing.path
        )
        return Targets((draft,))


class PythonRequirementsInferrer:
    """Python packages, from pip requirements files.

    Every configured requirements file present in the directory feeds the
    same target.
    """

    name = "python-requirements"

    def __init__(
        self, requirements_files: Sequence[str] = DEFAULT_REQUIREMENTS_FILES
    ) -> None:
        self.manifests = tuple(requirements_files)

    def classify(self, listing: PackageListing) -> InferenceOutcome:
        present: list[tuple[str, bytes]] = []
        for name in self.manifests:
            contents = listing.read(name)
            if contents is not None:
                present.append((name, contents))
        if not present:
            return NOT_APPLICABLE
        draft = _manifest_draft(
            BuildKind.PYTHON, present, parse_requirements, listing.path
        )
        return Targets((draft,))
