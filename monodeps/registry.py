"""Inferrer registry and conflict resolution."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from monodeps.config import WorkspaceConfig
from monodeps.errors import AmbiguousInferenceError
from monodeps.inferrers import (
    BoundaryInferrer,
    CargoInferrer,
    Inferrer,
    PythonRequirementsInferrer,
)
from monodeps.log import get_logger
from monodeps.models import (
    Ambiguous,
    BuildKind,
    InferenceOutcome,
    PackageListing,
    TargetDraft,
    Targets,
)

logger = get_logger("registry")


@dataclass(frozen=True)
class PackageInference:
    """The aggregated result of running every inferrer on one directory."""

    path: str
    drafts: tuple[TargetDraft, ...] = ()
    errors: tuple[AmbiguousInferenceError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def warnings(self) -> list[str]:
        return [w for draft in self.drafts for w in draft.warnings]


def aggregate(
    path: str, results: Sequence[tuple[str, InferenceOutcome]]
) -> PackageInference:
    """Combine the outcomes of all inferrers for one directory.

    Several inferrers each reporting a different build kind is allowed and
    yields one draft per kind. An ``Ambiguous`` outcome, an inferrer
    reporting the same kind twice, or two inferrers claiming the same kind
    are errors. No ``Targets`` at all yields a single generic draft.

    Args:
        path: Workspace-relative package directory.
        results: (inferrer_name, outcome) pairs in registration order.

    Returns:
        A PackageInference holding either drafts or errors, never both.
    """
    drafts: list[TargetDraft] = []
    errors: list[AmbiguousInferenceError] = []
    claimed: dict[BuildKind, str] = {}

    for name, outcome in results:
        if isinstance(outcome, Ambiguous):
            errors.append(AmbiguousInferenceError(path, name, outcome.reason))
            continue
        if not isinstance(outcome, Targets):
            continue

        kinds_here: set[BuildKind] = set()
        for draft in outcome.drafts:
            if draft.kind in kinds_here:
                errors.append(
                    AmbiguousInferenceError(
                        path, name, f"more than one {draft.kind.value} target"
                    )
                )
                continue
            kinds_here.add(draft.kind)
            if draft.kind in claimed:
                errors.append(
                    AmbiguousInferenceError(
                        path,
                        name,
                        f"{draft.kind.value} target already inferred by "
                        f"{claimed[draft.kind]}",
                    )
                )
                continue
            claimed[draft.kind] = name
            drafts.append(draft)

    if errors:
        return PackageInference(path=path, errors=tuple(errors))
    if not drafts:
        drafts.append(TargetDraft(kind=BuildKind.GENERIC))
    return PackageInference(path=path, drafts=tuple(drafts))


class InferrerRegistry:
    """Runs a fixed, explicitly registered list of inferrers."""

    def __init__(self, inferrers: Sequence[Inferrer]) -> None:
        self.inferrers = list(inferrers)

    @classmethod
    def default(cls, config: WorkspaceConfig | None = None) -> InferrerRegistry:
        """Registry with the built-in inferrers, boundary declarations first."""
        config = config or WorkspaceConfig()
        return cls(
            [
                BoundaryInferrer(config.package_marker),
                CargoInferrer(),
                PythonRequirementsInferrer(config.requirements_files),
            ]
        )

    @property
    def manifests(self) -> frozenset[str]:
        """Every file name some inferrer needs to read."""
        return frozenset(name for inf in self.inferrers for name in inf.manifests)

    def infer_package(self, listing: PackageListing) -> PackageInference:
        results: list[tuple[str, InferenceOutcome]] = []
        for inferrer in self.inferrers:
            outcome = inferrer.classify(listing)
            results.append((inferrer.name, outcome))
            if isinstance(outcome, Targets) and outcome.final:
                break
        inference = aggregate(listing.path, results)
        logger.debug(
            "//%s: %s",
            listing.path,
            ", ".join(d.kind.value for d in inference.drafts) or "errors",
        )
        return inference

    def infer_all(self, listings: Iterable[PackageListing]) -> list[PackageInference]:
        """Infer every listing; errors are collected, not raised."""
        return [self.infer_package(listing) for listing in listings]
