"""Tests for parallel package inference."""

from __future__ import annotations

from pathlib import Path

from monodeps.discovery import discover_packages
from monodeps.graph import build_graph
from monodeps.models import BuildKind, PackageListing
from monodeps.parallel import _infer_package_worker, infer_packages_parallel
from monodeps.registry import InferrerRegistry


def _listings(root: Path, registry: InferrerRegistry) -> list[PackageListing]:
    return discover_packages(root, manifests=registry.manifests)


class TestInferPackageWorker:
    """Unit tests for the worker function."""

    def test_infers_one_listing(self) -> None:
        listing = PackageListing(
            path="crate",
            contents={"monodeps.json": b"", "Cargo.toml": b"[package]\n"},
        )
        inference = _infer_package_worker(InferrerRegistry.default(), listing)
        assert inference.path == "crate"
        assert [d.kind for d in inference.drafts] == [BuildKind.RUST]


class TestInferPackagesParallel:
    """Integration tests for parallel inference."""

    def test_matches_sequential(self, mixed_workspace: Path) -> None:
        registry = InferrerRegistry.default()
        listings = _listings(mixed_workspace, registry)

        parallel = infer_packages_parallel(registry, listings)

        assert parallel == registry.infer_all(listings)

    def test_single_worker(self, sample_workspace: Path) -> None:
        registry = InferrerRegistry.default()
        listings = _listings(sample_workspace, registry)
        result = infer_packages_parallel(registry, listings, max_workers=1)
        assert [inference.path for inference in result] == ["a", "b", "c"]

    def test_sorted_by_path(self, sample_workspace: Path) -> None:
        registry = InferrerRegistry.default()
        listings = list(reversed(_listings(sample_workspace, registry)))
        result = infer_packages_parallel(registry, listings, max_workers=2)
        assert [inference.path for inference in result] == ["a", "b", "c"]

    def test_empty(self) -> None:
        assert infer_packages_parallel(InferrerRegistry.default(), []) == []

    def test_errors_survive_worker_processes(self) -> None:
        listings = [
            PackageListing(
                path=name,
                contents={"monodeps.json": b"{broken"},
            )
            for name in ("x", "y")
        ]
        result = infer_packages_parallel(
            InferrerRegistry.default(), listings, max_workers=2
        )
        assert [inference.ok for inference in result] == [False, False]
        error = result[0].errors[0]
        assert error.path == "x"
        assert error.inferrer == "boundary"
        assert "malformed package marker" in error.reason


class TestFastBuild:
    """build_graph with fast inference."""

    def test_same_graph_as_sequential(self, mixed_workspace: Path) -> None:
        sequential = build_graph(mixed_workspace)
        fast = build_graph(mixed_workspace, fast=True, max_workers=2)
        assert fast.export() == sequential.export()
        assert fast.unresolved == sequential.unresolved
