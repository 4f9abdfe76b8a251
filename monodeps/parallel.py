"""Parallel package inference for the --fast flag."""

from __future__ import annotations

import os
from collections.abc import Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed

from monodeps.models import PackageListing
from monodeps.registry import InferrerRegistry, PackageInference


def _infer_package_worker(
    registry: InferrerRegistry, listing: PackageListing
) -> PackageInference:
    """Infer a single package listing.

    Module-level function required for ProcessPoolExecutor pickling.
    """
    return registry.infer_package(listing)


def infer_packages_parallel(
    registry: InferrerRegistry,
    listings: Sequence[PackageListing],
    *,
    max_workers: int | None = None,
) -> list[PackageInference]:
    """Infer package listings in parallel using ProcessPoolExecutor.

    Each directory is inferred independently; graph assembly stays in the
    calling process.

    Args:
        registry: The inferrers to run; must be picklable.
        listings: Package listings from discovery.
        max_workers: Maximum number of worker processes.

    Returns:
        One PackageInference per listing, sorted by package path.
    """
    if not listings:
        return []
    if max_workers is None:
        max_workers = min(os.cpu_count() or 1, len(listings))

    inferences: list[PackageInference] = []
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(_infer_package_worker, registry, listing)
            for listing in listings
        ]
        for future in as_completed(futures):
            inferences.append(future.result())

    inferences.sort(key=lambda inference: inference.path)
    return inferences
