"""Workspace root lookup and package discovery with gitignore support."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable
from pathlib import Path

import pathspec

from monodeps.config import DEFAULT_PACKAGE_MARKER, WORKSPACE_FILE
from monodeps.errors import ScanError, WorkspaceNotFoundError
from monodeps.log import get_logger
from monodeps.models import PackageListing

logger = get_logger("discovery")

# Hidden directories are pruned separately. Names like build or target can be
# real packages, so build output is left to gitignore and `ignore`.
SKIP_DIRS: frozenset[str] = frozenset({"__pycache__", "node_modules"})


def find_workspace_root(start: Path) -> Path:
    """Return the nearest directory at or above start holding workspace.json.

    Raises:
        WorkspaceNotFoundError: If no ancestor holds the root marker.
    """
    start = start.resolve()
    for candidate in (start, *start.parents):
        if (candidate / WORKSPACE_FILE).is_file():
            logger.info("workspace root: %s", candidate)
            return candidate
    raise WorkspaceNotFoundError(start, WORKSPACE_FILE)


def _git_ls_files(root: Path) -> frozenset[str] | None:
    """Files git would show in the workspace: tracked plus untracked-not-ignored.

    Every gitignore source (nested and global) applies. Returns None when
    root is not a git checkout or git cannot be run.
    """
    if not (root / ".git").exists():
        return None
    command = ["git", "ls-files", "--cached", "--others", "--exclude-standard"]
    try:
        result = subprocess.run(
            command, cwd=root, capture_output=True, text=True, timeout=10, check=False
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        logger.debug("git ls-files unavailable: %s", exc)
        return None
    if result.returncode != 0:
        logger.debug("git ls-files exited with %d", result.returncode)
        return None
    return frozenset(result.stdout.splitlines())


def discover_packages(
    root: Path,
    *,
    marker: str = DEFAULT_PACKAGE_MARKER,
    manifests: Iterable[str] = (),
    extra_ignores: Iterable[str] = (),
) -> list[PackageListing]:
    """Walk root and return a listing for every directory holding the marker.

    Args:
        root: Workspace root directory.
        marker: Package boundary file name.
        manifests: File names whose contents the inferrers need.
        extra_ignores: Additional gitignore-style patterns to exclude.

    Returns:
        PackageListings sorted by workspace-relative path.

    Raises:
        ScanError: If a manifest exists but cannot be read.
    """
    git_files = _git_ls_files(root)
    gitignore = _load_gitignore(root) if git_files is None else None

    extra_spec = None
    extra_ignores = list(extra_ignores)
    if extra_ignores:
        extra_spec = pathspec.PathSpec.from_lines("gitignore", extra_ignores)

    def visible(rel: str) -> bool:
        if git_files is not None:
            if rel not in git_files:
                return False
        elif gitignore and gitignore.match_file(rel):
            return False
        return not (extra_spec and extra_spec.match_file(rel))

    wanted = set(manifests) | {marker}
    listings: list[PackageListing] = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir
        prefix = f"{rel_dir}/" if rel_dir else ""

        # Prune skip dirs, hidden dirs and ignored dirs in-place to prevent descent
        dirnames[:] = sorted(
            d
            for d in dirnames
            if d not in SKIP_DIRS
            and not d.startswith(".")
            and not _dir_ignored(f"{prefix}{d}/", gitignore, extra_spec)
        )

        if marker not in filenames or not visible(f"{prefix}{marker}"):
            continue

        contents: dict[str, bytes] = {}
        for fname in sorted(wanted.intersection(filenames)):
            full_path = Path(dirpath) / fname
            if full_path.is_symlink() or not visible(f"{prefix}{fname}"):
                continue
            try:
                contents[fname] = full_path.read_bytes()
            except OSError as exc:
                raise ScanError(f"cannot read {prefix}{fname}: {exc}") from exc

        logger.debug("package //%s: %s", rel_dir, ", ".join(sorted(contents)))
        listings.append(PackageListing(path=rel_dir, contents=contents))

    listings.sort(key=lambda listing: listing.path)
    return listings


def _dir_ignored(
    rel_dir: str,
    gitignore: pathspec.PathSpec | None,
    extra_spec: pathspec.PathSpec | None,
) -> bool:
    if gitignore and gitignore.match_file(rel_dir):
        return True
    return bool(extra_spec and extra_spec.match_file(rel_dir))


def _load_gitignore(root: Path) -> pathspec.PathSpec:
    """Matcher for the root .gitignore; empty when there is none."""
    gitignore = root / ".gitignore"
    lines: list[str] = []
    if gitignore.is_file():
        lines = gitignore.read_text(encoding="utf-8").splitlines()
    return pathspec.PathSpec.from_lines("gitignore", lines)
