"""Mapping between filesystem paths, labels and targets."""

from __future__ import annotations

import posixpath
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from monodeps.errors import (
    InvalidLabelError,
    UnknownTargetError,
    UnresolvedDependencyError,
)
from monodeps.models import (
    BuildKind,
    DependencySpec,
    Package,
    SpecKind,
    Target,
    UnresolvedSpec,
    parse_label,
)


class _Unresolvable(Exception):
    """Internal signal carrying the reason a spec has no target.

    ``dangling`` marks specs that point into the workspace but match no
    single target.
    """

    def __init__(self, reason: str, *, dangling: bool = False) -> None:
        super().__init__(reason)
        self.dangling = dangling


class TargetResolver:
    """Resolves paths and dependency specs against the inferred packages.

    Every path under a package directory is owned by all targets of the
    nearest enclosing package.
    """

    def __init__(self, root: Path, packages: Iterable[Package]) -> None:
        self.root = root
        self._packages: dict[str, Package] = {p.path: p for p in packages}

    @property
    def packages(self) -> list[Package]:
        return [self._packages[path] for path in sorted(self._packages)]

    def package(self, path: str) -> Package | None:
        return self._packages.get(path)

    def relative_path(self, path: str | Path) -> str | None:
        """Normalize a path to workspace-relative POSIX form.

        Relative paths are taken as relative to the workspace root. Returns
        None for paths outside the workspace.
        """
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                text = candidate.relative_to(self.root).as_posix()
            except ValueError:
                try:
                    text = candidate.resolve().relative_to(self.root).as_posix()
                except ValueError:
                    return None
        else:
            text = PurePosixPath(candidate.as_posix()).as_posix()

        normalized = posixpath.normpath(text)
        if normalized == ".":
            return ""
        if normalized == ".." or normalized.startswith(("../", "/")):
            return None
        return normalized

    def owning_package(self, path: str | Path) -> Package | None:
        """Return the nearest package enclosing path, if any."""
        current = self.relative_path(path)
        if current is None:
            return None
        while True:
            package = self._packages.get(current)
            if package is not None:
                return package
            if not current:
                return None
            current = posixpath.dirname(current)

    def path_to_targets(self, path: str | Path) -> tuple[Target, ...]:
        """Targets owning path; empty when no package encloses it."""
        package = self.owning_package(path)
        return package.targets if package is not None else ()

    def lookup(self, label: str) -> tuple[Target, ...]:
        """Targets named by ``//path`` (all of them) or ``//path:kind``.

        Raises:
            InvalidLabelError: If the label is malformed.
            UnknownTargetError: If no such package or target exists.
        """
        path, kind = parse_label(label)
        package = self._packages.get(path)
        if package is None:
            raise UnknownTargetError(f"no package at //{path}")
        if kind is None:
            return package.targets
        for target in package.targets:
            if target.kind is kind:
                return (target,)
        raise UnknownTargetError(f"//{path} has no {kind.value} target")

    def target_to_path(self, target: Target | str) -> Path:
        """Absolute directory of a target or label.

        Raises:
            UnknownTargetError: If the label is not in the workspace.
        """
        if isinstance(target, str):
            target = self.lookup(target)[0]
        elif target.path not in self._packages:
            raise UnknownTargetError(f"{target.label} is not in this workspace")
        return self.root / target.path

    def resolve(
        self, spec: DependencySpec, source: Target, *, explicit: bool = False
    ) -> Target | UnresolvedSpec:
        """Resolve a spec declared by source into a concrete target.

        Lenient specs that cannot be resolved come back as UnresolvedSpec
        records. Explicit specs must resolve.

        Raises:
            UnresolvedDependencyError: If an explicit spec does not match
                any inferred target.
        """
        try:
            target = self._locate(spec, source)
        except _Unresolvable as exc:
            if explicit:
                raise UnresolvedDependencyError(
                    source.label, spec.value, str(exc)
                ) from exc
            return UnresolvedSpec(
                target=source, spec=spec, reason=str(exc), dangling=exc.dangling
            )
        if target == source:
            return UnresolvedSpec(target=source, spec=spec, reason="refers to itself")
        return target

    def _locate(self, spec: DependencySpec, source: Target) -> Target:
        kind: BuildKind | None = None
        if spec.kind is SpecKind.NAME:
            raise _Unresolvable("external package")
        if spec.kind is SpecKind.LABEL:
            try:
                path, kind = parse_label(spec.value)
            except InvalidLabelError as exc:
                raise _Unresolvable(str(exc)) from exc
        else:
            if spec.value.startswith("/"):
                raise _Unresolvable("absolute paths are not allowed")
            path = posixpath.normpath(posixpath.join(source.path, spec.value))
            if path == ".":
                path = ""
            elif path == ".." or path.startswith("../"):
                raise _Unresolvable("path is outside the workspace")

        package = self._packages.get(path)
        if package is None:
            raise _Unresolvable(f"no package at //{path}", dangling=True)
        return self._choose(package, kind or source.kind, strict=kind is not None)

    @staticmethod
    def _choose(package: Package, kind: BuildKind, *, strict: bool) -> Target:
        for target in package.targets:
            if target.kind is kind:
                return target
        if strict:
            raise _Unresolvable(
                f"{package.label} has no {kind.value} target", dangling=True
            )
        if len(package.targets) == 1:
            return package.targets[0]
        choices = ", ".join(t.label for t in package.targets)
        raise _Unresolvable(
            f"{package.label} has several targets ({choices}); "
            "use a //path:kind label",
            dangling=True,
        )
