"""Manifest parsers: file contents to declared dependency specs.

Parsers never touch the filesystem. Resolving a spec to a workspace target
happens later, in the resolver.
"""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass
from typing import Any

from monodeps.errors import ParseError
from monodeps.log import get_logger
from monodeps.models import BuildKind, DependencySpec, SpecKind

logger = get_logger("manifests")

_REQUIREMENT_NAME = re.compile(r"^([A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?)")
_EXTRAS_SUFFIX = re.compile(r"\[[^\]]*\]$")
_EDITABLE_PREFIX = re.compile(r"^(?:-e|--editable)(?:\s+|=)")
_LOCAL_PATH = re.compile(r"^(?:\.\.?(?:$|[/\[;\s])|/)")
_ARCHIVE_SUFFIXES = (".whl", ".zip", ".tar.gz", ".tar.bz2", ".tgz")
_CARGO_DEP_TABLES = ("dependencies", "dev-dependencies", "build-dependencies")


def _decode(contents: str | bytes, source: str) -> str:
    if isinstance(contents, str):
        return contents
    try:
        return contents.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(source, f"not valid UTF-8: {exc}") from exc


def _logical_lines(text: str) -> list[tuple[int, str]]:
    """Join backslash continuations and strip comments.

    Returns (first_line_number, line) pairs for non-empty lines.
    """
    lines: list[tuple[int, str]] = []
    pending = ""
    start = 0
    for lineno, raw in enumerate(text.splitlines(), start=1):
        if not pending:
            start = lineno
        if raw.rstrip().endswith("\\"):
            pending += raw.rstrip()[:-1] + " "
            continue
        line = pending + raw
        pending = ""
        if line.lstrip().startswith("#"):
            continue
        line = re.split(r"\s+#", line, maxsplit=1)[0].strip()
        if line:
            lines.append((start, line))
    if pending.strip():
        lines.append((start, pending.strip()))
    return lines


def _local_path(value: str) -> str:
    return _EXTRAS_SUFFIX.sub("", value.strip())


def parse_requirements(
    contents: str | bytes, *, source: str = "requirements.txt"
) -> list[DependencySpec]:
    """Extract dependency specs from a pip requirements file.

    Local paths (``.``, ``../x``, ``/abs/x``, ``-e ../x``, ``name @ file://x``)
    become path specs; the resolver decides whether they land in the
    workspace. Bare URLs and archive files are skipped. Everything else that
    names a distribution becomes a name spec.

    Raises:
        ParseError: For a malformed line, such as ``==1.0`` or ``name @``.
    """
    text = _decode(contents, source)
    specs: list[DependencySpec] = []

    for lineno, line in _logical_lines(text):
        editable = _EDITABLE_PREFIX.match(line)
        if editable:
            target = line[editable.end() :].strip()
            if not target:
                raise ParseError(source, "editable requirement without a path", lineno)
            if target.startswith((".", "/")):
                specs.append(DependencySpec(_local_path(target)))
            elif target.startswith("file://"):
                specs.append(DependencySpec(_local_path(target[len("file://") :])))
            continue

        if line.startswith("-"):
            # -r, -c, --index-url and friends carry no local dependency
            continue

        if _LOCAL_PATH.match(line):
            specs.append(DependencySpec(_local_path(line.split(";", 1)[0])))
            continue

        if "://" in line.split("@", 1)[0]:
            # a bare URL names no distribution and no local directory
            logger.debug("%s:%d: skipping %r", source, lineno, line)
            continue

        if "@" in line:
            name, _, url = line.partition("@")
            url = url.split(";", 1)[0].strip()
            if not url:
                raise ParseError(source, f"missing URL after '@': {line!r}", lineno)
            if url.startswith("file://"):
                specs.append(DependencySpec(url[len("file://") :]))
                continue
            match = _REQUIREMENT_NAME.match(name.strip())
            if match is None:
                raise ParseError(source, f"invalid requirement: {line!r}", lineno)
            specs.append(DependencySpec(match.group(1), SpecKind.NAME))
            continue

        if line.split(";", 1)[0].strip().endswith(_ARCHIVE_SUFFIXES):
            logger.debug("%s:%d: skipping archive %r", source, lineno, line)
            continue

        match = _REQUIREMENT_NAME.match(line)
        if match is None:
            raise ParseError(source, f"invalid requirement: {line!r}", lineno)
        specs.append(DependencySpec(match.group(1), SpecKind.NAME))

    return specs


def parse_cargo_toml(
    contents: str | bytes, *, source: str = "Cargo.toml"
) -> list[DependencySpec]:
    """Extract dependency specs from a Cargo manifest.

    Scans the regular, dev and build dependency tables, including their
    ``[target.<cfg>]`` variants. Entries with a ``path`` key become path
    specs; the rest are external crates.

    Raises:
        ParseError: If the TOML is invalid or a dependency table is malformed.
    """
    text = _decode(contents, source)
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ParseError(source, f"invalid TOML: {exc}") from exc

    tables: list[tuple[str, Any]] = [
        (name, data.get(name)) for name in _CARGO_DEP_TABLES
    ]
    platforms = data.get("target", {})
    if not isinstance(platforms, dict):
        raise ParseError(source, "[target] must be a table")
    for cfg, section in platforms.items():
        if not isinstance(section, dict):
            raise ParseError(source, f"[target.{cfg}] must be a table")
        tables.extend(
            (f"target.{cfg}.{name}", section.get(name)) for name in _CARGO_DEP_TABLES
        )

    specs: list[DependencySpec] = []
    for table_name, table in tables:
        if table is None:
            continue
        if not isinstance(table, dict):
            raise ParseError(source, f"[{table_name}] must be a table")
        for crate, entry in table.items():
            specs.append(_cargo_dependency(crate, entry, table_name, source))
    return specs


def _cargo_dependency(
    crate: str, entry: Any, table_name: str, source: str
) -> DependencySpec:
    if isinstance(entry, str):
        return DependencySpec(crate, SpecKind.NAME)
    if not isinstance(entry, dict):
        raise ParseError(
            source, f"[{table_name}] {crate}: expected a version string or table"
        )
    path = entry.get("path")
    if path is not None:
        if not isinstance(path, str) or not path:
            raise ParseError(source, f"[{table_name}] {crate}: path must be a string")
        return DependencySpec(path)
    package = entry.get("package", crate)
    if not isinstance(package, str):
        raise ParseError(source, f"[{table_name}] {crate}: package must be a string")
    return DependencySpec(package, SpecKind.NAME)


@dataclass(frozen=True)
class DeclaredTarget:
    """One target declared explicitly in a package marker."""

    kind: BuildKind
    deps: tuple[DependencySpec, ...] = ()


def parse_boundary(
    contents: str | bytes, *, source: str = "monodeps.json"
) -> list[DeclaredTarget] | None:
    """Parse a package marker.

    Returns None for a plain marker (empty file, or an object without a
    ``targets`` key), otherwise the declared targets in file order.

    Raises:
        ParseError: If the marker is not valid JSON or has the wrong shape.
    """
    text = _decode(contents, source)
    if not text.strip():
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(source, f"invalid JSON: {exc.msg}", exc.lineno) from exc

    if not isinstance(data, dict):
        raise ParseError(source, "expected a JSON object at top level")
    if "targets" not in data:
        return None

    raw_targets = data["targets"]
    if not isinstance(raw_targets, list) or not raw_targets:
        raise ParseError(source, "targets must be a non-empty list")

    declared: list[DeclaredTarget] = []
    for index, raw in enumerate(raw_targets):
        if not isinstance(raw, dict):
            raise ParseError(source, f"targets[{index}] must be an object")
        try:
            kind = BuildKind(raw.get("kind"))
        except ValueError:
            raise ParseError(
                source, f"targets[{index}]: unknown kind {raw.get('kind')!r}"
            ) from None
        deps = raw.get("deps", [])
        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            raise ParseError(
                source, f"targets[{index}]: deps must be a list of strings"
            )
        declared.append(
            DeclaredTarget(kind=kind, deps=tuple(_declared_spec(d) for d in deps))
        )
    return declared


def _declared_spec(value: str) -> DependencySpec:
    if value.startswith("//"):
        return DependencySpec(value, SpecKind.LABEL)
    return DependencySpec(value)
