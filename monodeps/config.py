"""Workspace configuration loading (workspace.json)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from monodeps.errors import ConfigError

WORKSPACE_FILE = "workspace.json"
DEFAULT_PACKAGE_MARKER = "monodeps.json"
DEFAULT_REQUIREMENTS_FILES: tuple[str, ...] = ("requirements.txt",)


@dataclass(frozen=True)
class WorkspaceConfig:
    """Settings read from the workspace root marker."""

    package_marker: str = DEFAULT_PACKAGE_MARKER
    requirements_files: tuple[str, ...] = DEFAULT_REQUIREMENTS_FILES
    ignore: tuple[str, ...] = ()


def load_config(root: Path) -> WorkspaceConfig:
    """Load workspace.json from the workspace root.

    A missing or empty file yields the defaults.

    Raises:
        ConfigError: If the file is not valid JSON or holds invalid values.
    """
    config_file = root / WORKSPACE_FILE
    if not config_file.is_file():
        return WorkspaceConfig()

    try:
        text = config_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"{config_file}: {exc}") from exc

    if not text.strip():
        return WorkspaceConfig()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{config_file}: invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_file}: expected a JSON object at top level")

    return _parse_config(data, config_file)


def _parse_config(data: dict[str, Any], source: Path) -> WorkspaceConfig:
    known = {"package_marker", "requirements_files", "ignore"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{source}: unknown keys: {', '.join(unknown)}")

    marker = data.get("package_marker", DEFAULT_PACKAGE_MARKER)
    if not isinstance(marker, str) or not marker or "/" in marker:
        raise ConfigError(f"{source}: package_marker must be a plain file name")
    if marker == WORKSPACE_FILE:
        raise ConfigError(f"{source}: package_marker cannot be {WORKSPACE_FILE}")

    requirements = _string_list(
        data.get("requirements_files", list(DEFAULT_REQUIREMENTS_FILES)),
        "requirements_files",
        source,
    )
    ignore = _string_list(data.get("ignore", []), "ignore", source)

    return WorkspaceConfig(
        package_marker=marker,
        requirements_files=tuple(requirements),
        ignore=tuple(ignore),
    )


def _string_list(value: Any, key: str, source: Path) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{source}: {key} must be a list of strings")
    return value
