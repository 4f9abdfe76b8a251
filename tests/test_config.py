"""Tests for workspace configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from monodeps.config import WorkspaceConfig, load_config
from monodeps.errors import ConfigError


def _config(tmp_path: Path, text: str) -> WorkspaceConfig:
    (tmp_path / "workspace.json").write_text(text, encoding="utf-8")
    return load_config(tmp_path)


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == WorkspaceConfig()

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config = _config(tmp_path, "\n")
        assert config.package_marker == "monodeps.json"
        assert config.requirements_files == ("requirements.txt",)
        assert config.ignore == ()

    def test_empty_object_uses_defaults(self, tmp_path: Path) -> None:
        assert _config(tmp_path, "{}") == WorkspaceConfig()

    def test_all_keys(self, tmp_path: Path) -> None:
        config = _config(
            tmp_path,
            '{"package_marker": "BUILD.json",'
            ' "requirements_files": ["requirements.txt", "dev.txt"],'
            ' "ignore": ["third_party/"]}',
        )
        assert config == WorkspaceConfig(
            package_marker="BUILD.json",
            requirements_files=("requirements.txt", "dev.txt"),
            ignore=("third_party/",),
        )

    def test_invalid_json(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="invalid JSON"):
            _config(tmp_path, "{")

    def test_top_level_must_be_object(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="JSON object"):
            _config(tmp_path, '["monodeps.json"]')

    def test_unknown_keys(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="unknown keys: colour, marker"):
            _config(tmp_path, '{"marker": "x", "colour": "blue"}')

    @pytest.mark.parametrize(
        "marker", ['""', '"a/b.json"', "3", '"workspace.json"']
    )
    def test_invalid_marker(self, tmp_path: Path, marker: str) -> None:
        with pytest.raises(ConfigError, match="package_marker"):
            _config(tmp_path, f'{{"package_marker": {marker}}}')

    @pytest.mark.parametrize("key", ["requirements_files", "ignore"])
    def test_lists_of_strings(self, tmp_path: Path, key: str) -> None:
        with pytest.raises(ConfigError, match=f"{key} must be a list of strings"):
            _config(tmp_path, f'{{"{key}": "requirements.txt"}}')
        with pytest.raises(ConfigError, match=key):
            _config(tmp_path, f'{{"{key}": [1]}}')
