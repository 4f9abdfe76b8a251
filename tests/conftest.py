"""Shared test fixtures for monodeps."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

WorkspaceFactory = Callable[..., Path]


@pytest.fixture()
def make_workspace(tmp_path: Path) -> WorkspaceFactory:
    """Return a factory writing files into a fresh workspace root."""

    def _make(files: dict[str, str], *, config: str = "") -> Path:
        root = tmp_path / "ws"
        root.mkdir(exist_ok=True)
        (root / "workspace.json").write_text(config, encoding="utf-8")
        for rel, text in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return root

    return _make


@pytest.fixture()
def sample_workspace(make_workspace: WorkspaceFactory) -> Path:
    """Three packages: //a depends on //b, //c is unrelated."""
    return make_workspace(
        {
            "a/monodeps.json": "",
            "a/requirements.txt": "../b\nrequests==2.31.0\n",
            "a/src/x.py": "import b\n",
            "b/monodeps.json": "",
            "b/requirements.txt": "",
            "b/b.py": "",
            "c/monodeps.json": "",
            "c/Cargo.toml": '[package]\nname = "c"\nversion = "0.1.0"\n',
            "c/main.rs": "fn main() {}\n",
            "README.md": "top-level file outside every package\n",
        }
    )


@pytest.fixture()
def mixed_workspace(make_workspace: WorkspaceFactory) -> Path:
    """//mixed holds both a Cargo crate and a Python package."""
    return make_workspace(
        {
            "libs/py/monodeps.json": "",
            "libs/py/requirements.txt": "",
            "libs/rs/monodeps.json": "",
            "libs/rs/Cargo.toml": '[package]\nname = "rs"\n',
            "mixed/monodeps.json": "",
            "mixed/requirements.txt": "-e ../libs/py\n",
            "mixed/Cargo.toml": (
                '[package]\nname = "mixed"\n\n'
                '[dependencies]\nrs = { path = "../libs/rs" }\nserde = "1"\n'
            ),
            "app/monodeps.json": "",
            "app/requirements.txt": "../mixed\n",
            "tool/monodeps.json": "",
            "tool/Cargo.toml": '[dependencies]\nmixed = { path = "../mixed" }\n',
        }
    )
