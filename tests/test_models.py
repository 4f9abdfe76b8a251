"""Tests for core data structures."""

from __future__ import annotations

import pytest

from monodeps.errors import InvalidLabelError
from monodeps.models import (
    BuildKind,
    ChangesetResult,
    GraphExport,
    Target,
    TargetDraft,
    Targets,
    parse_label,
)


class TestTarget:
    """Tests for Target identity and labels."""

    def test_label_and_package(self) -> None:
        target = Target("packages/python/foo", BuildKind.PYTHON)
        assert target.label == "//packages/python/foo:python"
        assert target.package == "//packages/python/foo"
        assert str(target) == target.label

    def test_root_target(self) -> None:
        target = Target("", BuildKind.GENERIC)
        assert target.label == "//:generic"
        assert target.package == "//"

    def test_identity_is_path_and_kind(self) -> None:
        assert Target("a", BuildKind.RUST) == Target("a", BuildKind.RUST)
        assert Target("a", BuildKind.RUST) != Target("a", BuildKind.PYTHON)
        assert len({Target("a", BuildKind.RUST), Target("a", BuildKind.RUST)}) == 1

    def test_sorted_by_label(self) -> None:
        targets = [
            Target("b", BuildKind.PYTHON),
            Target("a", BuildKind.RUST),
            Target("a", BuildKind.PYTHON),
        ]
        assert [t.label for t in sorted(targets)] == [
            "//a:python",
            "//a:rust",
            "//b:python",
        ]

    @pytest.mark.parametrize("path", ["/abs", "a//b", "a/../b", "./a"])
    def test_invalid_path_rejected(self, path: str) -> None:
        with pytest.raises(InvalidLabelError):
            Target(path, BuildKind.PYTHON)


class TestParseLabel:
    """Tests for parse_label."""

    def test_package_label(self) -> None:
        assert parse_label("//libs/core") == ("libs/core", None)

    def test_target_label(self) -> None:
        assert parse_label("//libs/core:rust") == ("libs/core", BuildKind.RUST)

    def test_root_label(self) -> None:
        assert parse_label("//") == ("", None)
        assert parse_label("//:generic") == ("", BuildKind.GENERIC)

    def test_trailing_slash_ignored(self) -> None:
        assert parse_label("//libs/core/") == ("libs/core", None)

    def test_requires_double_slash(self) -> None:
        with pytest.raises(InvalidLabelError):
            parse_label("libs/core")

    def test_unknown_kind(self) -> None:
        with pytest.raises(InvalidLabelError, match="unknown build kind"):
            parse_label("//libs/core:cobol")

    def test_dot_components_rejected(self) -> None:
        with pytest.raises(InvalidLabelError):
            parse_label("//libs/../core")


class TestOutcomes:
    """Tests for inference outcome invariants."""

    def test_targets_requires_a_draft(self) -> None:
        with pytest.raises(ValueError):
            Targets(())

    def test_targets_not_final_by_default(self) -> None:
        outcome = Targets((TargetDraft(kind=BuildKind.PYTHON),))
        assert outcome.final is False


class TestResults:
    """Tests for result containers."""

    def test_changeset_labels_sorted(self) -> None:
        b = Target("b", BuildKind.PYTHON)
        a = Target("a", BuildKind.PYTHON)
        result = ChangesetResult(seeds=frozenset({b}), affected=frozenset({a, b}))
        assert result.labels() == ["//a:python", "//b:python"]

    def test_export_to_dict(self) -> None:
        a = Target("a", BuildKind.PYTHON)
        b = Target("b", BuildKind.RUST)
        export = GraphExport(workspace="ws", targets=[a, b], edges=[(a, b)])
        assert export.to_dict() == {
            "workspace": "ws",
            "targets": [
                {"label": "//a:python", "package": "//a", "kind": "python"},
                {"label": "//b:rust", "package": "//b", "kind": "rust"},
            ],
            "edges": [{"source": "//a:python", "target": "//b:rust"}],
        }
