"""Tests for the TOON and text encoders."""

from __future__ import annotations

import pytest

from monodeps.models import BuildKind, GraphExport, Target
from monodeps.toon import _encode_value, encode, encode_text

API = Target("services/api", BuildKind.PYTHON)
CORE = Target("libs/core", BuildKind.PYTHON)
CODEGEN = Target("tools/codegen", BuildKind.RUST)


@pytest.fixture()
def sample_export() -> GraphExport:
    return GraphExport(
        workspace="myrepo",
        targets=[CORE, API, CODEGEN],
        edges=[(API, CORE), (API, CODEGEN)],
    )


class TestEncodeValue:
    """Tests for _encode_value."""

    @pytest.mark.parametrize(
        "value", ["python", "//libs/core", "42", "3.14", "-1", "ws-2"]
    )
    def test_bare(self, value: str) -> None:
        assert _encode_value(value) == value

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("", '""'),
            ("//libs/core:python", '"//libs/core:python"'),
            ("a,b", '"a,b"'),
            ("True", '"True"'),
            ("null", '"null"'),
            (" padded", '" padded"'),
            ("-flag", '"-flag"'),
            ('say "hi"', '"say \\"hi\\""'),
            ("back\\slash", '"back\\\\slash"'),
            ("a\nb\tc\r", '"a\\nb\\tc\\r"'),
        ],
    )
    def test_quoted(self, value: str, expected: str) -> None:
        assert _encode_value(value) == expected


class TestEncode:
    """Tests for encode."""

    def test_produces_valid_toon(self, sample_export: GraphExport) -> None:
        assert encode(sample_export) == "\n".join(
            [
                "workspace: myrepo",
                "targets[3]{label,package,kind}:",
                '  "//libs/core:python",//libs/core,python',
                '  "//services/api:python",//services/api,python',
                '  "//tools/codegen:rust",//tools/codegen,rust',
                "edges[2]{source,target}:",
                '  "//services/api:python","//libs/core:python"',
                '  "//services/api:python","//tools/codegen:rust"',
            ]
        )

    def test_root_package(self) -> None:
        root = Target("", BuildKind.GENERIC)
        result = encode(GraphExport(workspace="ws", targets=[root]))
        assert '  "//:generic",//,generic' in result
        assert "edges[0]{source,target}:" in result

    def test_no_trailing_newline(self, sample_export: GraphExport) -> None:
        assert not encode(sample_export).endswith("\n")


class TestEncodeText:
    """Tests for encode_text."""

    def test_one_line_per_target(self, sample_export: GraphExport) -> None:
        assert encode_text(sample_export).splitlines() == [
            "//libs/core:python -> []",
            "//services/api:python -> [//libs/core:python, //tools/codegen:rust]",
            "//tools/codegen:rust -> []",
        ]

    def test_empty_graph(self) -> None:
        assert encode_text(GraphExport(workspace="ws")) == ""
