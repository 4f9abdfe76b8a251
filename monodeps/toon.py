"""TOON (Token-Oriented Object Notation) and plain-text graph encoders."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from monodeps.models import GraphExport

_NEEDS_QUOTING = re.compile(r'[,:"\\{}\[\]]')
_LOOKS_NUMERIC = re.compile(r"^-?(?:0|[1-9]\d*)(?:\.\d+)?$")
_KEYWORDS = frozenset({"true", "false", "null"})
_ESCAPES = str.maketrans(
    {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
)


def encode(export: GraphExport) -> str:
    """Encode a graph export into TOON format.

    Targets become a ``label,package,kind`` table and edges a
    ``source,target`` table, both in export order.

    Returns:
        TOON-formatted string (no trailing newline).
    """
    targets = _table(
        "targets",
        ("label", "package", "kind"),
        ((t.label, t.package, t.kind.value) for t in export.targets),
    )
    edges = _table(
        "edges",
        ("source", "target"),
        ((src.label, dst.label) for src, dst in export.edges),
    )
    header = f"workspace: {_encode_value(export.workspace)}"
    return "\n".join([header, *targets, *edges])


def encode_text(export: GraphExport) -> str:
    """One ``label -> [deps]`` line per target (no trailing newline)."""
    deps: dict[str, list[str]] = {t.label: [] for t in export.targets}
    for src, dst in export.edges:
        deps[src.label].append(dst.label)
    return "\n".join(f"{label} -> [{', '.join(d)}]" for label, d in deps.items())


def _table(
    name: str, columns: Sequence[str], rows: Iterable[Sequence[str]]
) -> list[str]:
    """Lines of a TOON tabular array: ``name[N]{cols}:`` then indented rows."""
    body = ["  " + ",".join(_encode_value(cell) for cell in row) for row in rows]
    return [f"{name}[{len(body)}]{{{','.join(columns)}}}:", *body]


def _encode_value(value: str) -> str:
    """Render a scalar, double-quoting it when bare text would be misread."""
    if _LOOKS_NUMERIC.match(value):
        return value
    return _quote(value) if _needs_quotes(value) else value


def _needs_quotes(value: str) -> bool:
    return (
        not value
        or value != value.strip()
        or any(c in value for c in "\n\r\t")
        or value.lower() in _KEYWORDS
        or value.startswith("-")
        or _NEEDS_QUOTING.search(value) is not None
    )


def _quote(value: str) -> str:
    return f'"{value.translate(_ESCAPES)}"'
