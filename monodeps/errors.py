"""Exception hierarchy for graph construction and queries."""

from __future__ import annotations

from pathlib import Path


class GraphError(Exception):
    """Base class for every error raised while building or querying a graph."""


class ConfigError(GraphError):
    """Raised when workspace.json cannot be parsed or has invalid values."""


class WorkspaceNotFoundError(GraphError):
    """Raised when no workspace root marker is found."""

    def __init__(self, start: Path, marker: str) -> None:
        self.start = start
        self.marker = marker
        super().__init__(
            f"could not find {marker} in {start} or any parent directory"
        )


class ScanError(GraphError):
    """Raised when a manifest cannot be read from disk."""


class InvalidLabelError(GraphError, ValueError):
    """Raised for a malformed target label or package path."""


class UnknownTargetError(GraphError, LookupError):
    """Raised when a label does not name any target in the graph."""


class ParseError(GraphError):
    """A manifest could not be parsed.

    Localized to one file: the inferrer turns it into a package warning and
    the manifest contributes no dependencies.
    """

    def __init__(self, source: str, message: str, line: int | None = None) -> None:
        self.source = source
        self.message = message
        self.line = line
        where = f"{source}:{line}" if line is not None else source
        super().__init__(f"{where}: {message}")


class AmbiguousInferenceError(GraphError):
    """An inferrer could not cleanly decide the targets of a directory."""

    def __init__(self, path: str, inferrer: str, reason: str) -> None:
        self.path = path
        self.inferrer = inferrer
        self.reason = reason
        super().__init__(
            f"ambiguous package //{path} (inferrer={inferrer}): {reason}; "
            "fix the package marker or manifests to disambiguate"
        )

    def __reduce__(self):
        # Results cross process boundaries when inference runs in parallel.
        return (type(self), (self.path, self.inferrer, self.reason))


class UnresolvedDependencyError(GraphError):
    """An explicitly declared dependency does not match any inferred target."""

    def __init__(self, target: str, spec: str, reason: str) -> None:
        self.target = target
        self.spec = spec
        self.reason = reason
        super().__init__(
            f"{target} declares dependency {spec!r} which cannot be resolved: "
            f"{reason}"
        )
