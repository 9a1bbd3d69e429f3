"""Error taxonomy for reelcompose.

Every error carries a dotted ``code`` (stable, greppable in logs) and a
human-readable message. The base classes mix in the builtin exception a
caller would naturally catch (ValueError for bad input, RuntimeError for
sinks).
"""

import os


class ReelError(Exception):
    """Base class for all reelcompose errors."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class ConfigError(ReelError, ValueError):
    """Invalid width/height/fps/duration or start/end range."""


class TimelineModelError(ReelError, ValueError):
    """Structurally invalid timeline, found at construction time."""


class AssetError(ReelError):
    """Missing or undecodable asset referenced by the timeline.

    Attributes:
        paths: Offending asset path(s), in the order they were found.
        reason: "not_found" or "unsupported_format".
    """

    NOT_FOUND = "not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"

    def __init__(self, paths, reason: str, message: str | None = None) -> None:
        if isinstance(paths, (str, os.PathLike)):
            paths = [paths]
        self.paths = [str(p) for p in paths]
        self.reason = reason
        if message is None:
            if len(self.paths) == 1:
                message = f"Asset {reason.replace('_', ' ')}: {self.paths[0]}"
            else:
                message = f"{len(self.paths)} asset(s) {reason.replace('_', ' ')}:\n"
                for p in self.paths:
                    message += f"  - {p}\n"
        super().__init__(f"asset.{reason}", message)

    @property
    def path(self) -> str:
        return self.paths[0]


class SinkError(ReelError, RuntimeError):
    """An external frame/audio/display sink rejected its input."""
