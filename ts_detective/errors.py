"""
Error Types
===========

Exceptions raised by the dependency detective.

- InvalidArgumentError: the source argument is missing or unusable
- TypeScriptSyntaxError: the parser rejected the source text
- ConfigError: an options file could not be loaded
"""

from __future__ import annotations

from pathlib import Path

SRC_NOT_GIVEN = "src not given"


class InvalidArgumentError(ValueError):
    """Raised before any parsing when the source argument is missing or invalid."""

    def __init__(self, message: str = SRC_NOT_GIVEN):
        super().__init__(message)


class TypeScriptSyntaxError(SyntaxError):
    """
    Raised when source text cannot be parsed under the active grammar.

    Line and column are 1-based, like the builtin SyntaxError.
    """

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        offset: int | None = None,
        text: str | None = None,
        filename: str = "<source>",
    ):
        super().__init__(message, (filename, lineno, offset, text))

    def __str__(self) -> str:
        if self.lineno is None:
            return self.msg
        return f"{self.msg} ({self.lineno}:{self.offset})"


class ConfigError(Exception):
    """Raised when an options file is unreadable or holds invalid settings."""

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = Path(path) if path else None

    def __str__(self) -> str:
        if self.path is None:
            return super().__str__()
        return f"{self.path}: {super().__str__()}"
