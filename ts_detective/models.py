"""
Data Models for the Dependency Detective
========================================

Defines the option record for a single extraction call, the dependency
record returned when identifier capture is on, and the payload handed to
lifecycle hooks.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .walker import Walker

# Sentinel identifiers
ALL_BINDINGS = "*"
DEFAULT_BINDING = "default"

# camelCase option spellings accepted by DetectiveOptions.from_dict
OPTION_ALIASES = {
    "skipTypeImports": "skip_type_imports",
    "skipAsyncImports": "skip_async_imports",
    "mixedImports": "mixed_imports",
    "onFile": "on_file",
    "onAfterFile": "on_after_file",
    "parserOptions": "parser_options",
}

BOOLEAN_OPTIONS = (
    "identifiers",
    "skip_type_imports",
    "skip_async_imports",
    "mixed_imports",
    "jsx",
)

# Keyword arguments TypeScriptParser accepts through parser_options
PARSER_OPTION_NAMES = ("jsx", "loc", "ranges")


@dataclass(frozen=True)
class DetectiveOptions:
    """
    Options for one extraction call.

    Attributes:
        identifiers: Return Dependency records instead of bare specifiers
        skip_type_imports: Exclude type-only imports and exports
        skip_async_imports: Exclude dynamic import() calls
        mixed_imports: Also count require("...") calls
        jsx: Parse with the TSX grammar
        on_file: Called once before traversal with a FileContext
        on_after_file: Called once after traversal with a FileContext
        parser_options: Extra keyword arguments for the parser
    """

    identifiers: bool = False
    skip_type_imports: bool = False
    skip_async_imports: bool = False
    mixed_imports: bool = False
    jsx: bool = False
    on_file: Callable[[FileContext], Any] | None = None
    on_after_file: Callable[[FileContext], Any] | None = None
    parser_options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for name in BOOLEAN_OPTIONS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ValueError(f"Option {name!r} must be a boolean, got {value!r}")
        for name in ("on_file", "on_after_file"):
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                raise ValueError(f"Option {name!r} must be callable")
        if not isinstance(self.parser_options, Mapping):
            raise ValueError("Option 'parser_options' must be a mapping")
        if "parser" not in self.parser_options:
            # Keys beside a custom parser stay on the walker unchecked
            unknown = sorted(set(self.parser_options) - set(PARSER_OPTION_NAMES))
            if unknown:
                raise ValueError(f"Unknown parser option: {', '.join(unknown)}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation (hooks included)."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DetectiveOptions:
        """
        Build options from a mapping.

        Accepts snake_case field names and their camelCase spellings.

        Raises:
            ValueError: On unknown keys or badly typed values
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown option: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    def merge(self, overrides: Mapping[str, Any]) -> DetectiveOptions:
        """Return a copy with the given options replaced."""
        if not overrides:
            return self
        validated = DetectiveOptions.from_dict(overrides)
        names = {OPTION_ALIASES.get(key, key) for key in overrides}
        return replace(self, **{name: getattr(validated, name) for name in names})


@dataclass
class Dependency:
    """A module specifier plus the bindings a statement takes from it."""

    path: str
    identifiers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {"path": self.path, "identifiers": list(self.identifiers)}


@dataclass
class FileContext:
    """
    Snapshot passed to the on_file and on_after_file hooks.

    dependencies is None for on_file and the live result list for on_after_file.
    """

    src: str | dict[str, Any]
    ast: dict[str, Any]
    walker: Walker
    options: DetectiveOptions
    dependencies: list[str | Dependency] | None = None
