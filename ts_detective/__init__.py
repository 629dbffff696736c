"""
ts-detective
============

Finds the module dependencies of a TypeScript or TSX file: static imports,
re-exports, import-equals references, dynamic import() calls, typeof import()
types and, optionally, require() calls.
"""

from __future__ import annotations

from .config import find_config_file, load_options
from .detective import DependencyCollector, detective, detective_tsx
from .errors import ConfigError, InvalidArgumentError, TypeScriptSyntaxError
from .models import Dependency, DetectiveOptions, FileContext
from .parser import TypeScriptParser
from .walker import Walker

__version__ = "0.1.0"

__all__ = [
    "detective",
    "detective_tsx",
    "DependencyCollector",
    "Dependency",
    "DetectiveOptions",
    "FileContext",
    "TypeScriptParser",
    "Walker",
    "load_options",
    "find_config_file",
    "ConfigError",
    "InvalidArgumentError",
    "TypeScriptSyntaxError",
]
