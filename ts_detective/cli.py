"""
Command Line Interface
======================

Prints the dependencies of TypeScript files as JSON.

Usage:
    ts-detective src/index.ts src/App.tsx
    ts-detective --identifiers --skip-type-imports src/index.ts
    ts-detective --config .ts-detective.json src/index.ts

Output:
    {"src/index.ts": ["./app", "react"], ...}

Files ending in .tsx are parsed with the TSX grammar.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .config import find_config_file, load_options
from .detective import detective
from .errors import ConfigError, TypeScriptSyntaxError
from .models import Dependency, DetectiveOptions

logger = logging.getLogger(__name__)

FLAG_OPTIONS = (
    "identifiers",
    "skip_type_imports",
    "skip_async_imports",
    "mixed_imports",
    "jsx",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ts-detective",
        description="List the module dependencies of TypeScript files",
    )
    parser.add_argument("files", nargs="+", type=Path, help="TypeScript files to scan")
    parser.add_argument(
        "--identifiers",
        action="store_true",
        help="Include the bindings each statement takes from its module",
    )
    parser.add_argument(
        "--skip-type-imports",
        action="store_true",
        help="Ignore type-only imports and exports",
    )
    parser.add_argument(
        "--skip-async-imports",
        action="store_true",
        help="Ignore dynamic import() calls",
    )
    parser.add_argument(
        "--mixed-imports",
        action="store_true",
        help="Also count require() calls",
    )
    parser.add_argument("--jsx", action="store_true", help="Parse every file as TSX")
    parser.add_argument(
        "--config",
        type=Path,
        help="Options file (JSON or YAML); defaults to .ts-detective.* in the working directory",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def _serialize(record: str | Dependency) -> Any:
    return record.to_dict() if isinstance(record, Dependency) else record


def _resolve_options(args: argparse.Namespace) -> DetectiveOptions:
    config_path = args.config or find_config_file(Path.cwd())
    options = load_options(config_path) if config_path else DetectiveOptions()

    # Command line flags can only switch options on
    enabled = {name: True for name in FLAG_OPTIONS if getattr(args, name)}
    return options.merge(enabled)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = _resolve_options(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    results: dict[str, list[Any]] = {}
    failed = False

    for file_path in args.files:
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: cannot read {file_path}: {e}", file=sys.stderr)
            failed = True
            continue

        file_options = options.merge({"jsx": True}) if file_path.suffix == ".tsx" else options
        try:
            dependencies = detective(content, file_options)
        except TypeScriptSyntaxError as e:
            print(f"Error: {file_path}: {e}", file=sys.stderr)
            failed = True
            continue

        logger.debug("%s: %d dependencies", file_path, len(dependencies))
        results[str(file_path)] = [_serialize(record) for record in dependencies]

    print(json.dumps(results, indent=2))
    return 1 if failed else 0

