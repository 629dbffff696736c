"""
Options File Loader
===================

Loads DetectiveOptions from a JSON or YAML file.

Configuration files searched in order:
1. .ts-detective.json
2. .ts-detective.yaml
3. .ts-detective.yml

Keys may use snake_case or camelCase:

    {"skipTypeImports": true, "identifiers": true}

Usage:
    from ts_detective.config import find_config_file, load_options

    config_path = find_config_file(Path("."))
    options = load_options(config_path) if config_path else DetectiveOptions()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .models import DetectiveOptions

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = [
    ".ts-detective.json",
    ".ts-detective.yaml",
    ".ts-detective.yml",
]

YAML_SUFFIXES = {".yaml", ".yml"}

# Hooks cannot be expressed in a file
FILE_OPTION_BLOCKLIST = {"on_file", "onFile", "on_after_file", "onAfterFile"}


def find_config_file(directory: Path | str) -> Path | None:
    """Return the first options file present in directory, or None."""
    directory = Path(directory)
    for filename in CONFIG_FILENAMES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def read_config_data(path: Path | str) -> dict[str, Any]:
    """
    Read the raw mapping stored in an options file.

    Raises:
        ConfigError: If the file cannot be read, parsed, or is not a mapping
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read options file: {e}", path) from e

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid options file: {e}", path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Options file must contain a mapping", path)
    return data


def load_options(path: Path | str) -> DetectiveOptions:
    """
    Load DetectiveOptions from a JSON or YAML file.

    Raises:
        ConfigError: If the file is unreadable or holds unknown or invalid options
    """
    data = read_config_data(path)

    hooks = FILE_OPTION_BLOCKLIST.intersection(data)
    if hooks:
        raise ConfigError(f"Hooks cannot be set from a file: {', '.join(sorted(hooks))}", path)

    try:
        options = DetectiveOptions.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigError(str(e), path) from e

    logger.debug("Loaded options from %s", path)
    return options
