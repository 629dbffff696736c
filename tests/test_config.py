#!/usr/bin/env python3
"""
Tests for the Options File Loader
=================================

Tests loading DetectiveOptions from JSON and YAML files.
"""

import json
from pathlib import Path

import pytest
from ts_detective import ConfigError, DetectiveOptions, detective
from ts_detective.config import CONFIG_FILENAMES, find_config_file, load_options


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def json_config(temp_dir: Path) -> Path:
    """Create a JSON options file using camelCase keys."""
    config_path = temp_dir / ".ts-detective.json"
    config_path.write_text(json.dumps({"skipTypeImports": True, "identifiers": True}))
    return config_path


@pytest.fixture
def yaml_config(temp_dir: Path) -> Path:
    """Create a YAML options file using snake_case keys."""
    config_path = temp_dir / ".ts-detective.yaml"
    config_path.write_text("mixed_imports: true\nskip_async_imports: true\n")
    return config_path


# =============================================================================
# LOADING
# =============================================================================

class TestLoadOptions:
    """Tests for load_options."""

    def test_loads_json(self, json_config: Path):
        """JSON files accept camelCase keys."""
        options = load_options(json_config)

        assert options == DetectiveOptions(skip_type_imports=True, identifiers=True)

    def test_loads_yaml(self, yaml_config: Path):
        """YAML files accept snake_case keys."""
        options = load_options(yaml_config)

        assert options.mixed_imports is True
        assert options.skip_async_imports is True
        assert options.identifiers is False

    def test_empty_yaml_gives_defaults(self, temp_dir: Path):
        """An empty YAML file means default options."""
        config_path = temp_dir / "options.yml"
        config_path.write_text("")

        assert load_options(config_path) == DetectiveOptions()

    def test_parser_options(self, temp_dir: Path):
        """Parser options pass through unchanged."""
        config_path = temp_dir / "options.json"
        config_path.write_text(json.dumps({"parserOptions": {"loc": False}}))

        assert load_options(config_path).parser_options == {"loc": False}

    def test_loaded_options_drive_detective(self, json_config: Path):
        """Loaded options work with detective()."""
        fixture = 'import { type A, b } from "m";'

        deps = detective(fixture, load_options(json_config))

        assert deps[0].to_dict() == {"path": "m", "identifiers": ["b"]}

    def test_missing_file(self, temp_dir: Path):
        """A missing file raises ConfigError with its path."""
        config_path = temp_dir / "missing.json"

        with pytest.raises(ConfigError) as exc_info:
            load_options(config_path)

        assert exc_info.value.path == config_path

    def test_invalid_json(self, temp_dir: Path):
        """Malformed JSON raises ConfigError."""
        config_path = temp_dir / "options.json"
        config_path.write_text("{not json")

        with pytest.raises(ConfigError, match="Invalid options file"):
            load_options(config_path)

    def test_invalid_yaml(self, temp_dir: Path):
        """Malformed YAML raises ConfigError."""
        config_path = temp_dir / "options.yaml"
        config_path.write_text("identifiers: [unclosed\n")

        with pytest.raises(ConfigError):
            load_options(config_path)

    def test_non_mapping(self, temp_dir: Path):
        """A top-level list is rejected."""
        config_path = temp_dir / "options.json"
        config_path.write_text("[1, 2]")

        with pytest.raises(ConfigError, match="mapping"):
            load_options(config_path)

    def test_unknown_option(self, temp_dir: Path):
        """Unknown keys are rejected."""
        config_path = temp_dir / "options.json"
        config_path.write_text(json.dumps({"resolvePaths": True}))

        with pytest.raises(ConfigError, match="Unknown option"):
            load_options(config_path)

    def test_wrong_value_type(self, temp_dir: Path):
        """Boolean options must be booleans."""
        config_path = temp_dir / "options.json"
        config_path.write_text(json.dumps({"identifiers": "yes"}))

        with pytest.raises(ConfigError):
            load_options(config_path)

    def test_hooks_rejected(self, temp_dir: Path):
        """Hooks cannot come from a file."""
        config_path = temp_dir / "options.json"
        config_path.write_text(json.dumps({"onFile": "print"}))

        with pytest.raises(ConfigError, match="Hooks"):
            load_options(config_path)


# =============================================================================
# DISCOVERY
# =============================================================================

class TestFindConfigFile:
    """Tests for find_config_file."""

    def test_no_config(self, temp_dir: Path):
        """Returns None when no options file exists."""
        assert find_config_file(temp_dir) is None

    def test_finds_yaml(self, yaml_config: Path, temp_dir: Path):
        """Finds a YAML options file."""
        assert find_config_file(temp_dir) == yaml_config

    def test_json_wins(self, json_config: Path, yaml_config: Path, temp_dir: Path):
        """JSON is preferred when several files exist."""
        assert CONFIG_FILENAMES[0] == ".ts-detective.json"
        assert find_config_file(temp_dir) == json_config

    def test_ignores_directories(self, temp_dir: Path):
        """A directory with a config name is not a config file."""
        (temp_dir / ".ts-detective.json").mkdir()

        assert find_config_file(temp_dir) is None
