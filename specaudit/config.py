"""Configuration for the spec test tools.

The layout of the test data tree lives in ``spec_tests.yaml`` at the repo
root; every key is optional and falls back to the defaults below. The file
is checked against ``schemas/spec_tests_config_schema.json`` before use.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import jsonschema
import yaml

from specaudit.parsing import DEFAULT_TEST_EXTENSION


DEFAULT_CONFIG_NAME = "spec_tests.yaml"
DEFAULT_TEST_DATA_DIR = "./testData"
DEFAULT_TEST_AREAS = ("diagnostics", "psi", "codegen")

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "spec_tests_config_schema.json"


class ConfigError(ValueError):
    """Raised when the configuration file cannot be read or is invalid."""


@dataclass
class SpecTestsConfig:
    test_data_dir: Path = Path(DEFAULT_TEST_DATA_DIR)
    test_areas: list[str] = field(default_factory=lambda: list(DEFAULT_TEST_AREAS))
    test_extension: str = DEFAULT_TEST_EXTENSION

    def area_dir(self, area: str) -> Path:
        return self.test_data_dir / area


def load_schema() -> dict:
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


def config_from_mapping(data: dict, base_dir: Path | None = None) -> SpecTestsConfig:
    """Validate a raw config mapping and build a SpecTestsConfig.

    Relative ``test_data_dir`` values resolve against ``base_dir`` when given.
    """
    try:
        jsonschema.validate(data, load_schema())
    except jsonschema.ValidationError as e:
        raise ConfigError(f"Schema validation error: {e.message}") from e

    data_dir = Path(data.get("test_data_dir", DEFAULT_TEST_DATA_DIR))
    if base_dir is not None and not data_dir.is_absolute():
        data_dir = base_dir / data_dir

    return SpecTestsConfig(
        test_data_dir=data_dir,
        test_areas=list(data.get("test_areas", DEFAULT_TEST_AREAS)),
        test_extension=data.get("test_extension", DEFAULT_TEST_EXTENSION),
    )


def load_config(path: str | Path | None = None) -> SpecTestsConfig:
    """Load the configuration file, or the defaults when it does not exist.

    With no explicit path, ``spec_tests.yaml`` in the working directory is
    used if present. An explicit path that does not exist is an error.
    """
    if path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_NAME
        if not candidate.exists():
            return SpecTestsConfig()
        path = candidate

    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping, got {type(data).__name__}")

    try:
        return config_from_mapping(data, base_dir=path.resolve().parent)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e
