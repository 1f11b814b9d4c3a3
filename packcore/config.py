"""
Build configuration.

Settings come from an optional `minipack.json` in the working directory (or a
path given on the command line); command-line flags override them.
"""
import json
import os
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from packcore.errors import ConfigError
from packcore.loaders import LOADERS

CONFIG_FILE = "minipack.json"


class LoaderRule(BaseModel):
    """Apply the loader named `use` to every path matching the `test` regex."""
    test: str
    use: str

    @field_validator('test')
    @classmethod
    def test_is_regex(cls, value):
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regex {value!r}: {e}") from e
        return value

    @field_validator('use')
    @classmethod
    def use_is_registered(cls, value):
        if value not in LOADERS:
            raise ValueError(f"unknown loader {value!r} (available: {', '.join(sorted(LOADERS))})")
        return value


def default_loaders():
    return [LoaderRule(test=r"\.json$", use="json")]


class BuildConfig(BaseModel):
    """Everything one build needs besides the files themselves."""
    model_config = ConfigDict(extra='forbid')

    entry: Optional[str] = None
    output: Optional[str] = None  # None writes the bundle to stdout
    format: Literal["function", "string"] = "function"
    banner: bool = True
    loaders: List[LoaderRule] = Field(default_factory=default_loaders)


def load_config(path=None):
    """
    Load the build configuration.

    Args:
        path: Config file to read. Defaults to minipack.json in the working
              directory, which may be absent.

    Returns:
        BuildConfig

    Raises:
        ConfigError: If the file can't be read or doesn't validate
    """
    explicit = path is not None
    path = path or CONFIG_FILE
    if not os.path.exists(path):
        if explicit:
            raise ConfigError("Config file not found", file_path=path)
        return BuildConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read config: {e}", file_path=path) from e

    try:
        config = BuildConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid config: {e.error_count()} error(s)\n{e}",
            file_path=path,
            suggestion="Allowed keys: entry, output, format, banner, loaders",
        ) from e

    # Paths in the file are relative to the file itself
    base_dir = os.path.dirname(os.path.abspath(path))
    if config.entry and not os.path.isabs(config.entry):
        config.entry = os.path.join(base_dir, config.entry)
    if config.output and not os.path.isabs(config.output):
        config.output = os.path.join(base_dir, config.output)
    return config
