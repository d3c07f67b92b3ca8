"""Settings for proofdoc-check, read from an optional proofdoc.yaml.

Example proofdoc.yaml:

    extension: .math
    manifest_name: manifest.math
    bibliography_name: bib.math
    exclude:
      - drafts/**
    jobs: 4
"""

import logging
from fnmatch import fnmatch
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .parser import BIBLIOGRAPHY_NAME, MANIFEST_NAME

logger = logging.getLogger(__name__)

CONFIG_NAME = "proofdoc.yaml"


class ConfigError(Exception):
    """The config file exists but could not be read or validated."""


class CheckConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    extension: str = ".math"
    manifest_name: str = MANIFEST_NAME
    bibliography_name: str = BIBLIOGRAPHY_NAME
    exclude: list[str] = Field(default_factory=list)
    jobs: int = Field(default=1, ge=1)

    def is_excluded(self, path: Path, root: Path) -> bool:
        relative = path.relative_to(root)
        return any(fnmatch(relative.as_posix(), pattern) for pattern in self.exclude)


def find_config(start: Path) -> Path | None:
    """Walk up from start looking for proofdoc.yaml."""
    start = start.resolve()
    for candidate in [start, *start.parents]:
        path = candidate / CONFIG_NAME
        if path.is_file():
            return path
    return None


def load_config(path: Path | None) -> CheckConfig:
    """Load and validate a config file. None gives the defaults."""
    if path is None:
        return CheckConfig()
    logger.debug("loading config from %s", path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"{path}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    try:
        return CheckConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"{path}: {e}") from e
