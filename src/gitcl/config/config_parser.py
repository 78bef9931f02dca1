"""Configuration parsing helpers for git-cl.

Brief:
  Reads the optional YAML config file, validates it against the JSON Schema
  and materializes typed settings used by the CLI.

Inputs:
  - YAML config paths and parsed config dicts.

Outputs:
  - Settings instances with every section filled with defaults.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..compare import get_provider_class
from .config_schema import validate_config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = ".git-cl.yaml"


class LoggingSettings(BaseModel):
    """Brief: Logging section; passed to init_logging as a plain mapping."""

    level: str = Field(default="warn")
    stderr: bool = Field(default=True)
    file: Optional[str] = Field(default=None)


class GitSettings(BaseModel):
    """Brief: How to reach the repository.

    Inputs:
      - binary: git executable.
      - remote: Remote whose URL feeds compare links.
      - rev: Revision the log starts from.
      - provider: Compare provider alias (e.g. 'github', 'bb') for remotes
        on self-hosted instances; None matches on the remote host name.
    """

    binary: str = Field(default="git")
    remote: str = Field(default="origin")
    rev: str = Field(default="HEAD")
    provider: Optional[str] = Field(default=None)

    @field_validator("provider", mode="after")
    @classmethod
    def known_provider(cls, v: Optional[str]) -> Optional[str]:
        """Reject provider aliases that are not registered."""
        if v is not None:
            try:
                get_provider_class(v)
            except KeyError as exc:
                raise ValueError(exc.args[0]) from exc
        return v


class ChangelogSettings(BaseModel):
    """Brief: Output options.

    Inputs:
      - include_prereleases: Let pre-release markers close buckets.
      - preamble: Print the '# Changelog' header in full output.
      - link_references: Print bracketed headings and compare link lines.
    """

    include_prereleases: bool = Field(default=False)
    preamble: bool = Field(default=True)
    link_references: bool = Field(default=True)


class Settings(BaseModel):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    git: GitSettings = Field(default_factory=GitSettings)
    changelog: ChangelogSettings = Field(default_factory=ChangelogSettings)


def load_settings(cfg: Dict[str, Any]) -> Settings:
    """Brief: Build typed settings from a validated config mapping.

    Inputs:
      - cfg: Config mapping; sections may be missing or null.

    Outputs:
      - Settings.

    Raises:
      - ValueError: When a value has the wrong type.
    """

    sections = {k: v for k, v in cfg.items() if v is not None}
    try:
        return Settings(**sections)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Brief: Read and schema-validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML file.

    Outputs:
      - dict: Parsed configuration mapping (empty for an empty file).

    Raises:
      - ValueError: When the root is not a mapping or validation fails.
      - OSError: When the file cannot be read.
    """

    with open(config_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError("Configuration root must be a mapping")

    validate_config(cfg, config_path=config_path)
    return cfg


def resolve_config_path(explicit: Optional[str], cwd: Optional[str] = None) -> Optional[str]:
    """Brief: Pick the config file to load.

    Inputs:
      - explicit: Path given on the command line, if any.
      - cwd: Directory searched for the default file (process cwd when None).

    Outputs:
      - Path string, or None when no config should be read.
    """

    if explicit:
        return explicit
    candidate = os.path.join(cwd or os.getcwd(), DEFAULT_CONFIG_NAME)
    if os.path.isfile(candidate):
        return candidate
    return None


def parse_config_file(config_path: Optional[str]) -> Settings:
    """Brief: Read (when given) and materialize the configuration.

    Inputs:
      - config_path: YAML path or None for all defaults.

    Outputs:
      - Settings.
    """

    if config_path is None:
        return Settings()
    cfg = read_config_file(config_path)
    settings = load_settings(cfg)
    logger.debug("Loaded config from %s: %s", config_path, settings)
    return settings
