from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tree_digest.config import DEFAULT_MAX_SIZE_KB
from tree_digest.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "TREE_DIGEST_"
ENV_FIELDS = ("max_size", "pattern", "pattern_type", "log_file")


class Settings(BaseModel):
    """Configuration settings for the tree_digest command line."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    source: str = Field(..., description="GitHub URL or local path to ingest.")
    output: Path | None = Field(default=None, description="Output file; stdout when unset.")
    max_size: int = Field(default=DEFAULT_MAX_SIZE_KB, ge=0, description="Maximum file size in KB.")
    pattern: str = Field(default="", description="Comma list of include/exclude patterns.")
    pattern_type: Literal["include", "exclude"] = Field(
        default="exclude",
        description="How `pattern` is applied.",
    )
    branch: str | None = Field(default=None, description="Branch to clone.")
    commit: str | None = Field(default=None, description="Commit to check out.")
    subpath: str | None = Field(default=None, description="Scope the scan to this sub-path.")
    config: Path | None = Field(default=None, description="YAML settings file.")
    log_file: str = Field(default="", description="Log file path.")

    @field_validator("pattern_type", mode="before")
    @classmethod
    def _normalize_pattern_type(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def max_file_size(self) -> int:
        """Per-file content ceiling in bytes."""
        return self.max_size * 1024


def env_defaults(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect `TREE_DIGEST_*` settings from the environment.

    A `.env` file found from the working directory is loaded first, without
    overriding variables that are already set.

    Args:
        environ (Mapping[str, str] | None): environment to read; defaults to `os.environ`

    Returns:
        dict[str, str]: settings field name to raw value
    """
    if environ is None:
        if ENV_FILE:
            load_dotenv(ENV_FILE, override=False)
        environ = os.environ
    out: dict[str, str] = {}
    for name in ENV_FIELDS:
        value = environ.get(ENV_PREFIX + name.upper())
        if value:
            out[name] = value
    return out


def load_config_file(path: Path) -> dict[str, Any]:
    """Read settings from a YAML mapping.

    Args:
        path (Path): the YAML file

    Raises:
        ConfigurationError: if the file is missing, unparsable or not a mapping

    Returns:
        dict[str, Any]: the settings it defines, keys normalized to field names
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(message=f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(message=f"Config file {path} must contain a mapping")
    out = {str(k).replace("-", "_"): v for k, v in data.items()}
    if isinstance(out.get("pattern"), list):
        out["pattern"] = ",".join(str(p) for p in out["pattern"])
    return out


def build_settings(cli_values: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> Settings:
    """Merge defaults, environment, config file and command-line values.

    Later sources win: environment, then the YAML file named by `config`,
    then values given explicitly on the command line (None means "not given").

    Args:
        cli_values (Mapping[str, Any]): parsed command-line values
        environ (Mapping[str, str] | None): environment to read; defaults to `os.environ`

    Raises:
        ConfigurationError: if the merged values are invalid

    Returns:
        Settings: the validated settings
    """
    merged: dict[str, Any] = dict(env_defaults(environ))
    config = cli_values.get("config")
    if config:
        merged.update(load_config_file(Path(config)))
    merged.update({k: v for k, v in cli_values.items() if v is not None})
    try:
        return Settings(**merged)
    except ValidationError as e:
        raise ConfigurationError(message=f"Invalid settings: {e}") from e
