from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field


ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "REPO_VIEWER_"
_TRUTHY = {"1", "true", "yes", "on"}


def env_value(name: str, env_file: str | None = None) -> str | None:
    """Read ``REPO_VIEWER_<name>`` from the environment, then from the ``.env`` file.

    Args:
        name (str): the variable name without prefix
        env_file (str | None): the ``.env`` file to read. Defaults to ENV_FILE.

    Returns:
        str | None: the value, or None when unset in both places
    """
    key = ENV_PREFIX + name
    if key in os.environ:
        return os.environ[key]
    env_file = ENV_FILE if env_file is None else env_file
    if not env_file:
        return None
    return dotenv_values(env_file).get(key)


def env_flag(name: str) -> bool:
    value = env_value(name)
    return value is not None and value.strip().lower() in _TRUTHY


class Settings(BaseModel):
    """Configuration settings for the repo_viewer command."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: Path = Field(default_factory=Path.cwd, description="Directory to browse.")
    tree: bool = Field(default=False, description="Print the directory tree and exit.")
    depth: int | None = Field(default=None, ge=0, description="Tree depth for --tree (None = unbounded).")
    hidden: bool = Field(default_factory=lambda: env_flag("SHOW_HIDDEN"), description="Show hidden files.")
    all: bool = Field(
        default_factory=lambda: env_flag("SHOW_IGNORED"),
        description="Show files ignored by .gitignore.",
    )
    log_file: str = Field(default_factory=lambda: env_value("LOG_FILE") or "", description="Log file path.")
