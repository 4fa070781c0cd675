from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

from export_codebase.config import DEFAULT_IGNORE_FILE, DEFAULT_OUTPUT_FILENAME

ENV_PREFIX = "EXPORT_CODEBASE_"
_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Configuration settings for one export_codebase run."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    root: Path = Field(default_factory=Path.cwd, description="Project root to export.")
    output: Path = Field(
        default=Path(DEFAULT_OUTPUT_FILENAME),
        description="Output file, relative to the project root.",
    )
    include_hidden: bool = Field(
        default=False,
        description="Process hidden files and folders (names starting with '.').",
    )
    silent: bool = Field(default=False, description="Suppress informational logs.")
    ignore_file: str = Field(
        default=DEFAULT_IGNORE_FILE,
        description="Ignore file name, relative to the project root.",
    )
    case_sensitive: bool | None = Field(
        default=None,
        description="Case-sensitive path matching; None follows the host filesystem.",
    )
    max_workers: int | None = Field(default=None, ge=1, description="Thread pool size for reads.")
    log_file: str = Field(default="", description="Log file path.")

    @property
    def output_path(self) -> Path:
        """Absolute location of the output artifact."""
        return (self.root / self.output).resolve()


def env_defaults(env_file: str | None = None) -> dict[str, Any]:
    """Collect setting defaults from a `.env` file and the process environment.

    The process environment wins over the `.env` file. Only variables with the
    `EXPORT_CODEBASE_` prefix are considered and `os.environ` is left untouched.

    Args:
        env_file (str | None): explicit `.env` path; located with `find_dotenv` when None

    Returns:
        dict[str, Any]: keyword arguments suitable for `Settings`
    """
    path = env_file if env_file is not None else find_dotenv(usecwd=True)
    values: dict[str, str | None] = dict(dotenv_values(path)) if path else {}
    values.update({k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)})

    out: dict[str, Any] = {}
    for key in ("output", "ignore_file"):
        raw = values.get(ENV_PREFIX + key.upper())
        if raw:
            out[key] = raw
    for key in ("include_hidden", "silent"):
        raw = values.get(ENV_PREFIX + key.upper())
        if raw is not None:
            out[key] = raw.strip().lower() in _TRUTHY
    return out
