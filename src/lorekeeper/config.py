"""
Runtime configuration for lorekeeper.

Settings come from environment variables, optionally seeded from a `.env`
file in the working directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .catalog.loader import DEFAULT_READ_CONCURRENCY
from .catalog.models import Ruleset


logger = logging.getLogger("lorekeeper")

ENV_PREFIX = "LOREKEEPER_"


class CatalogSettings(BaseModel):
    """Where content lives and how ingestion behaves."""
    data_dir: Path = Field(default=Path("data"), description="Root of the official content tree")
    homebrew_dir: Path | None = Field(default=None, description="Homebrew overlay root (index.json)")
    read_concurrency: int = Field(default=DEFAULT_READ_CONCURRENCY, ge=1, description="Max in-flight file reads")
    preferred_ruleset: Ruleset | None = Field(default=Ruleset.EDITION_2024, description="Edition preferred on name ties")
    log_level: str = Field(default="INFO", description="Logging level name")

    @field_validator("preferred_ruleset", mode="before")
    @classmethod
    def _parse_ruleset(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in ("", "any"):
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> "CatalogSettings":
        """
        Build settings from LOREKEEPER_* environment variables.

        Args:
            env_file: Optional .env file; defaults to python-dotenv's lookup

        Returns:
            Validated settings (defaults for anything unset)
        """
        if not load_dotenv(env_file):
            logger.debug("No .env file loaded, using process environment only")

        values: dict[str, object] = {}
        mapping = {
            "DATA_DIR": "data_dir",
            "HOMEBREW_DIR": "homebrew_dir",
            "READ_CONCURRENCY": "read_concurrency",
            "PREFERRED_RULESET": "preferred_ruleset",
            "LOG_LEVEL": "log_level",
        }
        for env_name, field_name in mapping.items():
            value = os.getenv(f"{ENV_PREFIX}{env_name}")
            if value:
                values[field_name] = value
        return cls(**values)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for hosts that embed the catalog."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


__all__ = [
    "CatalogSettings",
    "configure_logging",
    "DEFAULT_READ_CONCURRENCY",
]
