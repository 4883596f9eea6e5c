"""
File access for catalog ingestion.

The loader only talks to a FileProvider, so tests and alternative hosts can
feed documents from anywhere. LocalFileProvider reads JSON and YAML files
below a root directory, doing blocking I/O and parsing off the event loop.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol

import yaml

from .catalog import CatalogError


class FileAccessError(CatalogError):
    """A content file could not be listed, read or parsed."""
    pass


class MissingFileError(FileAccessError):
    """The requested file or directory does not exist."""
    pass


class FileProvider(Protocol):
    """Source of parsed content documents, addressed by relative path."""

    async def read(self, path: str) -> Any:
        """Read and parse one document. Raises FileAccessError on any failure."""
        ...

    async def list_files(self, directory: str, suffix: str = ".json") -> list[str]:
        """Relative paths of the files in `directory` ending with `suffix`."""
        ...


class LocalFileProvider:
    """
    FileProvider over a local directory tree.

    Files ending in .yaml/.yml are parsed with PyYAML, everything else as JSON.
    """

    YAML_SUFFIXES = {".yaml", ".yml"}

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / path

    async def read(self, path: str) -> Any:
        return await asyncio.to_thread(self._read_sync, path)

    def _read_sync(self, path: str) -> Any:
        full_path = self._resolve(path)
        try:
            raw = full_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise MissingFileError(f"No such file: {full_path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise FileAccessError(f"Failed to read {full_path}: {e}") from e

        try:
            if full_path.suffix.lower() in self.YAML_SUFFIXES:
                return yaml.safe_load(raw)
            return json.loads(raw)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise FileAccessError(f"Failed to parse {full_path}: {e}") from e

    async def list_files(self, directory: str, suffix: str = ".json") -> list[str]:
        return await asyncio.to_thread(self._list_sync, directory, suffix)

    def _list_sync(self, directory: str, suffix: str) -> list[str]:
        full_dir = self._resolve(directory)
        try:
            names = sorted(p.name for p in full_dir.iterdir() if p.is_file())
        except FileNotFoundError as e:
            raise MissingFileError(f"No such directory: {full_dir}") from e
        except OSError as e:
            raise FileAccessError(f"Failed to list {full_dir}: {e}") from e
        return [f"{directory}/{name}" for name in names if name.endswith(suffix)]

    def __repr__(self) -> str:
        return f"LocalFileProvider(root={self.root})"


__all__ = [
    "FileAccessError",
    "MissingFileError",
    "FileProvider",
    "LocalFileProvider",
]
