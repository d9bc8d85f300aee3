"""Writes rendered files into the project tree.

Parent directories are never created implicitly: the project tree comes from
the external tools, and the one directory the scaffolder adds
(``rust/src/api``) is created explicitly with :meth:`FileMaterializer.make_dir`.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from enum import Enum
from pathlib import Path

_DEFAULT_FILE_MODE = 0o644


class WriteMode(str, Enum):
    """How :meth:`FileMaterializer.write` treats the target path."""

    TRUNCATE = "truncate"
    """Create the file, or replace an existing one."""

    CREATE = "create"
    """Create a new file; fail if it already exists."""


class FilesystemError(Exception):
    """Raised when a file or directory cannot be written."""

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot write {path}: {cause.strerror or cause}")


class FileMaterializer:
    """Writes text files with whole-file replacement semantics."""

    async def write(self, path: str | Path, contents: str, mode: WriteMode = WriteMode.TRUNCATE) -> Path:
        """Write *contents* to *path*.

        Returns:
            The written path.

        Raises:
            FilesystemError: If the parent directory is missing, the file
                exists in ``CREATE`` mode, or the OS refuses the write.
        """
        target = Path(path)
        try:
            if mode is WriteMode.CREATE:
                await asyncio.to_thread(_create_new, target, contents)
            else:
                await asyncio.to_thread(_replace, target, contents)
        except OSError as exc:
            raise FilesystemError(target, exc) from exc
        return target

    async def make_dir(self, path: str | Path) -> Path:
        """Create exactly one directory level; the parent must already exist."""
        target = Path(path)
        try:
            await asyncio.to_thread(target.mkdir)
        except OSError as exc:
            raise FilesystemError(target, exc) from exc
        return target


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _create_new(path: Path, contents: str) -> None:
    with open(path, "x", encoding="utf-8", newline="") as fh:
        fh.write(contents)


def _replace(path: Path, contents: str) -> None:
    """Write to a sibling temp file, then atomically move it over *path*."""
    if not path.parent.is_dir():
        raise FileNotFoundError(2, "No such file or directory", str(path.parent))

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(contents)
        # mkstemp creates 0600 files; keep the existing mode or use 0644.
        mode = path.stat().st_mode & 0o777 if path.exists() else _DEFAULT_FILE_MODE
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
