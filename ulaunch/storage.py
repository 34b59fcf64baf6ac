"""File system helpers and the on-disk layout of launcher data."""

from __future__ import annotations

import json
import os
import shutil
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Union

from .convert import format_application_id, format_uid
from .results import ResultError, result_by_name

PathLike = Union[str, "os.PathLike[str]"]

SD_BASE_DIR = "sdmc:/ulaunch"
DB_BASE_DIR = "qsave:/ulaunch"


@dataclass
class Layout:
    """Where the launcher keeps its SD card data and its save data."""

    base_dir: Path = Path(SD_BASE_DIR)
    db_dir: Path = Path(DB_BASE_DIR)

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir)
        self.db_dir = Path(self.db_dir)

    def entries_path(self) -> Path:
        return self.base_dir / "entries"

    def themes_path(self) -> Path:
        return self.base_dir / "themes"

    def config_path(self) -> Path:
        return self.base_dir / "config.json"

    def title_icon_path(self, app_id: int) -> Path:
        return self.base_dir / "title" / f"{format_application_id(app_id)}.jpg"

    def nro_icon_path(self, nro_path: PathLike) -> Path:
        return self.base_dir / "nro" / f"{get_file_size(nro_path)}.jpg"

    def user_icon_path(self, user_id: int) -> Path:
        return self.base_dir / "user" / f"{format_uid(user_id)}.jpg"

    def password_path(self, user_id: int) -> Path:
        return self.db_dir / "user" / f"{format_uid(user_id)}.pass"


def exists_file(path: PathLike) -> bool:
    """Return whether ``path`` is an existing regular file."""
    return os.path.isfile(path)


def exists_directory(path: PathLike) -> bool:
    """Return whether ``path`` is an existing directory."""
    return os.path.isdir(path)


def create_directory(path: PathLike) -> None:
    """Create a single directory; failures are ignored."""
    with suppress(OSError):
        os.mkdir(path)


def create_file(path: PathLike) -> None:
    """Create an empty file if it does not exist; failures are ignored."""
    with suppress(OSError):
        with open(path, "xb"):
            pass


def delete_directory(path: PathLike) -> None:
    """Delete a directory and everything below it; failures are ignored."""
    shutil.rmtree(path, ignore_errors=True)


def delete_file(path: PathLike) -> None:
    """Delete a file; failures are ignored."""
    with suppress(OSError):
        os.remove(path)


def write_file(path: PathLike, data: bytes, overwrite: bool = True) -> None:
    """Write ``data`` to ``path``, replacing or appending. Raises OSError."""
    with open(path, "wb" if overwrite else "ab") as handle:
        handle.write(data)


def read_file(path: PathLike, size: int | None = None) -> bytes:
    """Read up to ``size`` bytes (all if None) from ``path``. Raises OSError."""
    with open(path, "rb") as handle:
        return handle.read() if size is None else handle.read(size)


def get_file_size(path: PathLike) -> int:
    """Return the size of a file, or 0 if it cannot be opened."""
    try:
        with open(path, "rb") as handle:
            return handle.seek(0, os.SEEK_END)
    except OSError:
        return 0


def _iter_entries(directory: PathLike, want_dirs: bool) -> Iterator[tuple[str, str]]:
    base = os.fspath(directory)
    try:
        entries = list(os.scandir(base))
    except OSError:
        return
    for entry in entries:
        matches = (
            entry.is_dir(follow_symlinks=False)
            if want_dirs
            else entry.is_file(follow_symlinks=False)
        )
        if matches:
            yield entry.name, os.path.join(base, entry.name)


def iter_files(directory: PathLike) -> Iterator[tuple[str, str]]:
    """Yield ``(name, path)`` for each regular file directly in ``directory``."""
    return _iter_entries(directory, want_dirs=False)


def iter_directories(directory: PathLike) -> Iterator[tuple[str, str]]:
    """Yield ``(name, path)`` for each subdirectory directly in ``directory``."""
    return _iter_entries(directory, want_dirs=True)


def move_file(src: PathLike, dst: PathLike) -> None:
    """Move a file; failures are ignored."""
    with suppress(OSError):
        os.replace(src, dst)


def copy_file(src: PathLike, dst: PathLike) -> None:
    """Copy a file's contents; failures are ignored."""
    with suppress(OSError):
        shutil.copyfile(src, dst)


def _transfer_directory(copy: bool, src: PathLike, dst: PathLike) -> None:
    create_directory(dst)
    src_text, dst_text = os.fspath(src), os.fspath(dst)
    try:
        entries = list(os.scandir(src_text))
    except OSError:
        entries = []
    for entry in entries:
        source = os.path.join(src_text, entry.name)
        target = os.path.join(dst_text, entry.name)
        if entry.is_dir(follow_symlinks=False):
            _transfer_directory(copy, source, target)
        elif entry.is_file(follow_symlinks=False):
            (copy_file if copy else move_file)(source, target)
    if not copy:
        delete_directory(src)


def move_directory(src: PathLike, dst: PathLike) -> None:
    """Move a directory tree into ``dst`` and remove the source."""
    _transfer_directory(False, src, dst)


def copy_directory(src: PathLike, dst: PathLike) -> None:
    """Copy a directory tree into ``dst``."""
    _transfer_directory(True, src, dst)


def load_json(path: PathLike) -> Any:
    """Load a JSON document; raise ResultError(InvalidJSONFile) on failure."""
    try:
        with open(path, encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, ValueError) as exc:
        raise ResultError(result_by_name("Misc", "InvalidJSONFile")) from exc


def current_time(now: datetime | None = None) -> str:
    """Return the local time as ``HH:MM``."""
    moment = now if now is not None else datetime.now()
    return f"{moment.hour:02d}:{moment.minute:02d}"