"""Title records: installed applications and homebrew entries, their folders and files."""

from __future__ import annotations

import copy
import json
import struct
from contextlib import suppress
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Iterable

from .convert import format_application_id, parse_hex_u64
from .protocol import TargetInput
from .results import ResultError
from .storage import (
    Layout,
    PathLike,
    delete_file,
    exists_file,
    get_file_size,
    iter_directories,
    iter_files,
    load_json,
    write_file,
)

DEFAULT_HOMEBREW_DIR = "sdmc:/switch"

NACP_SIZE = 0x4000
NACP_LANGUAGE_COUNT = 16
_LANG_ENTRY_SIZE = 0x300
_LANG_NAME_SIZE = 0x200
_NACP_VERSION_OFFSET = 0x3060
_NACP_VERSION_SIZE = 0x10

_NRO_START_SIZE = 0x10
_NRO_HEADER_SIZE = 0x70
_NRO_HEADER_SIZE_FIELD = struct.Struct("<I")
_NRO_HEADER_SIZE_OFFSET = 8
_ASSET_HEADER = struct.Struct("<IIQQQQQQ")
_ASSET_MAGIC = 0x54455341
_ASSET_SECTIONS = ("icon", "nacp", "romfs")


class TitleType(IntEnum):
    INVALID = 0
    INSTALLED = 1
    HOMEBREW = 2


@dataclass
class TitleRecord:
    """An entry of the menu: an installed title or a homebrew executable."""

    json_name: str = ""
    title_type: TitleType = TitleType.INVALID
    sub_folder: str = ""
    icon: str = ""
    app_id: int = 0
    nro_target: TargetInput = field(default_factory=TargetInput)
    name: str = ""
    author: str = ""
    version: str = ""


@dataclass
class TitleFolder:
    name: str = ""
    titles: list[TitleRecord] = field(default_factory=list)


@dataclass
class TitleList:
    root: TitleFolder = field(default_factory=TitleFolder)
    folders: list[TitleFolder] = field(default_factory=list)


@dataclass
class LanguageEntry:
    name: str = ""
    author: str = ""


def _cstr(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _empty_entries() -> list[LanguageEntry]:
    return [LanguageEntry() for _ in range(NACP_LANGUAGE_COUNT)]


@dataclass
class Nacp:
    """The parts of an application control property block the menu shows."""

    entries: list[LanguageEntry] = field(default_factory=_empty_entries)
    version: str = ""

    @classmethod
    def from_bytes(cls, data: bytes) -> Nacp:
        """Parse a control block; shorter data is zero-padded."""
        raw = bytes(data[:NACP_SIZE]).ljust(NACP_SIZE, b"\0")
        entries = [
            LanguageEntry(
                name=_cstr(raw[start : start + _LANG_NAME_SIZE]),
                author=_cstr(raw[start + _LANG_NAME_SIZE : start + _LANG_ENTRY_SIZE]),
            )
            for start in range(0, NACP_LANGUAGE_COUNT * _LANG_ENTRY_SIZE, _LANG_ENTRY_SIZE)
        ]
        version = _cstr(
            raw[_NACP_VERSION_OFFSET : _NACP_VERSION_OFFSET + _NACP_VERSION_SIZE]
        )
        return cls(entries=entries, version=version)


@dataclass
class RecordInformation:
    nacp: Nacp = field(default_factory=Nacp)
    icon_path: str = ""


def read_nro_asset(path: PathLike, kind: str) -> bytes | None:
    """Read the ``icon``, ``nacp`` or ``romfs`` asset section of an NRO file.

    Returns None if the file cannot be read, has no asset header, the section
    is empty or the file ends early.
    """
    if kind not in _ASSET_SECTIONS:
        raise ValueError(f"unknown asset section {kind!r}")
    try:
        with open(path, "rb") as handle:
            handle.seek(_NRO_START_SIZE)
            header = handle.read(_NRO_HEADER_SIZE)
            if len(header) != _NRO_HEADER_SIZE:
                return None
            (nro_size,) = _NRO_HEADER_SIZE_FIELD.unpack_from(header, _NRO_HEADER_SIZE_OFFSET)
            handle.seek(nro_size)
            asset_raw = handle.read(_ASSET_HEADER.size)
            if len(asset_raw) != _ASSET_HEADER.size:
                return None
            magic, _version, *sections = _ASSET_HEADER.unpack(asset_raw)
            if magic != _ASSET_MAGIC:
                return None
            index = _ASSET_SECTIONS.index(kind)
            offset, size = sections[2 * index], sections[2 * index + 1]
            if size == 0:
                return None
            handle.seek(nro_size + offset)
            data = handle.read(size)
    except OSError:
        return None
    return data if len(data) == size else None


def cache_homebrew(layout: Layout, nro_path: PathLike) -> None:
    """Extract the icon of an NRO into the icon cache, if it has one."""
    icon = read_nro_asset(nro_path, "icon")
    if icon:
        with suppress(OSError):
            write_file(layout.nro_icon_path(nro_path), icon, True)


def query_all_homebrew(base: PathLike = DEFAULT_HOMEBREW_DIR) -> list[TitleRecord]:
    """Find every ``.nro`` below ``base``; results from subdirectories come first."""
    records = [
        TitleRecord(title_type=TitleType.HOMEBREW, nro_target=TargetInput(nro_path=path))
        for name, path in iter_files(base)
        if name.endswith(".nro")
    ]
    for _name, path in iter_directories(base):
        found = query_all_homebrew(path)
        if found:
            records[0:0] = found
    return records


def record_icon_path(layout: Layout, record: TitleRecord) -> str:
    """Return the custom icon of a record, or its cached icon path."""
    if record.icon:
        return record.icon
    if record.title_type == TitleType.HOMEBREW:
        return str(layout.nro_icon_path(record.nro_target.nro_path))
    return str(layout.title_icon_path(record.app_id))


def record_information(
    layout: Layout, record: TitleRecord, installed_nacp: Nacp | None = None
) -> RecordInformation:
    """Gather display information for a record.

    Homebrew reads its control data from the NRO; installed titles use
    ``installed_nacp``. Names, authors and version set on the record win.
    """
    if record.title_type == TitleType.HOMEBREW:
        data = read_nro_asset(record.nro_target.nro_path, "nacp")
        nacp = Nacp.from_bytes(data) if data else Nacp()
    else:
        nacp = copy.deepcopy(installed_nacp) if installed_nacp is not None else Nacp()
    if record.name:
        for entry in nacp.entries:
            entry.name = record.name
    if record.author:
        for entry in nacp.entries:
            entry.author = record.author
    if record.version:
        nacp.version = record.version
    return RecordInformation(nacp=nacp, icon_path=record_icon_path(layout, record))


def language_entry(info: RecordInformation) -> LanguageEntry | None:
    """Return the first language entry with both a name and an author."""
    return next(
        (entry for entry in info.nacp.entries if entry.name and entry.author), None
    )


def _record_json_path(layout: Layout, record: TitleRecord) -> Path:
    base = layout.entries_path()
    if record.title_type == TitleType.HOMEBREW:
        default = f"{get_file_size(record.nro_target.nro_path)}.json"
    elif record.title_type == TitleType.INSTALLED:
        default = f"{format_application_id(record.app_id)}.json"
    else:
        default = ""
    if default and not record.json_name:
        record.json_name = default
    return base / record.json_name if record.json_name else base


def save_record(layout: Layout, record: TitleRecord) -> None:
    """Write a record's entry file; fills in ``json_name`` if it is empty."""
    entry: dict[str, Any] = {"type": int(record.title_type), "folder": record.sub_folder}
    if record.name:
        entry["name"] = record.name
    if record.author:
        entry["author"] = record.author
    if record.version:
        entry["version"] = record.version
    if record.title_type == TitleType.HOMEBREW:
        target = record.nro_target
        entry["nro_path"] = target.nro_path
        if target.argv and target.argv != target.nro_path:
            entry["nro_argv"] = target.argv
        if record.icon:
            entry["icon"] = record.icon
    elif record.title_type == TitleType.INSTALLED:
        entry["application_id"] = format_application_id(record.app_id)
    path = _record_json_path(layout, record)
    if exists_file(path):
        delete_file(path)
    with suppress(OSError):
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, indent=4, sort_keys=True, ensure_ascii=False))


def remove_record(layout: Layout, record: TitleRecord) -> None:
    """Delete a record's entry file; fills in ``json_name`` if it is empty."""
    delete_file(_record_json_path(layout, record))


def _matches(candidate: TitleRecord, record: TitleRecord) -> bool:
    if candidate.title_type != record.title_type:
        return False
    if record.title_type == TitleType.INSTALLED:
        return candidate.app_id == record.app_id
    return candidate.nro_target.nro_path == record.nro_target.nro_path


def _first_match(records: list[TitleRecord], record: TitleRecord) -> int | None:
    return next(
        (index for index, candidate in enumerate(records) if _matches(candidate, record)),
        None,
    )


def _add_to_folder(titles: TitleList, record: TitleRecord, folder: str) -> None:
    if not folder:
        titles.root.titles.append(record)
        return
    existing = next((fld for fld in titles.folders if fld.name == folder), None)
    if existing is None:
        titles.folders.append(TitleFolder(name=folder, titles=[record]))
    else:
        existing.titles.append(record)


def move_record_to(
    layout: Layout, titles: TitleList, record: TitleRecord, folder: str
) -> bool:
    """Move a record to a folder (root if empty) and save it.

    Returns False if the record is not in the list; True if it was moved or
    already was there.
    """
    json_name: str | None = None
    index = _first_match(titles.root.titles, record)
    if index is not None:
        if not folder:
            return True
        json_name = titles.root.titles.pop(index).json_name
    else:
        for fld in titles.folders:
            index = _first_match(fld.titles, record)
            if index is not None:
                if fld.name == folder:
                    return True
                json_name = fld.titles.pop(index).json_name
                break
    if json_name is None:
        return False
    moved = copy.deepcopy(record)
    moved.json_name = json_name
    moved.sub_folder = folder
    _add_to_folder(titles, moved, folder)
    save_record(layout, copy.deepcopy(moved))
    return True


def find_folder_by_name(titles: TitleList, name: str) -> TitleFolder:
    """Return the folder with this name, or the root folder."""
    if name:
        found = next((fld for fld in titles.folders if fld.name == name), None)
        if found is not None:
            return found
    return titles.root


def exists_record(titles: TitleList, record: TitleRecord) -> bool:
    """Return whether the record is in the list with an entry file of its own."""

    def saved_in(records: list[TitleRecord]) -> bool:
        index = _first_match(records, record)
        return index is not None and bool(records[index].json_name)

    return saved_in(titles.root.titles) or any(
        saved_in(fld.titles) for fld in titles.folders
    )


def _value(entry: dict, key: str, default: Any) -> Any:
    value = entry.get(key, default)
    return value if isinstance(value, type(default)) else default


def _load_installed_entry(titles: TitleList, name: str, entry: dict) -> None:
    app_id_text = _value(entry, "application_id", "")
    if not app_id_text:
        return
    folder = _value(entry, "folder", "")
    app_id = parse_hex_u64(app_id_text)
    if app_id == 0 or not folder:
        return
    record = TitleRecord(
        json_name=name,
        app_id=app_id,
        title_type=TitleType.INSTALLED,
        name=_value(entry, "name", ""),
        author=_value(entry, "author", ""),
        version=_value(entry, "version", ""),
    )
    root = titles.root.titles
    index = next((i for i, title in enumerate(root) if title.app_id == app_id), None)
    if index is not None:
        del root[index]
    _add_to_folder(titles, record, folder)


def _load_homebrew_entry(
    layout: Layout, titles: TitleList, name: str, entry: dict, cache: bool
) -> None:
    nro_path = _value(entry, "nro_path", "")
    if not nro_path:
        return
    argv = nro_path
    extra = _value(entry, "nro_argv", "")
    if extra:
        argv += " " + extra
    folder = _value(entry, "folder", "")
    record = TitleRecord(
        json_name=name,
        title_type=TitleType.HOMEBREW,
        name=_value(entry, "name", ""),
        author=_value(entry, "author", ""),
        version=_value(entry, "version", ""),
        nro_target=TargetInput(nro_path=nro_path, argv=argv),
        sub_folder=folder,
        icon=_value(entry, "icon", ""),
    )
    if cache:
        cache_homebrew(layout, nro_path)
    _add_to_folder(titles, record, folder)


def load_title_list(
    layout: Layout, installed: Iterable[TitleRecord], cache: bool = False
) -> TitleList:
    """Build the menu's title list from installed titles and the entry files."""
    titles = TitleList()
    titles.root.titles.extend(copy.deepcopy(record) for record in installed)
    for name, path in iter_files(layout.entries_path()):
        try:
            entry = load_json(path)
        except ResultError:
            continue
        if not isinstance(entry, dict):
            continue
        kind = _value(entry, "type", 0)
        if kind == TitleType.INSTALLED:
            _load_installed_entry(titles, name, entry)
        elif kind == TitleType.HOMEBREW:
            _load_homebrew_entry(layout, titles, name, entry, cache)
    return titles