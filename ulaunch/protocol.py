"""Messages and command framing exchanged between the daemon and the menu."""

from __future__ import annotations

import struct
import threading
from collections import deque
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable

MAGIC = 0x434D4151
"""Magic value at the start of every command header."""

BLOCK_SIZE = 0x4000
"""Size of the data block that follows a command header."""

SAMS_MAGIC = 0x534D4153
"""Magic of a system applet message."""

DAEMON_SERVICE_NAME = "qdmnsrv"
HBMENU_PATH = "sdmc:/hbmenu.nro"

_HEADER = struct.Struct("<II")
_PATH_FIELD_SIZE = 2048

WriteFn = Callable[[bytes, bool], None]
ReadFn = Callable[[int, bool], bytes]


class MenuStartMode(IntEnum):
    INVALID = 0
    STARTUP_SCREEN = 1
    MENU = 2
    MENU_APPLICATION_SUSPENDED = 3
    MENU_LAUNCH_FAILURE = 4


class MenuMessage(IntEnum):
    INVALID = 0
    HOME_REQUEST = 1


class DaemonMessage(IntEnum):
    INVALID = 0
    SET_SELECTED_USER = 1
    LAUNCH_APPLICATION = 2
    RESUME_APPLICATION = 3
    TERMINATE_APPLICATION = 4
    GET_SUSPENDED_INFO = 5
    LAUNCH_HOMEBREW_LIB_APPLET = 6
    LAUNCH_HOMEBREW_APPLICATION = 7
    OPEN_WEB_PAGE = 8
    GET_SELECTED_USER = 9
    USER_HAS_PASSWORD = 10
    TRY_LOG_USER = 11
    REGISTER_USER_PASSWORD = 12
    CHANGE_USER_PASSWORD = 13
    REMOVE_USER_PASSWORD = 14


class GeneralChannelMessage(IntEnum):
    INVALID = 0
    HOME_BUTTON = 2
    SLEEP = 3
    SHUTDOWN = 5
    REBOOT = 6
    OVERLAY_BRIGHT_VALUE_CHANGED = 13
    OVERLAY_AUTO_BRIGHTNESS_CHANGED = 14
    OVERLAY_AIRPLANE_MODE_CHANGED = 15
    HOME_BUTTON_HOLD = 16
    OVERLAY_HIDDEN = 17


class AppletMessage(IntEnum):
    INVALID = 0
    EXIT = 4
    FOCUS_STATE_CHANGE = 0xF
    HOME_BUTTON = 0x14
    POWER_BUTTON = 22
    BACK_FROM_SLEEP = 26
    CHANGE_OPERATION_MODE = 0x1E
    CHANGE_PERFORMANCE_MODE = 0x1F
    SD_CARD_OUT = 33


class ChannelError(Exception):
    """A channel had nothing to read, or too little."""


def _encode_field(text: str, name: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) >= _PATH_FIELD_SIZE:
        raise ValueError(f"{name} must be shorter than {_PATH_FIELD_SIZE} bytes")
    return raw.ljust(_PATH_FIELD_SIZE, b"\0")


def _decode_field(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass
class TargetInput:
    """The homebrew executable to load and its argument string."""

    nro_path: str = ""
    argv: str = ""

    SIZE = 2 * _PATH_FIELD_SIZE

    def to_bytes(self) -> bytes:
        """Serialise as two NUL-padded 2048-byte fields."""
        return _encode_field(self.nro_path, "nro_path") + _encode_field(self.argv, "argv")

    @classmethod
    def from_bytes(cls, data: bytes) -> TargetInput:
        """Parse two NUL-terminated 2048-byte fields."""
        if len(data) < cls.SIZE:
            raise ValueError(f"target input needs {cls.SIZE} bytes, got {len(data)}")
        return cls(
            nro_path=_decode_field(data[:_PATH_FIELD_SIZE]),
            argv=_decode_field(data[_PATH_FIELD_SIZE : cls.SIZE]),
        )


@dataclass
class SystemAppletMessage:
    """A message sent over the general channel to the system applet."""

    message: int = GeneralChannelMessage.INVALID
    magic: int = SAMS_MAGIC
    unk: int = 0

    _STRUCT = struct.Struct("<III")

    def to_bytes(self) -> bytes:
        return self._STRUCT.pack(self.magic, self.unk, int(self.message))

    @classmethod
    def from_bytes(cls, data: bytes) -> SystemAppletMessage:
        if len(data) < cls._STRUCT.size:
            raise ValueError(f"message needs {cls._STRUCT.size} bytes, got {len(data)}")
        magic, unk, message = cls._STRUCT.unpack_from(data)
        try:
            message = GeneralChannelMessage(message)
        except ValueError:
            pass
        return cls(message=message, magic=magic, unk=unk)


class MemoryChannel:
    """An in-memory queue of storages, one storage per write."""

    def __init__(self) -> None:
        self._storages: deque[bytes] = deque()
        self._ready = threading.Condition()

    def __len__(self) -> int:
        with self._ready:
            return len(self._storages)

    def write(self, data: bytes, wait: bool = False) -> None:
        """Push one storage holding ``data``."""
        with self._ready:
            self._storages.append(bytes(data))
            self._ready.notify_all()

    def read(self, size: int, wait: bool = False) -> bytes:
        """Pop one storage and return its first ``size`` bytes.

        Without ``wait`` an empty channel raises ChannelError; with it the
        call blocks until a storage arrives.
        """
        with self._ready:
            if wait:
                self._ready.wait_for(lambda: bool(self._storages))
            elif not self._storages:
                raise ChannelError("no storage available")
            storage = self._storages.popleft()
        if len(storage) < size:
            raise ChannelError(f"storage holds {len(storage)} bytes, {size} requested")
        return storage[:size]


def _normalise_format(fmt: str) -> str:
    return fmt if fmt[:1] in "@=<>!" else "<" + fmt


class CommandWriter:
    """Sends a command header at once and a data block when finished."""

    def __init__(self, write_fn: WriteFn, value: int) -> None:
        self._write_fn = write_fn
        self.value = int(value)
        self._block = bytearray()
        self._done = False
        write_fn(_HEADER.pack(MAGIC, self.value & 0xFFFFFFFF), False)

    def write(self, fmt: str, *args: Any) -> None:
        """Append values packed with a struct format (little-endian by default)."""
        packed = struct.pack(_normalise_format(fmt), *args)
        if len(self._block) + len(packed) > BLOCK_SIZE:
            raise ValueError(f"command data exceeds {BLOCK_SIZE} bytes")
        self._block += packed

    def finish(self) -> None:
        """Send the data block; later calls do nothing."""
        if not self._done:
            self._done = True
            self._write_fn(bytes(self._block).ljust(BLOCK_SIZE, b"\0"), False)

    def __enter__(self) -> CommandWriter:
        return self

    def __exit__(self, *args: Any) -> None:
        self.finish()


class CommandReader:
    """Receives a command header and its data block, then unpacks values."""

    def __init__(self, read_fn: ReadFn, wait: bool = False) -> None:
        self.magic, self.value = _HEADER.unpack(read_fn(_HEADER.size, wait))
        self._block = read_fn(BLOCK_SIZE, wait)
        self._pos = 0

    def read(self, fmt: str) -> Any:
        """Unpack the next values; one value is returned bare, several as a tuple."""
        layout = struct.Struct(_normalise_format(fmt))
        if self._pos + layout.size > len(self._block):
            raise ValueError("read past the end of the command data")
        values = layout.unpack_from(self._block, self._pos)
        self._pos += layout.size
        return values[0] if len(values) == 1 else values


def target_counter(target: TargetInput, once: bool) -> int:
    """How many times a target may be loaded; -1 means without limit.

    The homebrew menu always runs without limit, since opening anything from
    it would otherwise end it.
    """
    if target.nro_path == HBMENU_PATH:
        return -1
    return 1 if once else -1


def resolve_target_input(received: TargetInput | None) -> TargetInput:
    """Fill in defaults for a target received by the loader applet.

    An empty path falls back to the homebrew menu and an empty argument
    string to the path itself.
    """
    result = TargetInput()
    if received is not None and received.nro_path:
        result.nro_path = received.nro_path
        if received.argv:
            result.argv = received.argv
    if not result.nro_path:
        result.nro_path = HBMENU_PATH
    if not result.argv:
        result.argv = result.nro_path
    return result