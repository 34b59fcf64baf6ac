"""Result codes used across the launcher, and the error that carries them."""

from __future__ import annotations

MODULE = 380
"""Module number of every launcher result (displayed as 2380-xxxx)."""

_MODULE_MASK = 0x1FF
_DESCRIPTION_MASK = 0x1FFF
_DESCRIPTION_SHIFT = 9

# Result modules: name -> (base value, {result name: description offset}).
_RESULT_TABLE: dict[str, tuple[int, dict[str, int]]] = {
    "Db": (
        100,
        {
            "InvalidPasswordLength": 1,
            "PasswordNotFound": 2,
            "PasswordAlreadyExists": 3,
            "PasswordWriteFail": 4,
            "PasswordUserMismatch": 5,
            "PasswordMismatch": 6,
        },
    ),
    "Misc": (200, {"InvalidJSONFile": 1}),
    "QDaemon": (
        300,
        {
            "ApplicationActive": 1,
            "InvalidSelectedUser": 2,
            "AlreadyQueued": 3,
            "ApplicationNotActive": 4,
        },
    ),
}


def make_result(module: int, description: int) -> int:
    """Pack a module and description into a result code."""
    return (module & _MODULE_MASK) | ((description & _DESCRIPTION_MASK) << _DESCRIPTION_SHIFT)


def result_module(rc: int) -> int:
    """Return the module part of a result code."""
    return rc & _MODULE_MASK


def result_description(rc: int) -> int:
    """Return the description part of a result code."""
    return (rc >> _DESCRIPTION_SHIFT) & _DESCRIPTION_MASK


def _iter_results():
    for module_name, (base, results) in _RESULT_TABLE.items():
        for result_name, offset in results.items():
            yield module_name, result_name, make_result(MODULE, base + offset)


def result_by_name(module: str, name: str) -> int:
    """Return the result code for a module and result name, or 0 if unknown."""
    return next(
        (rc for mod, res, rc in _iter_results() if mod == module and res == name),
        0,
    )


def description_of(rc: int) -> str:
    """Return "Module - Name" for a known result code, or an empty string."""
    return next(
        (f"{mod} - {res}" for mod, res, value in _iter_results() if value == rc),
        "",
    )


class ResultError(Exception):
    """An operation failed with a launcher result code."""

    def __init__(self, rc: int) -> None:
        self.rc = rc
        description = description_of(rc) or "unknown result"
        super().__init__(f"{description} (0x{rc:X})")