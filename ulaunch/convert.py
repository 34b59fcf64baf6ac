"""Formatting and parsing of identifiers, result codes and strings."""

from __future__ import annotations

import re

from .results import description_of, result_description, result_module

_U64_MAX = (1 << 64) - 1
_HEX_PREFIX = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]*)")


def format_uid(value: int) -> str:
    """Format a 128-bit user id in the console's grouped, byte-swapped style."""
    raw = value.to_bytes(16, "little")

    def hexed(indices):
        return "".join(f"{raw[i]:02x}" for i in indices)

    groups = [
        hexed((3, 2, 1, 0)),
        hexed((5, 4)),
        hexed((7, 6)),
        hexed((9, 8)),
        hexed((15, 14, 13, 12, 11, 10)),
    ]
    return "-".join(groups)


def parse_hex_u64(text: str) -> int:
    """Parse a leading hexadecimal number as an unsigned 64-bit value.

    Leading whitespace, a sign and a ``0x`` prefix are accepted; parsing stops
    at the first non-hex character. No digits gives 0, overflow saturates.
    """
    match = _HEX_PREFIX.match(text)
    sign, digits = match.group(1), match.group(2)
    if not digits:
        return 0
    value = int(digits, 16)
    if value > _U64_MAX:
        return _U64_MAX
    if sign == "-":
        value = (-value) & _U64_MAX
    return value


def format_application_id(app_id: int) -> str:
    """Format an application id as 16 upper-case hex digits."""
    return f"{app_id & _U64_MAX:016X}"


def format_result_display(rc: int) -> str:
    """Format a result code as ``MMMM-DDDD`` (module offset by 2000)."""
    return f"{result_module(rc) + 2000:04d}-{result_description(rc):04d}"


def format_result_hex(rc: int) -> str:
    """Format a result code as upper-case hex with a ``0x`` prefix."""
    return f"0x{rc & 0xFFFFFFFF:X}"


def format_result(rc: int) -> str:
    """Describe a known result code, or return an empty string."""
    description = description_of(rc)
    if not description:
        return ""
    return f"({format_result_display(rc)}) {description}"


def starts_with(base: str, prefix: str) -> bool:
    """Return whether ``base`` begins with ``prefix``."""
    return base.startswith(prefix)


def ends_with(base: str, suffix: str) -> bool:
    """Return whether ``base`` ends with ``suffix``."""
    return base.endswith(suffix)