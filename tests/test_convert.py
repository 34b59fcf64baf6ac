import pytest

from ulaunch.convert import (
    ends_with,
    format_application_id,
    format_result,
    format_result_display,
    format_result_hex,
    format_uid,
    parse_hex_u64,
    starts_with,
)
from ulaunch.results import make_result, result_by_name


def test_format_uid_byte_order():
    value = int.from_bytes(bytes(range(16)), "little")
    assert format_uid(value) == "03020100-0504-0706-0908-0f0e0d0c0b0a"


@pytest.mark.parametrize("value", [0, 1, (1 << 128) - 1, 0x1234_5678_9ABC_DEF0_0FED_CBA9_8765_4321])
def test_format_uid_shape(value):
    text = format_uid(value)
    assert [len(part) for part in text.split("-")] == [8, 4, 4, 4, 12]
    assert text == text.lower()


def test_format_application_id_matches_known_id():
    assert format_application_id(0x01008BB00013C000) == "01008BB00013C000"


@pytest.mark.parametrize("value", [0, 1, 0x0100000000001000, (1 << 64) - 1])
def test_application_id_round_trip(value):
    text = format_application_id(value)
    assert len(text) == 16
    assert parse_hex_u64(text) == value
    assert parse_hex_u64("0x" + text.lower()) == value


def test_parse_hex_stops_at_invalid_character():
    assert parse_hex_u64("zz") == 0
    assert parse_hex_u64("") == 0
    assert parse_hex_u64("ffzz") == parse_hex_u64("ff")
    assert parse_hex_u64("  ab") == parse_hex_u64("ab")


def test_parse_hex_saturates_on_overflow():
    assert parse_hex_u64("1" + "0" * 16) == 2**64 - 1


def test_parse_hex_negative_wraps():
    assert parse_hex_u64("-1") == parse_hex_u64("f" * 16)


def test_format_result_display():
    assert format_result_display(result_by_name("Db", "InvalidPasswordLength")) == "2380-0101"


@pytest.mark.parametrize("rc", [0, 1, make_result(380, 201), 0xFFFFFFFF])
def test_format_result_hex_round_trip(rc):
    text = format_result_hex(rc)
    assert text.startswith("0x")
    assert text[2:] == text[2:].upper()
    assert int(text, 16) == rc


def test_format_result_known():
    rc = result_by_name("Db", "PasswordMismatch")
    assert format_result(rc) == f"({format_result_display(rc)}) Db - PasswordMismatch"


def test_format_result_unknown_is_empty():
    assert format_result(make_result(1, 1)) == ""


def test_starts_and_ends_with():
    assert starts_with("sdmc:/switch", "sdmc:/")
    assert not starts_with("sdmc", "sdmc:/")
    assert ends_with("app.nro", ".nro")
    assert not ends_with("app.nso", ".nro")
    assert not ends_with("a", ".nro")