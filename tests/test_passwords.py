import pytest

from ulaunch.passwords import PASS_BLOCK_SIZE, PassBlock, PasswordStore, pack_password
from ulaunch.results import ResultError, result_by_name
from ulaunch.storage import Layout


@pytest.fixture
def store(tmp_path):
    layout = Layout(base_dir=tmp_path / "sd", db_dir=tmp_path / "db")
    (tmp_path / "db" / "user").mkdir(parents=True)
    return PasswordStore(layout)


def _rc(name):
    return result_by_name("Db", name)


def test_pack_password_is_deterministic():
    password = "password"
    first = pack_password(1, password)
    second = pack_password(1, password)
    assert first == second
    assert len(first.pass_sha) == 32
    assert first.uid == 1


def test_pack_password_differs_by_password():
    password = "password"
    other_password = "secret"
    assert pack_password(1, password).pass_sha != pack_password(1, other_password).pass_sha


def test_pack_password_rejects_empty():
    password = ""
    with pytest.raises(ResultError) as info:
        pack_password(1, password)
    assert info.value.rc == _rc("InvalidPasswordLength")


def test_pack_password_rejects_too_long():
    password = "password" * 2
    with pytest.raises(ResultError) as info:
        pack_password(1, password)
    assert info.value.rc == _rc("InvalidPasswordLength")


def test_pass_block_round_trip():
    password = "password"
    block = pack_password(7, password)
    raw = block.to_bytes()
    assert len(raw) == PASS_BLOCK_SIZE
    assert raw[0] == 7
    assert raw[16:] == block.pass_sha
    assert PassBlock.from_bytes(raw) == block


def test_pass_block_from_short_bytes():
    with pytest.raises(ValueError):
        PassBlock.from_bytes(bytes(10))


def test_path_for_uses_layout(store):
    path = store.path_for(5)
    assert path == store.layout.password_path(5)
    assert path.suffix == ".pass"


def test_register_and_access(store):
    password = "password"
    block = pack_password(3, password)
    store.register(block)
    assert store.access(3) == block


def test_register_twice_fails(store):
    password = "password"
    block = pack_password(3, password)
    store.register(block)
    with pytest.raises(ResultError) as info:
        store.register(block)
    assert info.value.rc == _rc("PasswordAlreadyExists")


def test_register_write_failure(tmp_path):
    layout = Layout(base_dir=tmp_path / "sd", db_dir=tmp_path / "missing")
    password = "password"
    with pytest.raises(ResultError) as info:
        PasswordStore(layout).register(pack_password(3, password))
    assert info.value.rc == _rc("PasswordWriteFail")


def test_access_missing(store):
    with pytest.raises(ResultError) as info:
        store.access(9)
    assert info.value.rc == _rc("PasswordNotFound")


def test_try_log_success_and_mismatch(store):
    password = "password"
    other_password = "secret"
    store.register(pack_password(4, password))
    assert store.try_log(pack_password(4, password)) is None
    with pytest.raises(ResultError) as info:
        store.try_log(pack_password(4, other_password))
    assert info.value.rc == _rc("PasswordMismatch")


def test_try_log_user_mismatch(store):
    password = "password"
    stored = pack_password(2, password)
    store.path_for(4).write_bytes(stored.to_bytes())
    with pytest.raises(ResultError) as info:
        store.try_log(pack_password(4, password))
    assert info.value.rc == _rc("PasswordUserMismatch")


def test_try_log_not_found(store):
    password = "password"
    with pytest.raises(ResultError) as info:
        store.try_log(pack_password(8, password))
    assert info.value.rc == _rc("PasswordNotFound")


def test_remove(store):
    password = "password"
    store.register(pack_password(6, password))
    store.remove(6)
    assert not store.path_for(6).exists()
    with pytest.raises(ResultError) as info:
        store.remove(6)
    assert info.value.rc == _rc("PasswordNotFound")