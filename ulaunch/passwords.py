"""Per-user password blocks kept in the launcher's save data."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from .results import ResultError, result_by_name
from .storage import Layout, delete_file, exists_file, read_file, write_file

PASS_BLOCK_SIZE = 0x30
"""Size of a stored password block: a 16-byte user id and a SHA-256 digest."""

_UID_SIZE = 16
_SHA_SIZE = 0x20
_PASSWORD_BUFFER_SIZE = 0x10
_MAX_PASSWORD_LENGTH = 15


def _db_error(name: str) -> ResultError:
    return ResultError(result_by_name("Db", name))


@dataclass(frozen=True)
class PassBlock:
    """A user id together with the SHA-256 digest of that user's password."""

    uid: int
    pass_sha: bytes = bytes(_SHA_SIZE)

    def to_bytes(self) -> bytes:
        """Serialise to the 0x30-byte on-disk form."""
        sha = self.pass_sha[:_SHA_SIZE].ljust(_SHA_SIZE, b"\0")
        return self.uid.to_bytes(_UID_SIZE, "little") + sha

    @classmethod
    def from_bytes(cls, data: bytes) -> PassBlock:
        """Parse the 0x30-byte on-disk form."""
        if len(data) < PASS_BLOCK_SIZE:
            raise ValueError(
                f"password block needs {PASS_BLOCK_SIZE} bytes, got {len(data)}"
            )
        uid = int.from_bytes(data[:_UID_SIZE], "little")
        return cls(uid=uid, pass_sha=bytes(data[_UID_SIZE:PASS_BLOCK_SIZE]))


def pack_password(uid: int, password: str) -> PassBlock:
    """Hash a password for a user.

    The password must be 1 to 15 bytes long; it is zero-padded to 16 bytes
    before hashing. Raises ResultError(InvalidPasswordLength) otherwise.
    """
    encoded = password.encode("utf-8")
    if not encoded or len(encoded) > _MAX_PASSWORD_LENGTH:
        raise _db_error("InvalidPasswordLength")
    buffer = encoded.ljust(_PASSWORD_BUFFER_SIZE, b"\0")
    return PassBlock(uid=uid, pass_sha=hashlib.sha256(buffer).digest())


class PasswordStore:
    """Registers, checks and removes user passwords under a data layout."""

    def __init__(self, layout: Layout) -> None:
        self.layout = layout

    def path_for(self, user_id: int):
        """Return the file that holds the password block of a user."""
        return self.layout.password_path(user_id)

    def access(self, user_id: int) -> PassBlock:
        """Load a user's password block; raise PasswordNotFound if absent."""
        path = self.path_for(user_id)
        if exists_file(path):
            try:
                data = read_file(path, PASS_BLOCK_SIZE)
            except OSError:
                pass
            else:
                return PassBlock.from_bytes(data.ljust(PASS_BLOCK_SIZE, b"\0"))
        raise _db_error("PasswordNotFound")

    def register(self, block: PassBlock) -> None:
        """Store a new password block.

        Raises PasswordAlreadyExists if the user has one, PasswordWriteFail
        if it cannot be written.
        """
        path = self.path_for(block.uid)
        if exists_file(path):
            raise _db_error("PasswordAlreadyExists")
        try:
            write_file(path, block.to_bytes(), True)
        except OSError as exc:
            raise _db_error("PasswordWriteFail") from exc

    def try_log(self, block: PassBlock) -> None:
        """Check a password block against the stored one.

        Raises PasswordNotFound, PasswordUserMismatch or PasswordMismatch.
        """
        stored = self.access(block.uid)
        if stored.uid != block.uid:
            raise _db_error("PasswordUserMismatch")
        if stored.pass_sha != block.pass_sha:
            raise _db_error("PasswordMismatch")

    def remove(self, uid: int) -> None:
        """Delete a user's password; raise PasswordNotFound if absent."""
        path = self.path_for(uid)
        if not exists_file(path):
            raise _db_error("PasswordNotFound")
        delete_file(path)