"""
Keyfile encoding and persistence.

The keyfile holds everything needed to unlock a vault except the passphrase:

    base64("<b64 salt> <argon2 PHC hash> <b64 nonce>:<b64 wrapped DEK>")

It is written once at vault creation and read at every unlock.
"""

import os
import binascii
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from . import config
from .config import VaultLocation
from .crypto import b64decode, b64encode, decode_blob, encode_blob
from .exceptions import DecryptError, KeyfileCorruptError, VaultAbsentError, VaultIOError
from .utils import ensure_private_dir, set_private_permissions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyfileRecord:
    """The salt, verifier hash and wrapped data key of one vault."""
    salt: bytes
    password_hash: str
    wrapped_nonce: bytes
    wrapped_key: bytes

    @property
    def wrapped_blob(self) -> str:
        return encode_blob(self.wrapped_nonce, self.wrapped_key)


def encode(record: KeyfileRecord) -> bytes:
    """Serialize a record into keyfile bytes."""
    line = config.KEYFILE_SEPARATOR.join(
        (b64encode(record.salt), record.password_hash, record.wrapped_blob)
    )
    return b64encode(line.encode('utf-8')).encode('ascii')


def decode(data: bytes) -> KeyfileRecord:
    """
    Parse keyfile bytes into a record.

    Raises:
        KeyfileCorruptError: On bad encoding or a token count other than three
    """
    try:
        line = b64decode(data.decode('ascii')).decode('utf-8')
    except (UnicodeDecodeError, ValueError, binascii.Error) as e:
        raise KeyfileCorruptError(f"Keyfile is not valid base64: {e}") from e

    tokens = line.split(config.KEYFILE_SEPARATOR, 2)
    if len(tokens) != 3:
        raise KeyfileCorruptError(f"Keyfile must hold 3 tokens, found {len(tokens)}")
    salt_token, password_hash, wrapped = tokens

    try:
        salt = b64decode(salt_token)
    except ValueError as e:
        raise KeyfileCorruptError(f"Keyfile salt is invalid: {e}") from e
    if len(salt) != config.SALT_SIZE:
        raise KeyfileCorruptError(f"Keyfile salt must be {config.SALT_SIZE} bytes, got {len(salt)}")

    try:
        nonce, wrapped_key = decode_blob(wrapped)
    except DecryptError as e:
        raise KeyfileCorruptError(f"Keyfile wrapped key is invalid: {e}") from e

    return KeyfileRecord(
        salt=salt,
        password_hash=password_hash,
        wrapped_nonce=nonce,
        wrapped_key=wrapped_key,
    )


def keyfile_exists(location: VaultLocation) -> bool:
    return location.keyfile_path.exists()


def read_keyfile(location: VaultLocation) -> KeyfileRecord:
    """
    Load the keyfile of the vault at ``location``.

    Raises:
        VaultAbsentError: If no keyfile exists
        VaultIOError: If the file cannot be read
        KeyfileCorruptError: If the content cannot be decoded
    """
    path = location.keyfile_path
    if not path.exists():
        raise VaultAbsentError(f"Keyfile not found at {path}: initialize a vault first")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise VaultIOError(f"Failed to read keyfile {path}: {e}") from e
    return decode(data)


def write_keyfile(record: KeyfileRecord, location: VaultLocation) -> Path:
    """
    Persist ``record`` with owner-only permissions inside an owner-only directory.
    Returns the keyfile path.
    """
    path = location.keyfile_path
    tmp_path = path.with_name(path.name + '.tmp')
    try:
        ensure_private_dir(location.base_dir)
        fd = os.open(tmp_path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, config.FILE_MODE)
        with os.fdopen(fd, 'wb') as f:
            f.write(encode(record))
        # Atomic replace using shutil.move
        shutil.move(str(tmp_path), str(path))
        if not set_private_permissions(path):
            logger.warning(f"Failed to set secure file permissions for keyfile: {path}. This might indicate a permission issue.")
    except OSError as e:
        if tmp_path.exists():
            os.remove(tmp_path)
        raise VaultIOError(f"Failed to write keyfile {path}: {e}") from e
    return path
