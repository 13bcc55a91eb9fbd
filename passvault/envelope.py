"""
Envelope key management.

A random data encryption key (DEK) encrypts every record field. The DEK is
stored only in wrapped form, sealed under a key-encrypting key (KEK) that is
derived from the master passphrase and never persisted. Unlocking derives the
KEK, checks it against the Argon2 verifier in the keyfile and unwraps the DEK
for the lifetime of the process.
"""

import time
import logging
from typing import Optional, Union

from . import config
from .config import VaultLocation
from .crypto import CryptoManager, b64encode, decode_blob, encode_blob
from .exceptions import (
    AuthenticationError,
    DecryptError,
    KeyfileCorruptError,
    VaultExistsError,
    VaultLockedError,
)
from .keyfile import KeyfileRecord, keyfile_exists, read_keyfile, write_keyfile

logger = logging.getLogger(__name__)


class EnvelopeKeyManager:
    """An unlocked vault session able to encrypt and decrypt record fields."""

    def __init__(self, data_key: bytes, location: VaultLocation, crypto: Optional[CryptoManager] = None):
        """
        Use ``init`` or ``unlock`` rather than calling this directly.

        Args:
            data_key: The unwrapped 32-byte DEK
            location: Vault the key belongs to
        """
        self.location = location
        self.crypto = crypto or CryptoManager()
        self._data_key: Optional[bytearray] = bytearray(data_key)

    @classmethod
    def init(cls, passphrase: str, location: VaultLocation) -> "EnvelopeKeyManager":
        """
        Create a new vault keyfile at ``location`` and return it unlocked.

        Raises:
            VaultExistsError: If a keyfile already exists; deleting it is the caller's decision
        """
        if keyfile_exists(location):
            raise VaultExistsError(f"A vault already exists at {location.base_dir}")

        crypto = CryptoManager()
        salt = crypto.generate_salt()
        derived_key = crypto.derive_key(salt, passphrase)
        password_hash = crypto.hash_secret(b64encode(derived_key))

        data_key = crypto.generate_key()
        nonce, wrapped_key = crypto.encrypt(data_key, derived_key)

        record = KeyfileRecord(
            salt=salt,
            password_hash=password_hash,
            wrapped_nonce=nonce,
            wrapped_key=wrapped_key,
        )
        path = write_keyfile(record, location)
        logger.info(f"Initialized new vault keyfile at {path}")
        return cls(data_key, location, crypto)

    @classmethod
    def unlock(cls, passphrase: str, location: VaultLocation) -> "EnvelopeKeyManager":
        """
        Unlock the vault at ``location``.

        A wrong passphrase costs a fixed delay before ``AuthenticationError``
        is raised. No manager is returned unless both derivation and
        verification succeed.

        Raises:
            VaultAbsentError: If there is no keyfile
            KeyfileCorruptError: If the keyfile cannot be decoded or its key unwrapped
            HashParseError: If the stored verifier is malformed
            AuthenticationError: If the passphrase is wrong
        """
        record = read_keyfile(location)
        crypto = CryptoManager()
        derived_key = crypto.derive_key(record.salt, passphrase)

        if not crypto.verify_secret(record.password_hash, b64encode(derived_key)):
            logger.warning(f"Failed unlock attempt for vault at {location.base_dir}")
            time.sleep(config.AUTH_FAILURE_DELAY_SECONDS)
            raise AuthenticationError("Authentication failed: wrong master passphrase")

        try:
            data_key = crypto.decrypt(record.wrapped_key, derived_key, record.wrapped_nonce)
        except DecryptError as e:
            raise KeyfileCorruptError("Wrapped data key failed authentication") from e
        if len(data_key) != config.KEY_SIZE:
            raise KeyfileCorruptError(f"Data key must be {config.KEY_SIZE} bytes, got {len(data_key)}")

        logger.info(f"Unlocked vault at {location.base_dir}")
        return cls(data_key, location, crypto)

    @property
    def is_unlocked(self) -> bool:
        return self._data_key is not None

    def _key(self) -> bytearray:
        if self._data_key is None:
            raise VaultLockedError("Vault is locked")
        return self._data_key

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a field under the DEK with a fresh nonce, as ``nonce:ciphertext``."""
        nonce, ciphertext = self.crypto.encrypt(plaintext.encode('utf-8'), self._key())
        return encode_blob(nonce, ciphertext)

    def decrypt(self, blob: Union[str, bytes]) -> str:
        """
        Decrypt a ``nonce:ciphertext`` blob.

        Raises:
            DecryptError: If the blob is malformed, tampered with or sealed under another key
        """
        key = self._key()
        nonce, ciphertext = decode_blob(blob)
        plaintext = self.crypto.decrypt(ciphertext, key, nonce)
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecryptError("Decrypted field is not valid UTF-8") from e

    def lock(self) -> None:
        """Lock the session and clear the data key from memory."""
        if self._data_key is not None:
            self.crypto.clear_bytes(self._data_key)
        self._data_key = None

    def __enter__(self) -> "EnvelopeKeyManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.lock()
