"""Custom exceptions for the vault domain."""

from typing import Optional


class VaultError(Exception):
    """Base exception for every failure raised by passvault."""

    default_recoverable = False

    def __init__(self, message: str, *, recoverable: Optional[bool] = None):
        super().__init__(message)
        self.recoverable = self.default_recoverable if recoverable is None else recoverable


class KdfError(VaultError):
    """Key derivation or hashing failed inside the Argon2 library."""


class HashParseError(VaultError):
    """The stored password hash is not a valid PHC string."""


class AuthenticationError(VaultError):
    """Wrong master passphrase."""

    default_recoverable = True


class VaultExistsError(VaultError):
    """A keyfile already exists at the requested location."""


class VaultAbsentError(VaultError):
    """No keyfile exists at the requested location."""


class VaultLockedError(VaultError):
    """The key manager has been locked and holds no key material."""


class KeyfileCorruptError(VaultError):
    """The keyfile cannot be decoded into salt, hash and wrapped key."""


class DecryptError(VaultError):
    """A ciphertext blob is malformed or failed authentication."""


class NotFoundError(VaultError):
    """No entry matches the requested id."""

    default_recoverable = True


class DuplicateEntryError(VaultError):
    """An entry with the same id is already stored."""


class UnsupportedFormatError(VaultError):
    """The import or export file extension is not supported."""

    default_recoverable = True


class ImportParseError(VaultError):
    """The import document could not be parsed into entries."""

    default_recoverable = True


class VaultIOError(VaultError):
    """Reading or writing a vault file failed."""
