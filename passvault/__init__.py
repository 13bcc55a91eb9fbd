"""
passvault - local encrypted credential vault.

THREAT MODEL:
Entries are encrypted with a random data key that is itself sealed under a key
derived from the master passphrase. Decrypted values and the data key live in
ordinary process memory while the vault is unlocked. Concurrent processes
working on the same vault are not coordinated.
"""

from .config import APP_VERSION as __version__
from .config import VaultLocation
from .entry import CipherEntry, Entry, ImportedEntry
from .envelope import EnvelopeKeyManager
from .exceptions import (
    AuthenticationError,
    DecryptError,
    DuplicateEntryError,
    HashParseError,
    ImportParseError,
    KdfError,
    KeyfileCorruptError,
    NotFoundError,
    UnsupportedFormatError,
    VaultAbsentError,
    VaultError,
    VaultExistsError,
    VaultIOError,
    VaultLockedError,
)
from .storage import EncryptedRecordStore

__all__ = [
    "__version__",
    "VaultLocation",
    "Entry",
    "CipherEntry",
    "ImportedEntry",
    "EnvelopeKeyManager",
    "EncryptedRecordStore",
    "VaultError",
    "KdfError",
    "HashParseError",
    "AuthenticationError",
    "VaultExistsError",
    "VaultAbsentError",
    "VaultLockedError",
    "KeyfileCorruptError",
    "DecryptError",
    "NotFoundError",
    "DuplicateEntryError",
    "UnsupportedFormatError",
    "ImportParseError",
    "VaultIOError",
]
