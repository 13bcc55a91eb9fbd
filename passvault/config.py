"""
Configuration constants for the passvault credential vault.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Application Metadata
APP_VERSION = "1.0.2"  # Use: Current version of the package. Type: str. Range: Semantic versioning string.

# Security Settings
SALT_SIZE = 16  # Use: Size of the keyfile salt in bytes for key derivation. Type: int. Range: At least 16 bytes (128 bits).
KEY_SIZE = 32  # Use: Size of the KEK and the DEK in bytes. Corresponds to AES-256. Type: int. Range: 32 bytes.
NONCE_SIZE = 12  # Use: Size of the AES-GCM nonce in bytes. Type: int. Range: 12 bytes (96 bits) is the recommended size for GCM.
TAG_SIZE = 16  # Use: Size of the AES-GCM authentication tag in bytes. Type: int. Range: 16 bytes (128 bits).
ARGON2_TIME_COST = 2  # Use: Argon2id time cost. Must never change for an existing vault. Type: int. Range: 1 to 10.
ARGON2_MEMORY_COST = 19456  # Use: Argon2id memory cost in KiB (19 MiB). Must never change for an existing vault. Type: int. Range: At least 19456.
ARGON2_PARALLELISM = 1  # Use: Argon2id lanes. Must never change for an existing vault. Type: int. Range: 1 to 8.
ARGON2_HASH_SALT_SIZE = 16  # Use: Size of the random salt embedded in the PHC verifier string. Type: int. Range: At least 16 bytes.
AUTH_FAILURE_DELAY_SECONDS = 5  # Use: Fixed delay applied after a wrong master passphrase. Type: int. Range: Positive integer.
BLOB_SEPARATOR = ":"  # Use: Separator between the encoded nonce and the encoded ciphertext in a blob. Type: str. Range: A character outside the base64 alphabet.
KEYFILE_SEPARATOR = " "  # Use: Separator between the three keyfile tokens. Type: str. Range: A character absent from every token.

# File and Directory Names
CONFIG_DIR_NAME = ".passvault"  # Use: Name of the hidden directory within the user's home directory holding the vault files. Type: str. Range: Any valid directory name.
KEYFILE_NAME = ".passvault.key"  # Use: Filename of the keyfile. Type: str. Range: Any valid filename.
DATABASE_FILE = "passvault.db"  # Use: Filename of the sqlite record store. Type: str. Range: Any valid filename.
DIR_MODE = 0o700  # Use: Permission bits for the vault directory. Type: int. Range: Owner-only modes.
FILE_MODE = 0o600  # Use: Permission bits for the keyfile and the record store. Type: int. Range: Owner-only modes.

# Record Store Settings
TABLE_NAME = "entries"  # Use: Name of the sqlite table holding encrypted entries. Type: str. Range: Valid SQL identifier.
ENTRY_FIELDS = ("service", "email", "password", "username", "url")  # Use: Encrypted entry fields, in column order. Type: tuple[str]. Range: Fixed.
ENTRY_ID_LENGTH = 12  # Use: Length of generated entry ids. Type: int. Range: Positive integer.
TABLE_PASSWORD_HIDDEN_TEXT = "••••••••"  # Use: Placeholder handed to the display layer for hidden passwords. Type: str. Range: Any string.

# Password Generator Settings
DEFAULT_PASSWORD_LENGTH = 16  # Use: Length of passwords generated for entries added without one. Type: int. Range: At least PASSWORD_GENERATOR_MIN_LENGTH.
PASSWORD_GENERATOR_MIN_LENGTH = 3  # Use: Smallest length able to hold a lowercase, an uppercase and 20% digits. Type: int. Range: 3.
PASSWORD_DIGIT_RATIO = 0.2  # Use: Minimum share of digits in generated passwords. Type: float. Range: 0.0 to 1.0.
DEFAULT_TOKEN_LENGTH = 32  # Use: Default number of random bytes in a generated token. Type: int. Range: Positive integer.
DEFAULT_KEY_LENGTH = 16  # Use: Default length of a generated key. Type: int. Range: Positive integer.
DEFAULT_PASSPHRASE_WORDS = 4  # Use: Default number of words in a generated passphrase. Type: int. Range: Positive integer.
WORDLIST_FILE = "wordlist.txt"  # Use: Name of the packaged passphrase word list. Type: str. Range: File shipped inside the package.

# Import / Export Settings
IMPORT_HEADER_MAPPINGS = {  # Use: Maps entry fields to accepted CSV header variations for import. Type: dict[str, list[str]]. Range: Lower-case header names.
    'service': ['service', 'name', 'site', 'title'],
    'email': ['email', 'e-mail', 'mail'],
    'password': ['password', 'pass', 'pwd'],
    'username': ['username', 'user', 'login', 'account'],
    'url': ['url', 'website', 'web site', 'uri'],
}
JSON_INDENT = 2  # Use: Indentation of exported JSON documents. Type: int. Range: Non-negative integer.


@dataclass(frozen=True)
class VaultLocation:
    """Where a vault keeps its keyfile and record store."""

    base_dir: Path

    def __post_init__(self):
        object.__setattr__(self, "base_dir", Path(self.base_dir))

    @property
    def keyfile_path(self) -> Path:
        return self.base_dir / KEYFILE_NAME

    @property
    def database_path(self) -> Path:
        return self.base_dir / DATABASE_FILE

    @classmethod
    def default(cls) -> "VaultLocation":
        """The per-user location, ``~/.passvault``."""
        return cls(Path(os.path.expanduser("~")) / CONFIG_DIR_NAME)
