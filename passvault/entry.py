"""
Record shapes crossing the plaintext boundary.

``Entry`` is the decrypted record handed to callers, ``CipherEntry`` is what
the record store persists. Each converts into the other through an unlocked
``EnvelopeKeyManager``.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

from . import config
from .generators import gen_key, gen_password


@dataclass
class Entry:
    """Represents a single decrypted vault entry."""
    id: str
    service: str
    email: str
    password: str
    username: str = ""
    url: str = ""

    @classmethod
    def new(
        cls,
        service: str,
        email: str,
        password: Optional[str] = None,
        username: Optional[str] = None,
        url: Optional[str] = None,
    ) -> "Entry":
        """Create an entry with a fresh id, generating a password when none is given."""
        return cls(
            id=gen_key(config.ENTRY_ID_LENGTH),
            service=service,
            email=email,
            password=password if password is not None else gen_password(config.DEFAULT_PASSWORD_LENGTH),
            username=username or "",
            url=url or "",
        )

    def overwrite(self, **changes: Optional[str]) -> "Entry":
        """
        Replace the given fields in place, skipping ``None`` values.
        The id cannot be changed.
        """
        for name, value in changes.items():
            if name not in config.ENTRY_FIELDS:
                raise ValueError(f"Unknown or immutable entry field: {name}")
            if value is not None:
                setattr(self, name, value)
        return self

    def field_values(self) -> Tuple[str, ...]:
        return tuple(getattr(self, name) for name in config.ENTRY_FIELDS)

    def render(self) -> str:
        """Composite one-line rendering, also the text searched by ``find``."""
        return " | ".join((self.id,) + self.field_values())

    def __str__(self) -> str:
        return self.render()

    def display_row(self, reveal: bool = False) -> Tuple[str, ...]:
        """Values for a display table; the password stays masked unless revealed."""
        password = self.password if reveal else config.TABLE_PASSWORD_HIDDEN_TEXT
        return (self.id, self.service, self.email, password, self.username, self.url)

    def encrypt(self, manager) -> "CipherEntry":
        """Seal every field under the manager's data key."""
        sealed = {name: manager.encrypt(value).encode('utf-8')
                  for name, value in zip(config.ENTRY_FIELDS, self.field_values())}
        return CipherEntry(id=self.id, **sealed)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


@dataclass(frozen=True)
class CipherEntry:
    """An entry as stored: plaintext id plus ``nonce:ciphertext`` field blobs."""
    id: str
    service: bytes
    email: bytes
    password: bytes
    username: bytes
    url: bytes

    def field_values(self) -> Tuple[bytes, ...]:
        return tuple(getattr(self, name) for name in config.ENTRY_FIELDS)

    def decrypt(self, manager) -> Entry:
        """
        Open every field with the manager's data key.

        Raises:
            DecryptError: If any field fails authentication
        """
        opened = {name: manager.decrypt(blob)
                  for name, blob in zip(config.ENTRY_FIELDS, self.field_values())}
        return Entry(id=self.id, **opened)

    @classmethod
    def from_row(cls, row) -> "CipherEntry":
        """Build from a ``(entry_id, service, email, password, username, url)`` row."""
        entry_id, *blobs = row
        return cls(entry_id, *(bytes(blob) for blob in blobs))


@dataclass(frozen=True)
class ImportedEntry:
    """A record read from an import document; it has no id yet."""
    service: str
    email: str
    password: str
    username: str = ""
    url: str = ""

    def to_entry(self) -> Entry:
        """Assign a fresh id."""
        return Entry.new(self.service, self.email, self.password, self.username, self.url)
