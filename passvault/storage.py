"""
Encrypted record storage.

Entries live in a single sqlite table. The entry id is stored in plaintext
under a UNIQUE constraint so rows can be selected by id; the five record
fields are stored as ``nonce:ciphertext`` blobs sealed under the vault's
data key. Every plaintext crossing goes through the ``EnvelopeKeyManager``.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Callable, List, Optional

from . import config
from .config import VaultLocation
from .entry import CipherEntry, Entry
from .envelope import EnvelopeKeyManager
from .exceptions import DuplicateEntryError, NotFoundError, VaultIOError
from .importers import dump_entries, load_entries
from .search import fuzzy_filter
from .utils import create_private_file, ensure_private_dir

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

_COLUMNS = ", ".join(config.ENTRY_FIELDS)

_CREATE_TABLE = f"""
CREATE TABLE IF NOT EXISTS {config.TABLE_NAME} (
    id INTEGER PRIMARY KEY,
    entry_id TEXT NOT NULL UNIQUE,
    service BLOB NOT NULL,
    email BLOB NOT NULL,
    password BLOB NOT NULL,
    username BLOB NOT NULL,
    url BLOB NOT NULL
)
"""

# Databases created before the UNIQUE column constraint only get it through this index.
_CREATE_ID_INDEX = f"""
CREATE UNIQUE INDEX IF NOT EXISTS {config.TABLE_NAME}_entry_id
ON {config.TABLE_NAME} (entry_id)
"""

_INSERT = f"""
INSERT INTO {config.TABLE_NAME} (entry_id, {_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?)
"""

_UPDATE = f"""
UPDATE {config.TABLE_NAME}
SET service = ?, email = ?, password = ?, username = ?, url = ?
WHERE entry_id = ?
"""

_SELECT_BY_ID = f"SELECT entry_id, {_COLUMNS} FROM {config.TABLE_NAME} WHERE entry_id = ? ORDER BY id"

_SELECT_ALL = f"SELECT entry_id, {_COLUMNS} FROM {config.TABLE_NAME} ORDER BY id"

_DELETE = f"DELETE FROM {config.TABLE_NAME} WHERE entry_id = ?"


def _log_progress(done: int, total: int) -> None:
    logger.debug(f"Imported {done}/{total} entries")


class EncryptedRecordStore:
    """CRUD, search and bulk import/export over encrypted entries."""

    def __init__(self, manager: EnvelopeKeyManager, location: VaultLocation):
        """
        Open or create the record store of the vault at ``location``.

        Args:
            manager: Unlocked key manager used for every encrypt/decrypt
            location: Vault holding the database file
        """
        self.manager = manager
        self.location = location
        self.filepath = location.database_path
        try:
            ensure_private_dir(location.base_dir)
            create_private_file(self.filepath)
            self.conn = sqlite3.connect(str(self.filepath))
        except (OSError, sqlite3.Error) as e:
            raise VaultIOError(f"Failed to open record store {self.filepath}: {e}") from e
        try:
            self._ensure_schema()
        except VaultIOError:
            self.conn.close()
            raise

    def _ensure_schema(self) -> None:
        try:
            with self.conn:
                self.conn.execute(_CREATE_TABLE)
        except sqlite3.DatabaseError as e:
            raise VaultIOError(f"Record store {self.filepath} is unreadable: {e}") from e
        try:
            with self.conn:
                self.conn.execute(_CREATE_ID_INDEX)
        except sqlite3.IntegrityError:
            logger.warning(
                f"Record store {self.filepath} already holds duplicate entry ids; "
                "uniqueness cannot be enforced until they are removed"
            )

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "EncryptedRecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _execute(self, sql: str, params=()) -> sqlite3.Cursor:
        try:
            with self.conn:
                return self.conn.execute(sql, params)
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            raise VaultIOError(f"Record store operation failed: {e}") from e

    def write(self, entry: Entry) -> None:
        """
        Encrypt and insert a new entry.

        Raises:
            DuplicateEntryError: If an entry with the same id exists
        """
        sealed = entry.encrypt(self.manager)
        try:
            self._execute(_INSERT, (sealed.id,) + sealed.field_values())
        except sqlite3.IntegrityError as e:
            raise DuplicateEntryError(f"Entry id {entry.id} already exists") from e
        logger.debug(f"Stored entry {entry.id}")

    def read(self, entry_id: str) -> Entry:
        """
        Decrypt the entry with the given id.

        If several rows share the id, which only a database predating the
        uniqueness constraint can hold, the first inserted row is returned.

        Raises:
            NotFoundError: If no entry has this id
            DecryptError: If a field fails authentication
        """
        rows = self._execute(_SELECT_BY_ID, (entry_id,)).fetchall()
        if not rows:
            raise NotFoundError(f"No entry with id {entry_id}")
        if len(rows) > 1:
            logger.warning(f"{len(rows)} rows share entry id {entry_id}; using the first")
        return CipherEntry.from_row(rows[0]).decrypt(self.manager)

    def update(self, entry: Entry) -> None:
        """
        Re-encrypt every field with fresh nonces and overwrite the entry with the same id.

        Raises:
            NotFoundError: If no entry has this id
        """
        sealed = entry.encrypt(self.manager)
        cursor = self._execute(_UPDATE, sealed.field_values() + (sealed.id,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"No entry with id {entry.id}")
        logger.debug(f"Updated entry {entry.id}")

    def remove(self, entry_id: str) -> int:
        """Delete every row with this id and return how many were deleted."""
        cursor = self._execute(_DELETE, (entry_id,))
        logger.debug(f"Removed {cursor.rowcount} row(s) for entry {entry_id}")
        return cursor.rowcount

    def list(self) -> List[Entry]:
        """All entries, decrypted, in insertion order."""
        rows = self._execute(_SELECT_ALL).fetchall()
        return [CipherEntry.from_row(row).decrypt(self.manager) for row in rows]

    def find(self, query: str) -> List[Entry]:
        """
        Entries whose rendered text fuzzy-matches ``query``, in insertion order.
        The empty query matches every entry.
        """
        return fuzzy_filter(self.list(), query, key=Entry.render)

    def import_file(self, path: Path, progress: Optional[ProgressCallback] = None) -> int:
        """
        Import entries from a JSON or CSV document, assigning fresh ids.

        The whole document is parsed before anything is written. Entries are
        then written one at a time; rows already written stay if a later
        one fails.

        Args:
            path: Document to import
            progress: Called as ``progress(done, total)`` after each written entry

        Returns:
            Number of imported entries
        """
        imported = load_entries(path)
        progress = progress or _log_progress
        total = len(imported)
        for i, record in enumerate(imported, start=1):
            self.write(record.to_entry())
            progress(i, total)
        logger.info(f"Imported {total} entries from {path}")
        return total

    def export_file(self, path: Path) -> int:
        """
        Decrypt every entry and write them, ids included, to ``path``.

        The destination is overwritten and restricted to its owner before
        any plaintext is written to it.

        Raises:
            VaultIOError: If the file cannot be written or restricted

        Returns:
            Number of exported entries
        """
        entries = self.list()
        dump_entries(path, entries)
        logger.info(f"Exported {len(entries)} entries to {path}")
        return len(entries)
