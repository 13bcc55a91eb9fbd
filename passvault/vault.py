"""
Caller-facing vault operations.

Each function takes an unlocked ``EnvelopeKeyManager``, opens the record store
for the duration of the call and returns plain values. Nothing here prints or
exits; presentation belongs to the caller.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .config import VaultLocation
from .entry import Entry
from .envelope import EnvelopeKeyManager
from .exceptions import NotFoundError, VaultIOError
from .storage import EncryptedRecordStore, ProgressCallback

logger = logging.getLogger(__name__)


def _location(location: Optional[VaultLocation]) -> VaultLocation:
    return location if location is not None else VaultLocation.default()


def _open(manager: EnvelopeKeyManager) -> EncryptedRecordStore:
    return EncryptedRecordStore(manager, manager.location)


def init(passphrase: str, location: Optional[VaultLocation] = None) -> EnvelopeKeyManager:
    """
    Create a vault and its record store; refuses to overwrite an existing vault.

    If the record store cannot be created the new keyfile is removed again, so
    a later ``init`` can retry.
    """
    location = _location(location)
    manager = EnvelopeKeyManager.init(passphrase, location)
    try:
        _open(manager).close()
    except VaultIOError:
        manager.lock()
        location.keyfile_path.unlink()
        logger.warning(f"Removed keyfile {location.keyfile_path} after failing to create the record store")
        raise
    return manager


def unlock(passphrase: str, location: Optional[VaultLocation] = None) -> EnvelopeKeyManager:
    return EnvelopeKeyManager.unlock(passphrase, _location(location))


def add(
    manager: EnvelopeKeyManager,
    service: str,
    email: str,
    password: Optional[str] = None,
    username: Optional[str] = None,
    url: Optional[str] = None,
) -> Entry:
    """Store a new entry, generating its id and, if omitted, its password."""
    entry = Entry.new(service, email, password, username, url)
    with _open(manager) as store:
        store.write(entry)
    logger.info(f"Added entry {entry.id}")
    return entry


def inspect(manager: EnvelopeKeyManager, entry_id: str) -> Entry:
    with _open(manager) as store:
        return store.read(entry_id)


def update(
    manager: EnvelopeKeyManager,
    entry_id: str,
    service: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    username: Optional[str] = None,
    url: Optional[str] = None,
) -> Entry:
    """Overwrite the given fields of an entry, leaving the others and its id untouched."""
    with _open(manager) as store:
        entry = store.read(entry_id)
        entry.overwrite(service=service, email=email, password=password, username=username, url=url)
        store.update(entry)
    logger.info(f"Updated entry {entry_id}")
    return entry


def remove(manager: EnvelopeKeyManager, entry_id: str) -> None:
    """
    Raises:
        NotFoundError: If no entry has this id
    """
    with _open(manager) as store:
        removed = store.remove(entry_id)
    if not removed:
        raise NotFoundError(f"No entry with id {entry_id}")
    logger.info(f"Removed entry {entry_id}")


def ls(manager: EnvelopeKeyManager) -> List[Entry]:
    with _open(manager) as store:
        return store.list()


def find(manager: EnvelopeKeyManager, query: str) -> List[Entry]:
    with _open(manager) as store:
        return store.find(query)


def import_entries(manager: EnvelopeKeyManager, path: Path, progress: Optional[ProgressCallback] = None) -> int:
    with _open(manager) as store:
        return store.import_file(path, progress)


def export_entries(manager: EnvelopeKeyManager, path: Path) -> int:
    with _open(manager) as store:
        return store.export_file(path)
