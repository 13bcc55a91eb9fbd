"""
Import and export document formats.

Files are dispatched on their extension. Import documents hold entries without
ids; export documents hold full entries, ids included.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Callable, Dict, List, Sequence

from . import config
from .entry import Entry, ImportedEntry
from .exceptions import ImportParseError, UnsupportedFormatError, VaultIOError
from .utils import open_private_file

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("service", "email", "password")


def _format_of(path: Path, registry: Dict[str, Callable]) -> Callable:
    suffix = Path(path).suffix.lower()
    if not suffix:
        raise UnsupportedFormatError(f"Invalid file type: {path} has no extension")
    if suffix not in registry:
        raise UnsupportedFormatError(
            f"File type {suffix} not supported (supported: {', '.join(sorted(registry))})"
        )
    return registry[suffix]


def _to_imported(record: dict, position: int) -> ImportedEntry:
    """Validate one parsed record."""
    if not isinstance(record, dict):
        raise ImportParseError(f"Record {position} is not an object")
    missing = [name for name in REQUIRED_FIELDS if name not in record]
    if missing:
        raise ImportParseError(f"Record {position} is missing field(s): {', '.join(missing)}")
    values = {}
    for name in config.ENTRY_FIELDS:
        value = record.get(name, "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ImportParseError(f"Record {position}: field {name} must be a string")
        values[name] = value
    return ImportedEntry(**values)


def load_json(path: Path) -> List[ImportedEntry]:
    """Parse a JSON array of ``{service, email, password, username, url}`` objects."""
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ImportParseError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, list):
        raise ImportParseError(f"{path} must contain a JSON array of entries")
    return [_to_imported(record, i) for i, record in enumerate(data)]


def _map_headers(headers: Sequence[str]) -> Dict[str, str]:
    """Map CSV headers to our field names."""
    header_map = {}
    for field, variations in config.IMPORT_HEADER_MAPPINGS.items():
        for header in headers:
            if header.lower().strip() in variations:
                header_map[field] = header
                break
    return header_map


def load_csv(path: Path) -> List[ImportedEntry]:
    """
    Parse a CSV file with a header row.

    Header names are matched case-insensitively against
    ``config.IMPORT_HEADER_MAPPINGS``.
    """
    with open(path, 'r', encoding='utf-8-sig', newline='') as f:
        reader = csv.DictReader(f)
        try:
            headers = reader.fieldnames or []
            rows = list(reader)
        except csv.Error as e:
            raise ImportParseError(f"Invalid CSV in {path}: {e}") from e

    header_map = _map_headers(headers)
    missing = [name for name in REQUIRED_FIELDS if name not in header_map]
    if missing:
        raise ImportParseError(f"{path} is missing column(s): {', '.join(missing)}")

    entries = []
    for i, row in enumerate(rows):
        record = {field: (row.get(header) or "") for field, header in header_map.items()}
        entries.append(_to_imported(record, i))
    return entries


def dump_json(path: Path, entries: Sequence[Entry]) -> None:
    with open_private_file(path, 'w', encoding='utf-8') as f:
        json.dump([e.to_dict() for e in entries], f, indent=config.JSON_INDENT, ensure_ascii=False)
        f.write('\n')


def dump_csv(path: Path, entries: Sequence[Entry]) -> None:
    with open_private_file(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(('id',) + config.ENTRY_FIELDS)
        for entry in entries:
            writer.writerow((entry.id,) + entry.field_values())


LOADERS: Dict[str, Callable[[Path], List[ImportedEntry]]] = {
    '.json': load_json,
    '.csv': load_csv,
}

DUMPERS: Dict[str, Callable[[Path, Sequence[Entry]], None]] = {
    '.json': dump_json,
    '.csv': dump_csv,
}


def load_entries(path: Path) -> List[ImportedEntry]:
    """
    Read every importable record from ``path``.

    Raises:
        UnsupportedFormatError: If the extension is not supported
        ImportParseError: If the content is malformed
        VaultIOError: If the file cannot be read
    """
    loader = _format_of(path, LOADERS)
    try:
        entries = loader(Path(path))
    except UnicodeDecodeError as e:
        raise ImportParseError(f"{path} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise VaultIOError(f"Failed to read {path}: {e}") from e
    logger.info(f"Parsed {len(entries)} entries from {path}")
    return entries


def dump_entries(path: Path, entries: Sequence[Entry]) -> None:
    """
    Write ``entries`` to ``path``, replacing any existing file. The file is
    restricted to its owner before any entry is written.

    Raises:
        UnsupportedFormatError: If the extension is not supported
        VaultIOError: If the file cannot be written
    """
    dumper = _format_of(path, DUMPERS)
    try:
        dumper(Path(path), entries)
    except OSError as e:
        raise VaultIOError(f"Failed to write {path}: {e}") from e
