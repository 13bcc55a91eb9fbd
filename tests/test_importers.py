"""
Tests for bulk import and export through the record store.
"""
import csv
import json
import os
import stat
import sys
from collections import Counter

import pytest

from passvault.config import VaultLocation
from passvault.entry import Entry
from passvault.envelope import EnvelopeKeyManager
from passvault.exceptions import DuplicateEntryError, ImportParseError, UnsupportedFormatError, VaultIOError
from passvault.importers import load_entries
from passvault.storage import EncryptedRecordStore

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")

RECORDS = [
    {"service": "github", "email": "a@b.com", "password": "pw1", "username": "octocat", "url": "https://github.com"},
    {"service": "mail", "email": "me@mail.org", "password": "pw2", "username": "", "url": ""},
    {"service": "bank", "email": "c@d.net", "password": "pw3", "username": "saver", "url": "https://bank.example"},
]


def tuples(entries):
    return Counter(entry.field_values() for entry in entries)


@pytest.fixture
def json_doc(tmp_path):
    path = tmp_path / "backup.json"
    path.write_text(json.dumps(RECORDS))
    return path


@pytest.fixture
def csv_doc(tmp_path):
    path = tmp_path / "export.csv"
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Name", "E-mail", "Password", "Login", "Website"])
        for r in RECORDS:
            writer.writerow([r["service"], r["email"], r["password"], r["username"], r["url"]])
    return path


# --- Parsing ---

class TestLoadEntries:
    """Tests for parsing import documents."""

    def test_json(self, json_doc):
        entries = load_entries(json_doc)
        assert [e.service for e in entries] == ["github", "mail", "bank"]

    def test_json_optional_fields(self, tmp_path):
        path = tmp_path / "min.json"
        path.write_text(json.dumps([{"service": "s", "email": "e", "password": "p"}]))
        (entry,) = load_entries(path)
        assert (entry.username, entry.url) == ("", "")

    def test_csv_header_aliases(self, csv_doc):
        entries = load_entries(csv_doc)
        assert [e.service for e in entries] == ["github", "mail", "bank"]
        assert entries[0].username == "octocat"
        assert entries[0].url == "https://github.com"

    def test_extension_is_case_insensitive(self, tmp_path):
        path = tmp_path / "BACKUP.JSON"
        path.write_text(json.dumps(RECORDS))
        assert len(load_entries(path)) == 3

    @pytest.mark.parametrize("name", ["backup.yaml", "backup.txt", "backup"])
    def test_unsupported_format(self, tmp_path, name):
        path = tmp_path / name
        path.write_text("[]")
        with pytest.raises(UnsupportedFormatError):
            load_entries(path)

    @pytest.mark.parametrize("content", [
        "{not json",
        json.dumps({"service": "not a list"}),
        json.dumps([{"service": "s", "email": "e"}]),
        json.dumps([{"service": "s", "email": "e", "password": 42}]),
        json.dumps(["just a string"]),
    ])
    def test_malformed_json(self, tmp_path, content):
        path = tmp_path / "bad.json"
        path.write_text(content)
        with pytest.raises(ImportParseError):
            load_entries(path)

    def test_csv_missing_column(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("service,email\ngithub,a@b.com\n")
        with pytest.raises(ImportParseError):
            load_entries(path)


    def test_csv_malformed_header(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("service,email," + "p" * (csv.field_size_limit() + 1) + "\n")
        with pytest.raises(ImportParseError):
            load_entries(path)

# --- Import ---

class TestImport:
    """Tests for EncryptedRecordStore.import_file."""

    def test_import_json(self, store, json_doc):
        assert store.import_file(json_doc) == 3
        assert tuples(store.list()) == tuples(
            Entry("", r["service"], r["email"], r["password"], r["username"], r["url"]) for r in RECORDS
        )

    def test_import_assigns_fresh_ids(self, store, json_doc):
        store.import_file(json_doc)
        store.import_file(json_doc)
        ids = [e.id for e in store.list()]
        assert len(ids) == 6
        assert len(set(ids)) == 6

    def test_progress_reported(self, store, json_doc):
        calls = []
        store.import_file(json_doc, progress=lambda done, total: calls.append((done, total)))
        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_parse_failure_writes_nothing(self, store, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(RECORDS + [{"service": "broken"}]))
        with pytest.raises(ImportParseError):
            store.import_file(path)
        assert store.list() == []

    def test_write_failure_keeps_committed_rows(self, store, json_doc, monkeypatch):
        """Rows written before a failure are not rolled back."""
        monkeypatch.setattr("passvault.entry.gen_key", lambda length: "sameid")
        with pytest.raises(DuplicateEntryError):
            store.import_file(json_doc)
        assert [e.service for e in store.list()] == ["github"]


# --- Export ---

class TestExport:
    """Tests for EncryptedRecordStore.export_file."""

    def test_export_json(self, store, tmp_path):
        entry = Entry.new("github", "a@b.com", "pw")
        store.write(entry)
        path = tmp_path / "out.json"
        assert store.export_file(path) == 1
        text = path.read_text()
        assert json.loads(text) == [entry.to_dict()]
        assert '\n  {' in text

    def test_export_overwrites(self, store, tmp_path):
        path = tmp_path / "out.json"
        path.write_text("x" * 10000)
        store.export_file(path)
        assert json.loads(path.read_text()) == []

    def test_export_csv(self, store, tmp_path):
        entry = Entry.new("github", "a@b.com", "pw", "octocat", "https://github.com")
        store.write(entry)
        path = tmp_path / "out.csv"
        store.export_file(path)
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert rows == [entry.to_dict()]

    @posix_only
    def test_export_created_owner_only(self, store, tmp_path):
        store.write(Entry.new("github", "a@b.com", "pw"))
        path = tmp_path / "out.csv"
        store.export_file(path)
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    @posix_only
    def test_export_tightens_existing_file(self, store, tmp_path):
        path = tmp_path / "out.json"
        path.write_text("[]")
        os.chmod(path, 0o644)
        store.export_file(path)
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    @posix_only
    def test_export_unrestricted_writes_nothing(self, store, tmp_path, monkeypatch):
        """If the file cannot be restricted, no plaintext reaches it."""
        store.write(Entry.new("github", "a@b.com", "pw"))
        path = tmp_path / "out.json"

        def refuse(*args, **kwargs):
            raise PermissionError("operation not permitted")

        monkeypatch.setattr("passvault.utils.os.chmod", refuse)
        with pytest.raises(VaultIOError):
            store.export_file(path)
        assert path.read_bytes() == b""

    def test_export_unsupported(self, store, tmp_path):
        with pytest.raises(UnsupportedFormatError):
            store.export_file(tmp_path / "out.xml")

    @pytest.mark.parametrize("suffix", [".json", ".csv"])
    def test_export_then_import_into_fresh_vault(self, store, tmp_path, json_doc, suffix):
        """The same multiset of field tuples survives, independent of ids."""
        store.import_file(json_doc)
        store.write(Entry.new("github", "a@b.com", "pw1", "octocat", "https://github.com"))
        exported = store.list()
        path = tmp_path / f"roundtrip{suffix}"
        store.export_file(path)

        fresh = VaultLocation(tmp_path / "fresh")
        with EnvelopeKeyManager.init("other passphrase", fresh) as manager:
            with EncryptedRecordStore(manager, fresh) as other:
                other.import_file(path)
                imported = other.list()

        assert tuples(imported) == tuples(exported)
        assert not {e.id for e in imported} & {e.id for e in exported}
