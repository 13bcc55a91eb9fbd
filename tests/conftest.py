"""
Shared fixtures for the passvault test suite.

Every vault lives in a pytest temporary directory, and the delay applied after
a wrong passphrase is recorded instead of slept.
"""
import string

import pytest

from passvault.config import VaultLocation
from passvault.envelope import EnvelopeKeyManager
from passvault.storage import EncryptedRecordStore

PASSPHRASE = "Tr0ub4dor&3"


def satisfies_password_rule(password: str) -> bool:
    """At least one lowercase, one uppercase, and digits making up 20% of the length."""
    digits = sum(c in string.digits for c in password)
    return (
        any(c.islower() for c in password)
        and any(c.isupper() for c in password)
        and digits / len(password) >= 0.2
    )


@pytest.fixture
def password_rule():
    return satisfies_password_rule


@pytest.fixture
def location(tmp_path):
    """A vault location that does not exist yet."""
    return VaultLocation(tmp_path / "vault")


@pytest.fixture
def sleeps(monkeypatch):
    """Record failed-unlock delays instead of sleeping."""
    recorded = []
    monkeypatch.setattr("passvault.envelope.time.sleep", recorded.append)
    return recorded


@pytest.fixture
def manager(location):
    """A freshly initialized, unlocked vault."""
    with EnvelopeKeyManager.init(PASSPHRASE, location) as mgr:
        yield mgr


@pytest.fixture
def store(manager, location):
    """An open record store on the fresh vault."""
    with EncryptedRecordStore(manager, location) as st:
        yield st
