"""Shared fixtures for SplitLedger tests."""

import pytest

from splitledger.config import Settings
from splitledger.db import Database
from splitledger.ledger.service import LedgerService


@pytest.fixture
def settings(tmp_path):
    """Create test settings with a temporary database path."""
    return Settings(actor_id="alice", database_path=tmp_path / "ledger.db")


@pytest.fixture
def db(settings):
    """Create a temporary database."""
    database = Database(settings.database_path)
    yield database
    database.close()


@pytest.fixture
def service(settings, db):
    """Create a LedgerService instance."""
    return LedgerService(settings, db)
