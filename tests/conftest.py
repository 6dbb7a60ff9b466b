"""Shared pytest fixtures."""
import pytest

from storage.database import Database
from storage.session_store import InMemorySessionStore
from helpers import FakeAnalyzer, FakeSynthesizer


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def db(tmp_path):
    return Database(db_path=tmp_path / "workshop.db")
