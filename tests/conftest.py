"""Shared fixtures for the Atlas board tests."""

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure the project root is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from atlas.app import AtlasApp
from atlas.config import AtlasConfig
from atlas.storage import MemoryStorage
from atlas.store import AtlasStore

TODAY = date(2025, 3, 10)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    s = AtlasStore(storage, today=TODAY)
    s.load()
    return s


@pytest.fixture
def config():
    return AtlasConfig(storage_backend="memory", watch_storage=False)


@pytest.fixture
def app(storage, config):
    ctx = AtlasApp(storage, page="kanban", config=config, today=TODAY)
    yield ctx
    ctx.close()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "atlas.db")
