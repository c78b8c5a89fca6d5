"""Pytest configuration and fixtures."""

import os
import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from flowengine.config import get_testing_config
from flowengine.factory import create_app
from flowengine.storage.database import build_engine, create_tables
from flowengine.storage.memory import InMemoryGraphStore
from flowengine.storage.store import SqlAlchemyGraphStore


@pytest.fixture
def memory_store():
    """Empty in-memory graph store."""
    return InMemoryGraphStore()


@pytest.fixture
def temp_db_path():
    """Path of a temporary SQLite database file, removed afterwards."""
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)

    yield db_path

    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def sql_store(temp_db_path):
    """SqlAlchemyGraphStore over a fresh temporary database."""
    engine = build_engine(f"sqlite:///{temp_db_path}")
    create_tables(engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield SqlAlchemyGraphStore(session_factory)

    engine.dispose()


@pytest.fixture
def client(temp_db_path):
    """Test client for an app backed by a temporary database."""
    config = get_testing_config()
    config.database_url = f"sqlite:///{temp_db_path}"
    app = create_app(config)

    with TestClient(app) as test_client:
        yield test_client
