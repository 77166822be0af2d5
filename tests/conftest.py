# tests/conftest.py
"""Shared fixtures. The app under test runs on an in-memory SQLite database."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["API_KEY"] = "test-api-key"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gatehouse.database import Base
from gatehouse.models.document import Document  # noqa: F401
from gatehouse.services.access_rules import AuthContext, UserRole
from gatehouse.services.document_store import DocumentStore
from gatehouse.services.event_emitter import EventEmitter

API_KEY = "test-api-key"

ADMIN = AuthContext(uid="admin-1", role=UserRole.ADMIN)
RECEPTION = AuthContext(uid="desk-1", role=UserRole.RECEPTION)
GUEST = AuthContext(uid="guest-1", role=UserRole.GUEST)


@pytest.fixture
def store():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield DocumentStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    engine.dispose()


@pytest.fixture
def emitter():
    return EventEmitter()
