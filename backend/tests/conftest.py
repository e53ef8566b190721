"""Shared fixtures: in-memory stores, gateways and sessions with a fixed clock."""

from datetime import date

import pytest

from src.core.models import User
from src.shell.persistence import PersistenceGateway
from src.shell.session import SessionManager
from src.shell.storage import MemoryStore


TODAY = date(2024, 12, 28)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def gateway(store):
    return PersistenceGateway(store)


@pytest.fixture
def session(gateway):
    return SessionManager(gateway, clock=lambda: TODAY)


@pytest.fixture
def alice():
    return User(id="alice0001", email="alice@example.com", name="Alice")


@pytest.fixture
def bob():
    return User(id="bob000001", email="bob@example.com", name="Bob")


@pytest.fixture
def today():
    return TODAY
