"""
Shared pytest fixtures for the Complaint Desk test suite.

Every test runs against a fresh in-memory key-value store; the web app's
session store and repository are swapped in through dependency overrides.
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
import httpx

from complaintdesk.app import app, limiter, get_repository, get_session_store
from complaintdesk.repository import ComplaintRepository
from complaintdesk.session import SessionStore, make_user
from complaintdesk.store import MemoryStore

START = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def start():
    return START


@pytest.fixture
def clock():
    """Advances one second per call so timestamp ids never collide."""
    ticks = itertools.count()
    return lambda: START + timedelta(seconds=next(ticks))


@pytest.fixture
def repo(store, clock):
    return ComplaintRepository(store, clock=clock)


@pytest.fixture
def sessions(store):
    return SessionStore(store)


@pytest.fixture
def user():
    return make_user("Test Citizen", "u1@example.com")


@pytest.fixture
def other_user():
    return make_user("Someone Else", "u2@example.com")


@pytest.fixture
def signed_in(sessions, user):
    sessions.begin_session(user)
    return user


@pytest.fixture
def pothole():
    return {
        "title": "Pothole",
        "description": "Large pothole on Main St",
        "category": "Path Holes",
        "priority": "high",
        "location": "Main St",
    }


@pytest_asyncio.fixture
async def client(repo, sessions):
    """In-process httpx AsyncClient bound to the test store."""
    limiter.enabled = False
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_session_store] = lambda: sessions
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()
