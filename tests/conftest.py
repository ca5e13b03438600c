# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - A chainable fake of the Supabase query builder
# - Signed test tokens for authenticated routes
# =============================================================================

import os
import time
import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-gateway-key")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest
from jose import jwt

from lib.supabase_client import SupabaseClient

TEST_JWT_SECRET = "test-jwt-secret"
USER_ID = "11111111-1111-1111-1111-111111111111"
ADMIN_ID = "22222222-2222-2222-2222-222222222222"


# =============================================================================
# Fake Supabase
# =============================================================================

class FakeQuery:
    """
    Records the builder calls of one query and returns a queued result on
    execute().

    Example:
        query.calls  # [("select", ("*",), {}), ("eq", ("user_id", "u1"), {})]
    """

    _BUILDER_METHODS = (
        "select", "insert", "update", "delete", "upsert",
        "eq", "neq", "lt", "lte", "gt", "gte", "in_", "is_",
        "order", "limit", "single", "maybe_single",
    )

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.calls: list[tuple] = []

    def __getattr__(self, name):
        if name not in self._BUILDER_METHODS:
            raise AttributeError(name)

        def builder(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return builder

    def call(self, name: str):
        """First recorded call with that method name, or None."""
        for call_name, args, kwargs in self.calls:
            if call_name == name:
                return SimpleNamespace(args=args, kwargs=kwargs)
        return None

    def has(self, name: str) -> bool:
        return self.call(name) is not None

    def execute(self):
        self.db.executed.append(self)
        result = self.db.next_result(self.table)
        if isinstance(result, Exception):
            raise result
        count = len(result) if isinstance(result, list) else None
        return SimpleNamespace(data=result, count=count)


class FakeSupabase:
    """
    Stand-in for the supabase Client.

    Results are queued per table (RPCs as "rpc:<name>") and consumed in
    execute() order; an Exception instance is raised instead of returned.
    An empty queue yields []. execute() reports count as the number of rows
    returned. auth is a MagicMock for the auth admin API; it knows no
    users until set_auth_user() is called.
    """

    def __init__(self):
        self.results: dict[str, list] = {}
        self.executed: list[FakeQuery] = []
        self.storage = MagicMock()
        self.auth = MagicMock()
        self.auth.admin.get_user_by_id.return_value = SimpleNamespace(user=None)

    def queue(self, table: str, *results) -> "FakeSupabase":
        self.results.setdefault(table, []).extend(results)
        return self

    def next_result(self, table: str):
        pending = self.results.get(table)
        if pending:
            return pending.pop(0)
        return []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict | None = None) -> FakeQuery:
        query = FakeQuery(self, f"rpc:{name}")
        query.calls.append(("rpc", (name, params), {}))
        return query

    def queries(self, table: str, method: str | None = None) -> list[FakeQuery]:
        """Executed queries on a table, optionally only those using a method."""
        return [
            q for q in self.executed
            if q.table == table and (method is None or q.has(method))
        ]


def no_rows_error() -> Exception:
    """What .single() raises when nothing matched."""
    return Exception({"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"})


@pytest.fixture
def fake_db():
    """Patch the Supabase singleton with a FakeSupabase."""
    db = FakeSupabase()
    with patch.object(SupabaseClient, "get_client", return_value=db):
        yield db


# =============================================================================
# Auth
# =============================================================================

def make_token(user_id: str = USER_ID, email: str = "user@example.com", **claims) -> str:
    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
        **claims,
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


@pytest.fixture
def user_token() -> str:
    return make_token(user_metadata={"full_name": "Test User"})


@pytest.fixture
def admin_token() -> str:
    return make_token(ADMIN_ID, "admin@example.com")


@pytest.fixture
def auth_headers(user_token) -> dict:
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def admin_headers(admin_token) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}


# =============================================================================
# Sample Data
# =============================================================================

@pytest.fixture
def sample_metadata_results():
    """Tool call arguments as returned by the metadata model."""
    return {
        "results": [
            {
                "marketplace": "Adobe Stock",
                "title": "Sunset over calm ocean waves",
                "description": "Golden sunset reflecting on a calm sea.",
                "keywords": ["sunset", "ocean", "waves", "golden hour", "sea"],
            },
            {
                "marketplace": "Shutterstock",
                "title": "Calm ocean at sunset",
                "description": "A peaceful seascape at dusk.",
                "keywords": ["ocean", "dusk", "seascape"],
            },
        ]
    }


@pytest.fixture
def random_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Email
# =============================================================================

def set_auth_user(db: FakeSupabase, email: str | None = "user@example.com", full_name: str | None = "Ana") -> None:
    """Make the auth admin API return a user with this email and name."""
    user = SimpleNamespace(email=email, user_metadata={"full_name": full_name} if full_name else {})
    db.auth.admin.get_user_by_id.return_value = SimpleNamespace(user=user)


@pytest.fixture
def mailer():
    """A configured mailer that accepts every message."""
    service = MagicMock()
    service.is_configured = True
    service.send_email.return_value = True
    return service
