"""Shared pytest fixtures for the API test suite.

Supabase is replaced by an in-memory fake that understands the subset of the
query-builder API the services use (select/insert/update/delete, eq/neq,
comparison filters, ilike, or_, order, limit, range and exact counts) plus
the auth calls made by the auth and embed modules.

Fixture overview
----------------
fake_supabase   : empty in-memory database with a fake auth API
test_settings   : Settings with fixed secrets, no .env lookup
session_client  : stand-in for the throwaway client that redeems magic links
client          : TestClient with Supabase/settings overridden, rate limits off
auth_headers    : bearer header for a registered user with a profile row
"""

from __future__ import annotations

import copy
import re
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from progresspath.config import Settings, get_settings
from progresspath.core.dependencies import get_auth_service
from progresspath.database.supabase_client import get_supabase
from progresspath.main import app, limiter
from progresspath.modules.auth.service import AuthService, clear_auth_cache

USER_ID = "11111111-2222-4333-8444-555555555555"
USER_EMAIL = "learner@example.com"
USER_TOKEN = "supabase-access-token"
JWT_SECRET = "test-embed-secret"
CRON_SECRET = "cron-secret"


# ── Fake query builder ────────────────────────────────────────────────────────


def _comparable(left: Any, right: Any):
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left, right
    return str(left), str(right)


def _ilike(value: Any, pattern: str) -> bool:
    if value is None:
        return False
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    return re.match(regex, str(value), re.IGNORECASE) is not None


_OPERATORS = {
    "eq": lambda v, x: v is not None and _comparable(v, x)[0] == _comparable(v, x)[1],
    "neq": lambda v, x: v is None or _comparable(v, x)[0] != _comparable(v, x)[1],
    "lt": lambda v, x: v is not None and _comparable(v, x)[0] < _comparable(v, x)[1],
    "lte": lambda v, x: v is not None and _comparable(v, x)[0] <= _comparable(v, x)[1],
    "gt": lambda v, x: v is not None and _comparable(v, x)[0] > _comparable(v, x)[1],
    "gte": lambda v, x: v is not None and _comparable(v, x)[0] >= _comparable(v, x)[1],
    "ilike": _ilike,
}


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.columns = "*"
        self.count_mode: Optional[str] = None
        self.payload: Any = None
        self.filters: List = []
        self.ordering: List = []
        self.max_rows: Optional[int] = None
        self.window: Optional[tuple] = None

    # Operations
    def select(self, columns: str = "*", count: Optional[str] = None, head: Optional[bool] = None) -> "FakeQuery":
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, values: Any) -> "FakeQuery":
        self.operation = "insert"
        self.payload = values
        return self

    def update(self, values: Dict[str, Any]) -> "FakeQuery":
        self.operation = "update"
        self.payload = values
        return self

    def delete(self) -> "FakeQuery":
        self.operation = "delete"
        return self

    # Filters
    def _add(self, op: str, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: _OPERATORS[op](row.get(column), value))
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        return self._add("eq", column, value)

    def neq(self, column: str, value: Any) -> "FakeQuery":
        return self._add("neq", column, value)

    def lt(self, column: str, value: Any) -> "FakeQuery":
        return self._add("lt", column, value)

    def lte(self, column: str, value: Any) -> "FakeQuery":
        return self._add("lte", column, value)

    def gt(self, column: str, value: Any) -> "FakeQuery":
        return self._add("gt", column, value)

    def gte(self, column: str, value: Any) -> "FakeQuery":
        return self._add("gte", column, value)

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        return self._add("ilike", column, pattern)

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def or_(self, expression: str) -> "FakeQuery":
        clauses = []
        for clause in expression.split(","):
            column, op, value = clause.split(".", 2)
            clauses.append((column, op, value))
        self.filters.append(
            lambda row: any(_OPERATORS[op](row.get(column), value) for column, op, value in clauses)
        )
        return self

    # Modifiers
    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.ordering.append((column, desc))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.max_rows = count
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.window = (start, end)
        return self

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self.columns.split(",")]
        return {key: copy.deepcopy(row[key]) for key in wanted if key in row}

    def execute(self) -> SimpleNamespace:
        self.db.calls.append((self.table_name, self.operation))
        if self.table_name in self.db.failing_tables:
            raise RuntimeError(f"connection to {self.table_name} failed")

        rows = self.db.tables.setdefault(self.table_name, [])
        if self.operation == "insert":
            values = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for value in values:
                row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **value}
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted, count=None)

        matched = [row for row in rows if all(f(row) for f in self.filters)]
        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)
        if self.operation == "delete":
            self.db.tables[self.table_name] = [row for row in rows if row not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        for column, desc in reversed(self.ordering):
            matched.sort(key=lambda row: (row.get(column) is None, str(row.get(column))), reverse=desc)
        total = len(matched)
        if self.window is not None:
            matched = matched[self.window[0]:self.window[1] + 1]
        if self.max_rows is not None:
            matched = matched[:self.max_rows]
        return SimpleNamespace(
            data=[self._project(row) for row in matched],
            count=total if self.count_mode == "exact" else None,
        )


# ── Fake auth ────────────────────────────────────────────────────────────────


class FakeAdminAuth:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth
        self.generated_links: List[Dict[str, Any]] = []

    def get_user_by_id(self, user_id: str) -> SimpleNamespace:
        for user in self.auth.users.values():
            if user.id == user_id:
                return SimpleNamespace(user=user)
        raise RuntimeError("User not found")

    def generate_link(self, params: Dict[str, Any]) -> SimpleNamespace:
        self.generated_links.append(params)
        return SimpleNamespace(properties=SimpleNamespace(hashed_token=f"hashed-{params['email']}"))


class FakeAuth:
    def __init__(self):
        self.users: Dict[str, SimpleNamespace] = {}
        self.admin = FakeAdminAuth(self)
        self.get_user_calls = 0

    def add_user(self, token: str, user_id: str, email: str, **metadata: Any) -> SimpleNamespace:
        user = SimpleNamespace(
            id=user_id,
            email=email,
            role="authenticated",
            user_metadata=metadata,
            app_metadata={},
            created_at="2024-01-01T00:00:00Z",
            updated_at="2024-01-01T00:00:00Z",
        )
        self.users[token] = user
        return user

    def get_user(self, jwt: Optional[str] = None) -> Optional[SimpleNamespace]:
        self.get_user_calls += 1
        user = self.users.get(jwt)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failing_tables: set = set()
        self.calls: List[tuple] = []
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, *rows: Dict[str, Any]) -> None:
        self.tables.setdefault(table, []).extend(copy.deepcopy(list(rows)))

    def fail_table(self, table: str) -> None:
        self.failing_tables.add(table)


class FakeSessionClient:
    def __init__(self):
        self.verified: List[Dict[str, Any]] = []
        self.auth = SimpleNamespace(verify_otp=self._verify_otp)

    def _verify_otp(self, params: Dict[str, Any]) -> SimpleNamespace:
        self.verified.append(params)
        return SimpleNamespace(
            session=SimpleNamespace(
                access_token="session-access-token",
                refresh_token="session-refresh-token",
                expires_in=3600,
                expires_at=1893456000,
                token_type="bearer",
            )
        )


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    """Empty in-memory Supabase."""
    return FakeSupabase()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with fixed secrets; ignores any local .env file."""
    return Settings(
        _env_file=None,
        supabase_url="http://supabase.test",
        supabase_key="anon-key",
        supabase_service_role_key="service-role-key",
        jwt_embed_secret=JWT_SECRET,
        app_url="https://progress.example.com",
        cron_secret=CRON_SECRET,
        test_secret=None,
        environment="test",
    )


@pytest.fixture
def session_client() -> FakeSessionClient:
    """Client that redeems magic-link hashes into sessions."""
    return FakeSessionClient()


@pytest.fixture
def client(fake_supabase: FakeSupabase, test_settings: Settings, session_client: FakeSessionClient):
    """TestClient wired to the fakes; rate limiting disabled."""
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_auth_service] = lambda: AuthService(
        fake_supabase, session_client_factory=lambda: session_client
    )
    limiter.enabled = False
    clear_auth_cache()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    limiter.enabled = True
    clear_auth_cache()


@pytest.fixture
def auth_headers(fake_supabase: FakeSupabase) -> Dict[str, str]:
    """Registered user with a user_profiles row; returns the bearer header."""
    fake_supabase.auth.add_user(USER_TOKEN, USER_ID, USER_EMAIL, full_name="Ada Learner")
    fake_supabase.seed(
        "user_profiles",
        {
            "id": USER_ID,
            "display_name": "Ada",
            "email": USER_EMAIL,
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        },
    )
    return {"Authorization": f"Bearer {USER_TOKEN}"}
