"""In-memory stand-in for the Supabase client plus app fixtures."""
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from app.core.dependencies import get_probe_cache
from app.database.supabase_client import get_supabase
from app.main import app, limiter
from app.modules.auth.service import clear_auth_cache
from app.modules.diagnostics.routes import get_admin_client
from app.modules.onboarding.prober import ProbeCache


def api_error(code: str, message: str = "backend error") -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.filters: List[Callable[[Dict], bool]] = []
        self.op = "select"
        self.payload: Any = None
        self.count_requested = False
        self.row_limit: Optional[int] = None
        self.row_range: Optional[tuple] = None

    def select(self, *columns, count=None, **kwargs):
        self.count_requested = count is not None
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, *args, **kwargs):
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def range(self, start, end):
        self.row_range = (start, end)
        return self

    def update(self, data):
        self.op = "update"
        self.payload = data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def insert(self, data):
        self.op = "insert"
        self.payload = data
        return self

    def execute(self):
        self.db.calls.append((self.table_name, self.op))
        error = self.db.errors.get(self.table_name)
        if error is not None:
            raise error
        rows = self.db.tables.setdefault(self.table_name, [])
        matched = [r for r in rows if all(f(r) for f in self.filters)]

        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matched], count=None)
        if self.op == "delete":
            self.db.tables[self.table_name] = [r for r in rows if r not in matched]
            return SimpleNamespace(data=matched, count=None)
        if self.op == "insert":
            rows.append(dict(self.payload))
            return SimpleNamespace(data=[dict(self.payload)], count=None)

        total = len(matched)
        if self.row_range is not None:
            matched = matched[self.row_range[0]:self.row_range[1] + 1]
        if self.row_limit is not None:
            matched = matched[:self.row_limit]
        return SimpleNamespace(data=[dict(r) for r in matched], count=total if self.count_requested else None)


class FakeAdmin:
    def __init__(self, db: "FakeSupabase"):
        self.db = db

    def list_users(self, page=None, per_page=50):
        users = list(self.db.users.values())
        start = ((page or 1) - 1) * per_page
        return users[start:start + per_page]

    def create_user(self, attributes):
        user = self.db.add_user(email=attributes["email"])
        if self.db.on_signup is not None:
            self.db.on_signup(user)
        return SimpleNamespace(user=user)

    def delete_user(self, user_id):
        self.db.users.pop(user_id, None)


class FakeAuth:
    def __init__(self, db: "FakeSupabase"):
        self.db = db
        self.admin = FakeAdmin(db)

    def get_user(self, jwt=None):
        user = self.db.tokens.get(jwt)
        if user is None:
            raise Exception("invalid JWT: token is expired")
        return SimpleNamespace(user=user)

    def sign_up(self, credentials):
        if any(u.email == credentials["email"] for u in self.db.users.values()):
            raise Exception("User already registered")
        user = self.db.add_user(email=credentials["email"])
        user.user_metadata = credentials.get("options", {}).get("data", {})
        if self.db.on_signup is not None:
            self.db.on_signup(user)
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        for token, user in self.db.tokens.items():
            if user.email == credentials["email"] and credentials["password"] == "correct-password":
                return SimpleNamespace(user=user, session=SimpleNamespace(access_token=token))
        raise Exception("Invalid login credentials")

    def sign_out(self):
        return None


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict]] = {}
        self.errors: Dict[str, Exception] = {}
        self.users: Dict[str, SimpleNamespace] = {}
        self.tokens: Dict[str, SimpleNamespace] = {}
        self.calls: List[tuple] = []
        self.on_signup: Optional[Callable[[SimpleNamespace], None]] = None
        self.auth = FakeAuth(self)

    def table(self, name):
        return FakeQuery(self, name)

    def add_user(self, email=None, user_id=None, created_at=None, app_metadata=None, token=None):
        user_id = user_id or str(uuid.uuid4())
        user = SimpleNamespace(
            id=user_id,
            email=email or f"{user_id[:8]}@example.com",
            user_metadata={},
            app_metadata=app_metadata or {},
            created_at=created_at or datetime.now(timezone.utc),
            updated_at=None,
        )
        self.users[user_id] = user
        if token:
            self.tokens[token] = user
        return user

    def add_profile(self, user_id, **fields):
        row = {"id": user_id, "full_name": None, "email": None, "avatar_url": None, "store_name": None}
        row.update(fields)
        self.tables.setdefault("profiles", []).append(row)
        return row

    def add_store(self, owner_id, completed=True, member=True, store_id=None):
        store = {
            "id": store_id or str(uuid.uuid4()),
            "owner_id": owner_id,
            "name": "Loja Teste",
            "onboarding_completed_at": datetime.now(timezone.utc).isoformat() if completed else None,
        }
        self.tables.setdefault("stores", []).append(store)
        if member:
            self.add_member(store["id"], owner_id, "owner")
        return store

    def add_member(self, store_id, user_id, role="member"):
        row = {"id": str(uuid.uuid4()), "store_id": store_id, "user_id": user_id, "role": role}
        self.tables.setdefault("store_members", []).append(row)
        return row


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def old_timestamp(days: int = 30) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def probe_cache():
    return ProbeCache(0)


@pytest.fixture
def client(fake_db, probe_cache):
    clear_auth_cache()
    limiter.reset()
    app.dependency_overrides[get_supabase] = lambda: fake_db
    app.dependency_overrides[get_admin_client] = lambda: fake_db
    app.dependency_overrides[get_probe_cache] = lambda: probe_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_auth_cache()
    limiter.reset()
