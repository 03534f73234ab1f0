"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from supabase import AuthError as SupabaseAuthError
from supabase import PostgrestAPIError

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeQuery:
    """Records one chained PostgREST call and runs it against in-memory rows."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = "select"
        self.payload = None
        self.on_conflict = ""
        self.filters = []
        self.order_by = None
        self.bounds = None
        self.max_rows = None

    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload, on_conflict=""):
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column):
        self.order_by = column
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        self.client.calls.append((self.table, self.op, dict(self.filters)))
        failure = self.client.failures.get((self.table, self.op))
        if failure is not None:
            raise failure

        rows = self.client.tables.setdefault(self.table, [])
        if self.op == "select":
            found = [dict(row) for row in rows if self._matches(row)]
            if self.order_by:
                found.sort(key=lambda row: row[self.order_by])
            if self.bounds:
                found = found[self.bounds[0]:self.bounds[1] + 1]
            if self.max_rows is not None:
                found = found[:self.max_rows]
            return SimpleNamespace(data=found)
        if self.op == "insert":
            rows.append(dict(self.payload))
            return SimpleNamespace(data=[dict(self.payload)])
        if self.op == "upsert":
            keys = [k.strip() for k in self.on_conflict.split(",") if k.strip()]
            for row in rows:
                if all(row.get(k) == self.payload.get(k) for k in keys):
                    row.update(self.payload)
                    return SimpleNamespace(data=[dict(row)])
            rows.append(dict(self.payload))
            return SimpleNamespace(data=[dict(self.payload)])
        if self.op == "update":
            changed = [row for row in rows if self._matches(row)]
            for row in changed:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(row) for row in changed])
        removed = [row for row in rows if self._matches(row)]
        self.client.tables[self.table] = [row for row in rows if not self._matches(row)]
        return SimpleNamespace(data=removed)


class FakeAuthApiError(SupabaseAuthError):
    """Auth API error with the attributes Supabase exposes."""

    def __init__(self, message, code=None, status=400):
        Exception.__init__(self, message)
        self.message = message
        self.code = code
        self.status = status


def auth_response(user_id="user-1", email="ann@example.com", metadata=None, with_session=True):
    user = SimpleNamespace(id=user_id, email=email, user_metadata=metadata or {})
    session = SimpleNamespace(access_token="token") if with_session else None
    return SimpleNamespace(user=user, session=session)


class FakeAuth:
    def __init__(self):
        self.error = None
        self.response = auth_response()
        self.oauth_requests = []
        self.exchanged = []
        self.signed_out = False

    def _respond(self):
        if self.error is not None:
            raise self.error
        return self.response

    def sign_in_with_password(self, credentials):
        return self._respond()

    def sign_up(self, credentials):
        return self._respond()

    def sign_in_with_oauth(self, credentials):
        if self.error is not None:
            raise self.error
        self.oauth_requests.append(credentials)
        return SimpleNamespace(provider=credentials["provider"], url="https://auth.example.com/authorize?provider=google")

    def exchange_code_for_session(self, params):
        self.exchanged.append(params)
        return self._respond()

    def sign_out(self):
        if self.error is not None:
            raise self.error
        self.signed_out = True


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failures = {}
        self.calls = []
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, message="permission denied for table"):
        self.failures[(table, op)] = PostgrestAPIError({"message": message, "code": "42501", "hint": None, "details": None})


@pytest.fixture
def fake_client():
    """In-memory stand-in for an authenticated Supabase client."""
    return FakeSupabase()


@pytest.fixture
def sample_workdays():
    """Mixed legacy and structured entries across two months."""
    return {
        "2024-03-01": True,
        "2024-03-15": {"worked": True, "rate": 1000},
        "2024-04-01": True,
    }
