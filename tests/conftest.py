"""
Shared fixtures: an in-memory gateway and an AppContext wired to it.
"""

import time
from typing import Any, Dict, List, Optional

import pytest

from clinic_app.config import Settings
from clinic_app.context import AppContext
from clinic_app.gateway import (
    SIGNED_IN, SIGNED_OUT, AuthSession, AuthSubscription, GatewayError, Identity,
)
from clinic_app.preferences import Preferences
from clinic_app.session import SessionStore


def _matches(row: Dict[str, Any], filters) -> bool:
    for column, op, value in filters:
        actual = row.get(column)
        if op == "eq" and str(actual) != str(value):
            return False
        if op == "gte" and not actual >= value:
            return False
        if op == "lt" and not actual < value:
            return False
        if op == "in" and actual not in value:
            return False
    return True


class FakeGateway:
    """Same surface as clinic_app.gateway.Gateway, backed by dicts."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {k: list(v) for k, v in (tables or {}).items()}
        self.calls: List[tuple] = []
        self.failures: Dict[str, GatewayError] = {}
        self.accounts: Dict[str, tuple] = {}
        self.during_fetch = None
        self._session: Optional[AuthSession] = None
        self._listeners: list = []

    def _call(self, name: str, *args) -> None:
        self.calls.append((name,) + args)
        if name in self.failures:
            raise self.failures[name]

    # auth
    def on_auth_state_change(self, callback):
        return AuthSubscription(self._listeners, callback)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self._session)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self._call("sign_in_with_password", email)
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise GatewayError("Invalid login credentials", status=400, code="invalid_credentials")
        self._session = AuthSession("access", "refresh", time.time() + 3600, Identity(account[1], email))
        self._emit(SIGNED_IN)
        return self._session

    def sign_out(self) -> None:
        self._call("sign_out")
        self._session = None
        self._emit(SIGNED_OUT)

    def get_session(self) -> Optional[AuthSession]:
        return self._session

    def register(self, email: str, password: str, *, full_name: str, phone: str, role: str) -> Identity:
        self._call("register", email, role)
        if email in self.accounts:
            raise GatewayError("User already registered", status=409)
        user_id = f"user-{len(self.accounts) + 1}"
        self.accounts[email] = (password, user_id)
        self.tables.setdefault("user_roles", []).append({"user_id": user_id, "role": role})
        return Identity(user_id, email)

    # data
    def select(self, table, columns="*", *, filters=(), order=None, ascending=True, limit=None):
        self._call("select", table, tuple(filters), order, ascending, limit)
        rows = [dict(r) for r in self.tables.get(table, []) if _matches(r, filters)]
        if order:
            rows.sort(key=lambda r: r[order], reverse=not ascending)
        if limit is not None:
            rows = rows[:limit]
        if self.during_fetch is not None:
            self.during_fetch()
        return rows

    def maybe_single(self, table, columns="*", *, filters=()):
        rows = self.select(table, columns, filters=filters, limit=1)
        return rows[0] if rows else None

    def count(self, table, *, filters=()):
        self._call("count", table, tuple(filters))
        return sum(1 for r in self.tables.get(table, []) if _matches(r, filters))

    def insert(self, table, row):
        self._call("insert", table, dict(row))
        created = dict(row, id=f"{table}-{len(self.tables.get(table, [])) + 1}")
        self.tables.setdefault(table, []).append(created)
        return created


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def make_ctx(tmp_path, notifications):
    def _make(gw: FakeGateway, clinic_tz: str = "UTC") -> AppContext:
        settings = Settings(
            supabase_url="http://backend.test",
            supabase_anon_key="anon",
            provisioning_url="http://provisioning.test",
            clinic_tz=clinic_tz,
            preferences_path=str(tmp_path / "prefs.json"),
        )
        session = SessionStore(gw)
        session.initialize()
        return AppContext(
            settings=settings,
            gateway=gw,
            session=session,
            preferences=Preferences.load({}, settings.preferences_path),
            notify=lambda kind, title, body: notifications.append((kind, title, body)),
        )

    return _make


@pytest.fixture
def doctor_gateway():
    """A gateway with one doctor account already signed in."""
    gw = FakeGateway({"user_roles": [{"user_id": "doc-1", "role": "doctor"}]})
    gw.accounts["doc@example.com"] = ("secret123", "doc-1")
    gw.sign_in_with_password("doc@example.com", "secret123")
    gw.calls.clear()
    return gw


@pytest.fixture
def ctx(make_ctx, doctor_gateway):
    c = make_ctx(doctor_gateway)
    doctor_gateway.calls.clear()
    return c
