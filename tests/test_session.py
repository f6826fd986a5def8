"""
Session store: initialization, role resolution, reactive updates.
"""

from clinic_app.gateway import GatewayError
from clinic_app.session import GENERIC_ROLE_LABEL, Role, SessionStore, role_label
from conftest import FakeGateway


def _gateway_with_account(role=None):
    gw = FakeGateway({"user_roles": [{"user_id": "u1", "role": role}] if role else []})
    gw.accounts["doc@example.com"] = ("secret123", "u1")
    return gw


def test_starts_signed_out_without_session():
    store = SessionStore(FakeGateway())
    store.initialize()

    assert store.identity is None and store.role is None
    assert store.loading is False
    assert not store.authenticated


def test_picks_up_existing_session_on_initialize():
    gw = _gateway_with_account("secretary")
    gw.sign_in_with_password("doc@example.com", "secret123")
    store = SessionStore(gw)

    store.initialize()

    assert store.identity.id == "u1"
    assert store.role is Role.SECRETARY


def test_follows_login_and_logout():
    gw = _gateway_with_account("doctor")
    store = SessionStore(gw)
    store.initialize()
    seen = []
    store.subscribe(lambda s: seen.append(s.identity))

    gw.sign_in_with_password("doc@example.com", "secret123")
    assert store.role is Role.DOCTOR

    gw.sign_out()
    assert store.identity is None and store.role is None
    assert [i.id if i else None for i in seen] == ["u1", None]


def test_missing_role_row_is_explicit_unknown():
    gw = _gateway_with_account(None)
    store = SessionStore(gw)
    store.initialize()

    gw.sign_in_with_password("doc@example.com", "secret123")

    assert store.authenticated
    assert store.role is Role.UNKNOWN
    assert role_label(store.role) == GENERIC_ROLE_LABEL


def test_role_lookup_error_is_unknown():
    gw = _gateway_with_account("doctor")
    store = SessionStore(gw)
    store.initialize()
    gw.failures["select"] = GatewayError("timeout")

    gw.sign_in_with_password("doc@example.com", "secret123")

    assert store.role is Role.UNKNOWN


def test_teardown_stops_following_the_gateway():
    gw = _gateway_with_account("doctor")
    store = SessionStore(gw)
    store.initialize()
    store.teardown()

    gw.sign_in_with_password("doc@example.com", "secret123")

    assert store.identity is None


def test_unsubscribed_listener_is_not_called():
    gw = _gateway_with_account("doctor")
    store = SessionStore(gw)
    store.initialize()
    seen = []
    unsubscribe = store.subscribe(lambda s: seen.append(s))
    unsubscribe()

    gw.sign_in_with_password("doc@example.com", "secret123")
    assert seen == []


def test_role_labels():
    assert role_label(Role.DOCTOR) == "طبيب"
    assert role_label(Role.SECRETARY) == "سكرتير/ة"
    assert role_label(Role.parse("nurse")) == "مستخدم"
    assert role_label(None) == "مستخدم"
