# clinic_app/session.py — who is signed in, and as what
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional

from clinic_app.gateway import AuthSession, AuthSubscription, Gateway, GatewayError, Identity

logger = logging.getLogger(__name__)


class Role(str, Enum):
    DOCTOR = "doctor"
    SECRETARY = "secretary"
    # identity exists but has no (or an unrecognized) role row
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        try:
            role = cls(value)
        except ValueError:
            return cls.UNKNOWN
        return role


ROLE_LABELS = {
    Role.DOCTOR: "طبيب",
    Role.SECRETARY: "سكرتير/ة",
}
GENERIC_ROLE_LABEL = "مستخدم"


def role_label(role: Optional[Role]) -> str:
    return ROLE_LABELS.get(role, GENERIC_ROLE_LABEL)


SessionListener = Callable[["SessionStore"], None]


class SessionStore:
    """
    Current identity and role, kept in sync with the gateway.

    initialize() loads whatever session the gateway already has and
    subscribes to its auth events; every event re-resolves identity and
    role. Nothing else writes these fields.
    """

    def __init__(self, gateway: Gateway):
        self._gateway = gateway
        self.identity: Optional[Identity] = None
        self.role: Optional[Role] = None
        self.loading = True
        self._listeners: List[SessionListener] = []
        self._subscription: Optional[AuthSubscription] = None

    @property
    def authenticated(self) -> bool:
        return self.identity is not None

    def initialize(self) -> None:
        if self._subscription is None:
            self._subscription = self._gateway.on_auth_state_change(self._on_auth_event)
        self._resolve(self._gateway.get_session())

    def teardown(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()
        self.identity = None
        self.role = None
        self.loading = True

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        logger.info("auth state changed: %s", event)
        self._resolve(session)

    def _resolve(self, session: Optional[AuthSession]) -> None:
        self.loading = True
        if session is None:
            self.identity = None
            self.role = None
        else:
            self.identity = session.identity
            self.role = self._lookup_role(session.identity.id)
        self.loading = False
        for listener in list(self._listeners):
            listener(self)

    def _lookup_role(self, user_id: str) -> Role:
        try:
            row = self._gateway.maybe_single("user_roles", "role", filters=[("user_id", "eq", user_id)])
        except GatewayError as e:
            logger.warning("role lookup failed for %s: %s", user_id, e.message)
            return Role.UNKNOWN
        if row is None:
            logger.warning("identity %s has no role row", user_id)
            return Role.UNKNOWN
        return Role.parse(row.get("role"))
