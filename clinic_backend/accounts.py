# accounts.py — create an identity and its role as one unit
from __future__ import annotations
import logging
import os
from typing import Any, Callable, Dict, Optional

import requests

logger = logging.getLogger(__name__)

SUPABASE_URL = os.getenv("SUPABASE_URL", "http://localhost:54321").rstrip("/")
SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
_TIMEOUT = 20

# auth-server error codes that mean "this email already has an account"
_EXISTS_CODES = {"email_exists", "user_already_exists"}


class AccountExists(Exception):
    pass


class AccountError(Exception):
    """Any other failure; `message` is safe to show to the caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RoleAssignmentFailed(AccountError):
    def __init__(self) -> None:
        super().__init__("Role assignment failed")


class AdminAuthClient:
    """Service-role calls to the auth admin API. Never ship this key to the browser."""

    def __init__(self, base_url: str = SUPABASE_URL, service_key: str = SERVICE_ROLE_KEY, http: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.http.headers.update({
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Accept": "application/json",
        })

    def _url(self, path: str) -> str:
        return f"{self.base_url}/auth/v1/admin/{path.lstrip('/')}"

    def create_user(self, email: str, password: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.http.post(
                self._url("users"),
                json={"email": email, "password": password, "email_confirm": True, "user_metadata": metadata},
                timeout=_TIMEOUT,
            )
        except requests.RequestException as e:
            raise AccountError(f"auth server unreachable: {e}") from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            code = body.get("error_code") or body.get("code")
            message = body.get("msg") or body.get("message") or resp.reason or "account creation failed"
            if code in _EXISTS_CODES or (resp.status_code == 422 and "already" in str(message).lower()):
                raise AccountExists(email)
            raise AccountError(str(message))
        return resp.json()

    def delete_user(self, user_id: str) -> None:
        resp = self.http.delete(self._url(f"users/{user_id}"), timeout=_TIMEOUT)
        resp.raise_for_status()


RoleWriter = Callable[[str, str], None]


def register_account(
    admin: AdminAuthClient,
    insert_role: RoleWriter,
    *,
    email: str,
    password: str,
    full_name: str,
    phone: str,
    role: str,
) -> Dict[str, Any]:
    """
    1) create the identity  2) insert its role row.
    If (2) fails the identity from (1) is deleted and RoleAssignmentFailed
    is raised, so no identity is left without a role.
    """
    user = admin.create_user(email, password, {"full_name": full_name, "phone": phone})
    user_id = str(user["id"])
    logger.info("created identity %s for %s", user_id, email)

    try:
        insert_role(user_id, role)
    except Exception as e:
        logger.warning("role insert failed for %s (%s); deleting identity", user_id, e)
        try:
            admin.delete_user(user_id)
        except (requests.RequestException, OSError) as cleanup_error:
            logger.error("compensation failed: identity %s has no role and was not deleted: %s", user_id, cleanup_error)
        raise RoleAssignmentFailed() from e

    logger.info("assigned role %s to %s", role, user_id)
    return {"id": user_id, "email": user.get("email", email), "role": role}
