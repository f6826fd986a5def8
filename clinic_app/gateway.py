# clinic_app/gateway.py — client for the hosted auth + data backend
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

# (column, operator, value) — operators follow the REST API's filter names
Filter = Tuple[str, str, Any]
FILTER_OPS = {"eq", "neq", "gt", "gte", "lt", "lte", "in", "ilike"}

_DEFAULT_TIMEOUT = 20
_READ_RETRIES = 2


class GatewayError(Exception):
    """Any failed call to the backend: transport, auth or data."""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


@dataclass(frozen=True)
class Identity:
    id: str
    email: str


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: float
    identity: Identity

    @property
    def expired(self) -> bool:
        # refresh a little before the server would reject the token
        return time.time() >= self.expires_at - 30


AuthListener = Callable[[str, Optional[AuthSession]], None]


class AuthSubscription:
    def __init__(self, listeners: List[AuthListener], callback: AuthListener):
        self._listeners = listeners
        self.callback = callback
        listeners.append(callback)

    def unsubscribe(self) -> None:
        if self.callback in self._listeners:
            self._listeners.remove(self.callback)


# ─────────────────────────────────────────────
# Response helpers
# ─────────────────────────────────────────────
def _should_retry(status: Optional[int]) -> bool:
    # Retry on typical transient server/network states
    return status is None or 500 <= status < 600 or status in {408, 429}


def _error_from_response(resp: requests.Response) -> GatewayError:
    """
    Normalize the error bodies the backend pieces return:
      auth     → {"msg"|"error_description"|"error", "error_code"}
      data     → {"message", "code", "details"}
      service  → {"detail": str | [{"msg": ...}]}
    """
    message: Optional[str] = None
    code: Optional[str] = None
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, list):
            detail = "; ".join(str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail)
        message = body.get("msg") or body.get("message") or body.get("error_description") or detail or body.get("error")
        code = body.get("error_code") or body.get("code")

    return GatewayError(
        str(message or resp.reason or f"HTTP {resp.status_code}"),
        status=resp.status_code,
        code=str(code) if code is not None else None,
    )


def _format_value(value: Any) -> str:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_filter(column: str, op: str, value: Any) -> Tuple[str, str]:
    if op not in FILTER_OPS:
        raise ValueError(f"unsupported filter operator: {op}")
    if op == "in":
        items = ",".join(_format_value(v) for v in value)
        return column, f"in.({items})"
    return column, f"{op}.{_format_value(value)}"


def _parse_session(data: Dict[str, Any]) -> AuthSession:
    user = data.get("user") or {}
    expires_at = data.get("expires_at")
    if expires_at is None:
        expires_at = time.time() + float(data.get("expires_in", 3600))
    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token", ""),
        expires_at=float(expires_at),
        identity=Identity(id=str(user.get("id", "")), email=str(user.get("email", ""))),
    )


class Gateway:
    """
    One instance per browser session: it holds that user's tokens.

    Auth goes to {base}/auth/v1, tables to {base}/rest/v1/<table>,
    account registration to the provisioning service.
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        provisioning_url: str = "",
        timeout: int = _DEFAULT_TIMEOUT,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.provisioning_url = provisioning_url.rstrip("/")
        self.timeout = timeout
        self._http = http or requests.Session()
        self._http.headers.update(
            {
                "User-Agent": "clinic-app/1.0 (+streamlit)",
                "Accept": "application/json",
            }
        )
        self._session: Optional[AuthSession] = None
        self._listeners: List[AuthListener] = []

    # ─────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────
    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        token = self._session.access_token if self._session else self.anon_key
        headers = {"apikey": self.anon_key, "Authorization": f"Bearer {token}"}
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        retries: int = 0,
    ) -> requests.Response:
        """
        Issue one call. Only reads pass retries > 0; writes and auth calls
        go out exactly once. Raises GatewayError on final failure.
        """
        attempt = 0
        while True:
            try:
                resp = self._http.request(
                    method.upper(),
                    url,
                    params=params,
                    json=json,
                    headers=headers if headers is not None else self._headers(),
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                error = GatewayError(f"{method.upper()} {url} failed: {e}")
            else:
                if resp.status_code < 400:
                    return resp
                error = _error_from_response(resp)

            if attempt >= retries or not _should_retry(error.status):
                logger.warning("%s %s → %s (%s)", method.upper(), url, error.status, error.message)
                raise error
            attempt += 1
            time.sleep(0.6 * attempt)

    def _json(self, resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(f"{resp.url} did not return JSON", status=resp.status_code) from e

    def _auth_url(self, path: str) -> str:
        return f"{self.base_url}/auth/v1/{path.lstrip('/')}"

    def _rest_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    # ─────────────────────────────────────────
    # Auth
    # ─────────────────────────────────────────
    def on_auth_state_change(self, callback: AuthListener) -> AuthSubscription:
        return AuthSubscription(self._listeners, callback)

    def _emit(self, event: str) -> None:
        logger.debug("auth event %s", event)
        for listener in list(self._listeners):
            listener(event, self._session)

    def _set_session(self, session: Optional[AuthSession], event: str) -> None:
        self._session = session
        self._emit(event)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        resp = self._request(
            "POST",
            self._auth_url("token"),
            params=[("grant_type", "password")],
            json={"email": email, "password": password},
            headers=self._headers({"Authorization": f"Bearer {self.anon_key}"}),
        )
        session = _parse_session(self._json(resp))
        self._set_session(session, SIGNED_IN)
        return session

    def sign_out(self) -> None:
        if self._session is None:
            return
        try:
            self._request("POST", self._auth_url("logout"))
        except GatewayError as e:
            # token already revoked or expired: the user is signed out either way
            if e.status not in (401, 403, 404):
                raise
        self._set_session(None, SIGNED_OUT)

    def get_session(self) -> Optional[AuthSession]:
        """Current session, refreshed first when the access token has expired."""
        if self._session is None or not self._session.expired:
            return self._session
        try:
            resp = self._request(
                "POST",
                self._auth_url("token"),
                params=[("grant_type", "refresh_token")],
                json={"refresh_token": self._session.refresh_token},
                headers=self._headers({"Authorization": f"Bearer {self.anon_key}"}),
            )
        except GatewayError as e:
            if e.status is not None and 400 <= e.status < 500:
                self._set_session(None, SIGNED_OUT)
                return None
            raise
        self._set_session(_parse_session(self._json(resp)), TOKEN_REFRESHED)
        return self._session

    def register(self, email: str, password: str, *, full_name: str, phone: str, role: str) -> Identity:
        """
        Create the account and its role in one call to the provisioning
        service. The service undoes the account when the role step fails.
        """
        if not self.provisioning_url:
            raise GatewayError("provisioning service is not configured")
        resp = self._request(
            "POST",
            f"{self.provisioning_url}/auth/register",
            json={"email": email, "password": password, "full_name": full_name, "phone": phone, "role": role},
            headers={"Accept": "application/json"},
        )
        data = self._json(resp) or {}
        return Identity(id=str(data.get("id", "")), email=str(data.get("email", email)))

    # ─────────────────────────────────────────
    # Data
    # ─────────────────────────────────────────
    def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Iterable[Filter] = (),
        order: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        GET /rest/v1/<table>?select=...
        `columns` may embed related rows, e.g. "*,patient:patients(full_name,phone)".
        """
        params: List[Tuple[str, str]] = [("select", columns)]
        params.extend(encode_filter(*f) for f in filters)
        if order:
            params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(int(limit))))

        logger.debug("select %s %s", table, params)
        data = self._json(self._request("GET", self._rest_url(table), params=params, retries=_READ_RETRIES))
        if not isinstance(data, list):
            return []
        return data

    def maybe_single(self, table: str, columns: str = "*", *, filters: Iterable[Filter] = ()) -> Optional[Dict[str, Any]]:
        rows = self.select(table, columns, filters=filters, limit=1)
        return rows[0] if rows else None

    def count(self, table: str, *, filters: Iterable[Filter] = ()) -> int:
        """Exact row count, read from the Content-Range header of a HEAD request."""
        params: List[Tuple[str, str]] = [("select", "*")]
        params.extend(encode_filter(*f) for f in filters)
        resp = self._request(
            "HEAD",
            self._rest_url(table),
            params=params,
            headers=self._headers({"Prefer": "count=exact"}),
            retries=_READ_RETRIES,
        )
        content_range = resp.headers.get("Content-Range", "")
        total = content_range.rpartition("/")[2]
        if not total.isdigit():
            raise GatewayError(f"count on {table} returned no total (Content-Range={content_range!r})", status=resp.status_code)
        return int(total)

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._request(
            "POST",
            self._rest_url(table),
            json=row,
            headers=self._headers({"Prefer": "return=representation"}),
        )
        data = self._json(resp)
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            raise GatewayError(f"insert into {table} returned no row", status=resp.status_code)
        logger.info("inserted into %s id=%s", table, data.get("id"))
        return data
