# clinic_app/context.py — the object every page, view and form is handed
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from clinic_app.config import Settings
from clinic_app.gateway import Gateway
from clinic_app.preferences import Preferences
from clinic_app.session import SessionStore

# notify(kind, title, body) with kind in {"success", "error", "warning", "info"}
Notifier = Callable[[str, str, str], None]


def _discard(kind: str, title: str, body: str) -> None:
    return None


@dataclass
class AppContext:
    settings: Settings
    gateway: Gateway
    session: SessionStore
    preferences: Preferences
    notify: Notifier = field(default=_discard)


def build_context(
    settings: Settings, notify: Notifier = _discard, cookies: Optional[Mapping[str, str]] = None
) -> AppContext:
    gateway = Gateway(
        settings.supabase_url,
        settings.supabase_anon_key,
        provisioning_url=settings.provisioning_url,
        timeout=settings.request_timeout,
    )
    session = SessionStore(gateway)
    session.initialize()
    return AppContext(
        settings=settings,
        gateway=gateway,
        session=session,
        preferences=Preferences.load(cookies, settings.preferences_path),
        notify=notify,
    )
