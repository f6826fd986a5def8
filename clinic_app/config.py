# clinic_app/config.py — runtime settings for the front-end
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import streamlit as st

# ─────────────────────────────────────────────
# Lookup order for every key:
#   env var → st.secrets (if it behaves like a mapping) → default
# Example: SUPABASE_URL="https://abcd.supabase.co"
# ─────────────────────────────────────────────
def _secret(key: str) -> Optional[str]:
    # st.secrets raises when no secrets.toml exists; treat that as "not set"
    try:
        secrets_obj = getattr(st, "secrets", None)
        if secrets_obj is not None and key in secrets_obj:
            return str(secrets_obj[key])
    except Exception:
        return None
    return None


def setting(key: str, default: str = "") -> str:
    return os.getenv(key) or _secret(key) or default


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_anon_key: str
    provisioning_url: str
    clinic_tz: str = "UTC"
    # default theme only; each browser keeps its own choice in a cookie
    preferences_path: str = os.path.join(os.path.expanduser("~"), ".clinic_app", "preferences.json")
    request_timeout: int = 20


def load_settings() -> Settings:
    return Settings(
        supabase_url=setting("SUPABASE_URL", "http://localhost:54321").rstrip("/"),
        supabase_anon_key=setting("SUPABASE_ANON_KEY"),
        provisioning_url=setting("PROVISIONING_URL", "http://localhost:8000").rstrip("/"),
        clinic_tz=setting("CLINIC_TZ", "UTC"),
        preferences_path=setting("PREFERENCES_PATH", Settings.preferences_path),
        request_timeout=int(setting("REQUEST_TIMEOUT", "20")),
    )


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
