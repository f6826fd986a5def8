# clinic_app/preferences.py — display preference (light/dark), kept outside the data model
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")
THEME_KEY = "theme"
# browser cookie holding this client's choice
THEME_COOKIE = "clinic_theme"


def default_theme(path: str) -> str:
    """Server-wide default from the preferences file; the app never writes it."""
    data: Dict[str, Any] = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        pass
    except (OSError, ValueError) as e:
        logger.warning("ignoring unreadable preferences file %s: %s", path, e)
    theme = data.get(THEME_KEY) if isinstance(data, dict) else None
    return theme if theme in THEMES else "light"


class Preferences:
    """
    One browser's display preference.

    Read from that browser's cookie at startup. A toggle marks the value
    dirty; the shell writes it back to the cookie on the next render.
    """

    def __init__(self, theme: str = "light"):
        self.theme = theme if theme in THEMES else "light"
        self.dirty = False

    @classmethod
    def load(cls, cookies: Optional[Mapping[str, str]], default_path: str) -> "Preferences":
        theme = (cookies or {}).get(THEME_COOKIE)
        if theme not in THEMES:
            theme = default_theme(default_path)
        return cls(theme)

    @property
    def dark(self) -> bool:
        return self.theme == "dark"

    def toggle_theme(self) -> str:
        self.theme = "dark" if self.theme == "light" else "light"
        self.dirty = True
        return self.theme
