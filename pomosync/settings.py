"""Application settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/PomoSync/settings.json

Usage::

    settings = load_settings()
    settings.auto_start_breaks = True
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path

logger = logging.getLogger(__name__)


APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "PomoSync"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── timer ─────────────────────────────────────────────────────────
    auto_start_breaks: bool = False
    auto_start_work: bool = False
    routine_name: str = "Classic Pomodoro"
    tick_interval_ms: int = 100

    # ── companion sync ────────────────────────────────────────────────
    companion_sync_enabled: bool = True
    reject_stale_sync: bool = False        # drop messages older than the last one applied


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if SETTINGS_PATH.exists():
            data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
            # Only use keys that exist in the dataclass
            valid_keys = {f.name for f in fields(Settings)}
            filtered = {k: v for k, v in data.items() if k in valid_keys}
            return Settings(**filtered)
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("Ignoring unreadable settings at %s: %s", SETTINGS_PATH, exc)
    return Settings()


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
