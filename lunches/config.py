# lunches/config.py
"""
Runtime settings, read from the environment.

A `.env` file at the project root is loaded first (python-dotenv), so local
setups can keep their brain URL and overrides there. Real environment
variables always win over `.env` values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

log = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]   # project root

DEFAULT_TIMEZONE = "Europe/Rome"
DEFAULT_SHEET_MARKER = "tuttobene"
DEFAULT_MIN_ROWS = 12
DEFAULT_TITLE_THRESHOLD = 0.8
DEFAULT_BRAIN_URL = "memory://"
DEFAULT_ORDER_KEY = "order"
DEFAULT_MAX_UPLOAD_MB = 10


@dataclass(frozen=True)
class Settings:
    timezone: str = DEFAULT_TIMEZONE
    sheet_marker: str = DEFAULT_SHEET_MARKER
    min_rows: int = DEFAULT_MIN_ROWS
    title_threshold: float = DEFAULT_TITLE_THRESHOLD
    brain_url: str = DEFAULT_BRAIN_URL
    order_key: str = DEFAULT_ORDER_KEY
    max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def load_settings(env: Optional[Mapping[str, str]] = None,
                  dotenv_path: Optional[Path] = None) -> Settings:
    """
    Build Settings from the environment.

    With env=None the process environment is used, after loading
    `dotenv_path` (default: ROOT/.env) without overriding existing variables.
    Passing an explicit mapping skips .env entirely (handy in tests).
    """
    if env is None:
        load_dotenv(dotenv_path or ROOT / ".env", override=False)
        env = os.environ

    return Settings(
        timezone=(env.get("LUNCHES_TIMEZONE") or DEFAULT_TIMEZONE).strip(),
        sheet_marker=(env.get("LUNCHES_SHEET_MARKER") or DEFAULT_SHEET_MARKER).strip().casefold(),
        min_rows=_int_env(env, "LUNCHES_MIN_ROWS", DEFAULT_MIN_ROWS),
        title_threshold=_float_env(env, "LUNCHES_TITLE_THRESHOLD", DEFAULT_TITLE_THRESHOLD),
        brain_url=(env.get("LUNCHES_BRAIN_URL") or DEFAULT_BRAIN_URL).strip(),
        order_key=(env.get("LUNCHES_ORDER_KEY") or DEFAULT_ORDER_KEY).strip(),
        max_upload_mb=_int_env(env, "LUNCHES_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB),
    )
