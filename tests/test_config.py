# tests/test_config.py
"""
Settings from the environment.

Covers:
  - defaults with an empty environment
  - every LUNCHES_* variable is read
  - invalid numbers fall back to the default with a warning
  - .env is loaded without overriding real variables
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from lunches.config import (
    DEFAULT_MIN_ROWS,
    DEFAULT_TITLE_THRESHOLD,
    Settings,
    load_settings,
)


class TestLoadSettings:
    def test_defaults(self):
        s = load_settings(env={})
        assert s == Settings()
        assert s.timezone == "Europe/Rome"
        assert s.sheet_marker == "tuttobene"
        assert s.min_rows == 12
        assert s.title_threshold == 0.8
        assert s.brain_url == "memory://"
        assert s.order_key == "order"
        assert s.max_upload_mb == 10
        assert s.tz == ZoneInfo("Europe/Rome")

    def test_env_values(self):
        s = load_settings(env={
            "LUNCHES_TIMEZONE": "UTC",
            "LUNCHES_SHEET_MARKER": " TuttoBene ",
            "LUNCHES_MIN_ROWS": "20",
            "LUNCHES_TITLE_THRESHOLD": "0.9",
            "LUNCHES_BRAIN_URL": "redis://localhost:6379",
            "LUNCHES_ORDER_KEY": "order:office",
            "LUNCHES_MAX_UPLOAD_MB": "2",
        })
        assert s.tz == ZoneInfo("UTC")
        assert s.sheet_marker == "tuttobene"
        assert s.min_rows == 20
        assert s.title_threshold == 0.9
        assert s.brain_url == "redis://localhost:6379"
        assert s.order_key == "order:office"
        assert s.max_upload_mb == 2

    def test_invalid_numbers_fall_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger="lunches.config"):
            s = load_settings(env={
                "LUNCHES_MIN_ROWS": "twelve",
                "LUNCHES_TITLE_THRESHOLD": "high",
            })
        assert s.min_rows == DEFAULT_MIN_ROWS
        assert s.title_threshold == DEFAULT_TITLE_THRESHOLD
        assert "LUNCHES_MIN_ROWS" in caplog.text

    def test_dotenv(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("LUNCHES_ORDER_KEY=from-dotenv\nLUNCHES_MIN_ROWS=30\n")
        monkeypatch.setenv("LUNCHES_MIN_ROWS", "15")
        # load_dotenv writes into os.environ: register the key so teardown drops it
        monkeypatch.setenv("LUNCHES_ORDER_KEY", "")
        monkeypatch.delenv("LUNCHES_ORDER_KEY")

        s = load_settings(dotenv_path=env_file)
        assert s.order_key == "from-dotenv"
        assert s.min_rows == 15
