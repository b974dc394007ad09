"""
ornasync/config.py -- Configuration from the environment and ``.env``.

Every setting is an ``ORNA_*`` environment variable.  A ``.env`` file found
next to the package (or up to five directories above it) is loaded first;
variables already set in the environment take precedence over it.

Usage:
    from ornasync.config import Config

    config = Config()
    for issue in config.validate():
        print(issue)
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_data_dir

_APP_NAME = "ornasync"
_APP_AUTHOR = "ornaguide"


def _find_env_file() -> Path | None:
    """Find the .env file, searching up the directory tree."""
    current = Path(__file__).parent
    for _ in range(5):  # Search up to 5 levels
        env_path = current / ".env"
        if env_path.exists():
            return env_path
        current = current.parent
    return None


_env_file = _find_env_file()
if _env_file:
    load_dotenv(_env_file)


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def default_data_dir() -> Path:
    """Platform user data directory, used when ``ORNA_DATA_DIR`` is unset."""
    return Path(user_data_dir(_APP_NAME, _APP_AUTHOR))


class Config:
    """Settings read from *environ* (``os.environ`` by default)."""

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ

        self.GUIDE_URL: str = env.get("ORNA_GUIDE_URL", "https://orna.guide").rstrip("/")
        self.CODEX_URL: str = env.get("ORNA_CODEX_URL", "https://playorna.com").rstrip("/")
        self.GUIDE_COOKIE: str = env.get("ORNA_GUIDE_COOKIE", "")

        # Raw strings are kept for validate(); unparsable values fall back.
        self._raw_numbers = {
            "ORNA_REQUEST_DELAY": env.get("ORNA_REQUEST_DELAY", "0"),
            "ORNA_FETCH_WORKERS": env.get("ORNA_FETCH_WORKERS", "4"),
            "ORNA_REQUEST_TIMEOUT": env.get("ORNA_REQUEST_TIMEOUT", "30"),
        }
        self.REQUEST_DELAY: float = self._number("ORNA_REQUEST_DELAY", float, 0.0)
        self.FETCH_WORKERS: int = self._number("ORNA_FETCH_WORKERS", int, 4)
        self.REQUEST_TIMEOUT: float = self._number("ORNA_REQUEST_TIMEOUT", float, 30.0)

        data_dir = env.get("ORNA_DATA_DIR", "")
        self.DATA_DIR: Path = Path(data_dir) if data_dir else default_data_dir() / "output"
        backup_dir = env.get("ORNA_BACKUP_DIR", "")
        self.BACKUP_DIR: Path = Path(backup_dir) if backup_dir else self.DATA_DIR.parent / "backups"
        merge_dir = env.get("ORNA_MERGE_DIR", "")
        self.MERGE_DIR: Path = Path(merge_dir) if merge_dir else self.DATA_DIR.parent / "merges"

        self.LOG_LEVEL: str = env.get("ORNA_LOG_LEVEL", "INFO").upper()
        self.DEBUG_URLS: bool = _flag(env.get("ORNA_DEBUG_URLS", "false"))

    def _number(self, name: str, kind, default):
        try:
            return kind(self._raw_numbers[name])
        except ValueError:
            return default

    @property
    def LOCALE_DIR(self) -> Path:
        return self.DATA_DIR / "i18n"

    def validate(self, need_guide: bool = False) -> list[str]:
        """Validate configuration, return list of issues."""
        issues = []

        for name, raw in self._raw_numbers.items():
            try:
                value = float(raw)
            except ValueError:
                issues.append(f"{name} must be a number, got {raw!r}")
                continue
            if value < 0:
                issues.append(f"{name} must not be negative, got {raw!r}")
        if self.FETCH_WORKERS < 1:
            issues.append("ORNA_FETCH_WORKERS must be at least 1")

        for name, url in (("ORNA_GUIDE_URL", self.GUIDE_URL), ("ORNA_CODEX_URL", self.CODEX_URL)):
            if not url.startswith(("http://", "https://")):
                issues.append(f"{name} must be an http(s) URL, got {url!r}")

        if self.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            issues.append(f"ORNA_LOG_LEVEL {self.LOG_LEVEL!r} is not a logging level")

        if need_guide and not self.GUIDE_COOKIE:
            issues.append(
                "No guide session configured. "
                "Set ORNA_GUIDE_COOKIE to the Cookie header of a logged-in admin in .env"
            )

        return issues
