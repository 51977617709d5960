"""Configuration loading for voice-cal.

Reads settings from environment variables (with .env support via python-dotenv)
and validates them before any service client is built.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_DEFAULT_HOME = Path("~/.voice_cal")


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        gemini_api_key: API key for Google Gemini (``""`` when not required).
        gemini_model: Gemini model identifier.
        log_level: Logging level (default ``"INFO"``).
        home: Directory holding local storage and generated calendar files.
        extraction_timeout: Upper bound, in seconds, for one Gemini call.
        smtp_host: SMTP server for emailed invites, or ``None``.
        smtp_port: SMTP server port.
        smtp_username: SMTP login, or ``None``.
        smtp_password: SMTP password, or ``None``.
    """

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    log_level: str = "INFO"
    home: Path = _DEFAULT_HOME.expanduser()
    extraction_timeout: float = 30.0
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None

    @property
    def storage_path(self) -> Path:
        """JSON document standing in for browser local storage."""
        return self.home / "storage.json"

    @property
    def output_dir(self) -> Path:
        """Directory that receives generated ``.ics`` files."""
        return self.home / "calendars"

    def __repr__(self) -> str:
        return (
            f"Settings(gemini_api_key='***', "
            f"gemini_model={self.gemini_model!r}, "
            f"log_level={self.log_level!r}, "
            f"home={str(self.home)!r}, "
            f"extraction_timeout={self.extraction_timeout!r}, "
            f"smtp_host={self.smtp_host!r}, "
            f"smtp_port={self.smtp_port!r}, "
            f"smtp_username={self.smtp_username!r}, "
            f"smtp_password={'***' if self.smtp_password else None!r})"
        )


def load_settings(require_api_key: bool = True) -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the working
    directory is picked up automatically.

    Args:
        require_api_key: When ``True`` (the default) a missing
            ``GEMINI_API_KEY`` is an error.  History and share commands
            never talk to Gemini and pass ``False``.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If a required variable is missing, empty, or
            whitespace-only, or if a numeric variable is malformed.
    """
    load_dotenv()

    values: dict = {}

    api_key = os.environ.get("GEMINI_API_KEY", "")
    if api_key.strip():
        values["gemini_api_key"] = api_key
    elif require_api_key:
        raise ConfigError("Missing required environment variables: GEMINI_API_KEY")

    # Optional settings with defaults handled by the dataclass.
    model = os.environ.get("GEMINI_MODEL", "").strip()
    log_level = os.environ.get("LOG_LEVEL", "").strip()
    home = os.environ.get("VOICE_CAL_HOME", "").strip()
    timeout = os.environ.get("EXTRACTION_TIMEOUT", "").strip()
    smtp_host = os.environ.get("SMTP_HOST", "").strip()
    smtp_port = os.environ.get("SMTP_PORT", "").strip()
    smtp_username = os.environ.get("SMTP_USERNAME", "").strip()
    smtp_password = os.environ.get("SMTP_PASSWORD", "")

    if model:
        values["gemini_model"] = model
    if log_level:
        values["log_level"] = log_level
    if home:
        values["home"] = Path(home).expanduser()
    if timeout:
        values["extraction_timeout"] = _parse_positive_float("EXTRACTION_TIMEOUT", timeout)
    if smtp_host:
        values["smtp_host"] = smtp_host
    if smtp_port:
        values["smtp_port"] = int(_parse_positive_float("SMTP_PORT", smtp_port))
    if smtp_username:
        values["smtp_username"] = smtp_username
    if smtp_password.strip():
        values["smtp_password"] = smtp_password

    return Settings(**values)


def _parse_positive_float(name: str, raw: str) -> float:
    """Parse *raw* as a positive number or raise :class:`ConfigError`."""
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value
