# Runtime settings - read once from the environment (.env supported)
import os
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from models import (
    ATTENTION_WAIT_MINUTES,
    DEFAULT_PRIORITY,
    URGENT_WAIT_MINUTES,
    WAITING_PREVIEW_LIMIT,
)

load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def env_int(name: str, default: int) -> int:
    """Integer env var; a malformed value fails loudly with the variable name."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Immutable settings for the triage dashboard service."""

    urgent_wait_minutes: int = field(
        default_factory=lambda: env_int("URGENT_WAIT_MINUTES", URGENT_WAIT_MINUTES)
    )
    attention_wait_minutes: int = field(
        default_factory=lambda: env_int("ATTENTION_WAIT_MINUTES", ATTENTION_WAIT_MINUTES)
    )
    default_priority: int = field(
        default_factory=lambda: env_int("DEFAULT_PRIORITY", DEFAULT_PRIORITY)
    )
    waiting_preview_limit: int = field(
        default_factory=lambda: env_int("WAITING_PREVIEW_LIMIT", WAITING_PREVIEW_LIMIT)
    )
    clinic_timezone: str = field(
        default_factory=lambda: os.environ.get("CLINIC_TIMEZONE", "UTC")
    )
    # Off: a dismissal holds until the alert id changes.
    # On: a dismissal is forgotten once its alert stops firing.
    prune_cleared_dismissals: bool = field(
        default_factory=lambda: env_bool("PRUNE_CLEARED_DISMISSALS", False)
    )
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper())
    frontend_url: str = field(default_factory=lambda: os.environ.get("FRONTEND_URL", ""))

    def tz(self) -> tzinfo:
        """Zone used for "today" and HH:MM rendering."""
        if self.clinic_timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.clinic_timezone)


def is_demo_mode() -> bool:
    """True only when DEMO_MODE env var is explicitly 'true' (case-insensitive)."""
    return os.environ.get("DEMO_MODE", "").lower() == "true"


SETTINGS = Settings()
