"""Address validation and token age helpers."""

import re
from datetime import UTC, datetime

# Base58 alphabet (no 0, O, I, l); Solana addresses are 32-44 chars
_BASE58_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

HOURS_IN_DAY = 24
DAYS_IN_MONTH = 30
DAYS_IN_YEAR = 365


def is_valid_solana_address(address: object) -> bool:
    """Format check only: base58 charset, 32-44 chars, not a single repeated char."""
    if not address or not isinstance(address, str):
        return False
    if not _BASE58_ADDRESS_RE.match(address):
        return False
    # All-1s / repeated-char strings are placeholders, not real keys
    return len(set(address)) > 1


def timestamp_to_datetime(value: int | float | None) -> datetime | None:
    """Convert unix seconds or milliseconds to an aware UTC datetime."""
    if not value or value <= 0:
        return None
    seconds = value / 1000 if value > 1_000_000_000_000 else value
    return datetime.fromtimestamp(seconds, tz=UTC)


def age_in_hours(created_at: datetime | None, now: datetime | None = None) -> float | None:
    if created_at is None:
        return None
    now = now or datetime.now(UTC)
    return (now - created_at).total_seconds() / 3600


def format_token_age(hours: float | None) -> str:
    """Format age as '1y 2m 3d 4h' (months are 30 days)."""
    if hours is None:
        return "N/A"
    if hours <= 0:
        return "0h"

    year_h = DAYS_IN_YEAR * HOURS_IN_DAY
    month_h = DAYS_IN_MONTH * HOURS_IN_DAY

    years = int(hours // year_h)
    months = int((hours % year_h) // month_h)
    days = int((hours % month_h) // HOURS_IN_DAY)
    rem_hours = int(hours % HOURS_IN_DAY)

    parts = []
    if years > 0:
        parts.append(f"{years}y")
    if months > 0:
        parts.append(f"{months}m")
    if days > 0:
        parts.append(f"{days}d")
    if rem_hours > 0 or not parts:
        parts.append(f"{rem_hours}h")
    return " ".join(parts)
