"""
Disclosure rules for capsules.

A capsule is disclosable once its owner forced it open or its deadline has
passed. Everything here is pure: no I/O, no clock reads.
"""

from datetime import UTC, datetime

LOCK_ICON = "🔒"


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_disclosable(now: datetime, unlock_at: datetime, unlocked: bool) -> bool:
    """
    Decide whether a capsule may be shown in plaintext.

    Args:
        now: Current instant
        unlock_at: The capsule's deadline
        unlocked: The persisted unlock flag

    Returns:
        True if the flag is set or the deadline has been reached
    """
    if unlocked:
        return True
    return ensure_utc(now) >= ensure_utc(unlock_at)


def format_unlock_at(unlock_at: datetime) -> str:
    """Format a deadline for display, e.g. ``2030-01-01 09:30 UTC``."""
    return ensure_utc(unlock_at).strftime("%Y-%m-%d %H:%M UTC")


def locked_placeholder(unlock_at: datetime) -> str:
    """Text shown in place of content while a capsule is locked."""
    return f"{LOCK_ICON} Locked until {format_unlock_at(unlock_at)}"
