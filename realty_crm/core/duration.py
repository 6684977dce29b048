"""
Lead age badges.

The label uses the largest non-zero unit (seconds up to 30-day months); the
severity tier is decided on whole elapsed days only, so it can only move
forward as time passes.
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * 60 * 60
DAYS_PER_MONTH = 30

FRESH_MAX_DAYS = 30   # exclusive
AGING_MAX_DAYS = 90   # inclusive

SeverityTier = Literal["fresh", "aging", "stale"]


class LeadDuration(BaseModel):
    label: str
    severity_tier: SeverityTier
    elapsed_days: int


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def severity_for_days(days: int) -> SeverityTier:
    if days < FRESH_MAX_DAYS:
        return "fresh"
    if days <= AGING_MAX_DAYS:
        return "aging"
    return "stale"


def duration_label(elapsed_seconds: int) -> str:
    days = elapsed_seconds // SECONDS_PER_DAY
    if days >= DAYS_PER_MONTH:
        return _plural(days // DAYS_PER_MONTH, "month")
    if days > 0:
        return _plural(days, "day")
    if elapsed_seconds >= SECONDS_PER_HOUR:
        return _plural(elapsed_seconds // SECONDS_PER_HOUR, "hour")
    if elapsed_seconds >= SECONDS_PER_MINUTE:
        return _plural(elapsed_seconds // SECONDS_PER_MINUTE, "minute")
    return _plural(elapsed_seconds, "second")


def lead_duration(created_at: datetime, now: Optional[datetime] = None) -> LeadDuration:
    """
    Compute the age badge for a lead.

    ``created_at`` and ``now`` must both be naive UTC or both aware.
    A creation time in the future counts as zero elapsed time.
    """
    if now is None:
        now = datetime.utcnow()
    elapsed = max(int((now - created_at).total_seconds()), 0)
    days = elapsed // SECONDS_PER_DAY
    return LeadDuration(
        label=duration_label(elapsed),
        severity_tier=severity_for_days(days),
        elapsed_days=days,
    )
