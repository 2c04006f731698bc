"""Recency scoring for candidate items."""

from collections.abc import Sequence
from datetime import UTC, datetime

RECENT_DAYS = 1.0
DECAY_DAYS = 30.0
BASELINE = 0.5


def _age_days(timestamp: datetime, now: datetime) -> float:
    # Ensure both are timezone-aware for comparison
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return (now - timestamp).total_seconds() / 86400.0


def recency_score(timestamp: datetime | None, now: datetime | None = None) -> float:
    """Score how recently an item changed.

    1.0 within the last day, linear decay to 0.5 at 30 days, flat 0.5 after
    that and when no timestamp is known.
    """
    if timestamp is None:
        return BASELINE
    if now is None:
        now = datetime.now(UTC)

    age = _age_days(timestamp, now)
    if age < RECENT_DAYS:
        return 1.0
    if age < DECAY_DAYS:
        return 1.0 - (age / DECAY_DAYS) * (1.0 - BASELINE)
    return BASELINE


def recency_signal(timestamp: datetime | None, now: datetime | None = None) -> float:
    """Coarse recency bucket used in model descriptors when no score exists."""
    if timestamp is None:
        return 0.5
    if now is None:
        now = datetime.now(UTC)
    age = _age_days(timestamp, now)
    if age <= 1:
        return 1.0
    if age <= 7:
        return 0.85
    if age <= 30:
        return 0.7
    if age <= 90:
        return 0.55
    return 0.4


def _last_touched(item: object) -> datetime:
    ts = getattr(item, "updated_at", None) or getattr(item, "created_at", None)
    if ts is None:
        return datetime.min.replace(tzinfo=UTC)
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


def most_recent_ids(items: Sequence[object], max_results: int) -> list[str]:
    """Ids of the most recently updated items, newest first."""
    ordered = sorted(items, key=_last_touched, reverse=True)
    return [item.id for item in ordered[: max(1, max_results)]]  # type: ignore[attr-defined]
