"""
Timestamp freshness checks for replay protection.

Not applied by WebhookPipeline.process; callers opt in.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from datetime import datetime, timezone

from transvoucher.webhooks.events import WebhookEvent

DEFAULT_TOLERANCE_SECONDS = 300

TimestampType = str | int | float | datetime


def _to_epoch(timestamp: TimestampType) -> float | None:
    if isinstance(timestamp, bool):
        return None
    if isinstance(timestamp, (int, float)):
        return float(timestamp) if math.isfinite(timestamp) else None
    if isinstance(timestamp, str):
        try:
            timestamp = datetime.fromisoformat(timestamp.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return timestamp.timestamp()
    return None


def is_event_recent(
    timestamp: TimestampType,
    tolerance_seconds: float = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> bool:
    """
    Check whether a timestamp lies within the tolerance window of now.

    Args:
        timestamp: ISO-8601 string, datetime, or epoch seconds
        tolerance_seconds: Maximum allowed age (or clock skew) in seconds
        now: Current epoch seconds, defaults to time.time()

    Returns:
        True if |now - timestamp| <= tolerance_seconds. Unparseable
        timestamps are never recent.
    """
    try:
        event_time = _to_epoch(timestamp)
    except (OverflowError, OSError, ValueError):
        return False
    if event_time is None:
        return False
    current = time.time() if now is None else now
    return abs(current - event_time) <= tolerance_seconds


class FreshnessChecker:
    """
    Replay-window policy with an injectable clock.

    Example:
        >>> checker = FreshnessChecker(tolerance_seconds=300)
        >>> if not checker.check(event):
        ...     return reject()
    """

    def __init__(
        self,
        tolerance_seconds: float = DEFAULT_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if tolerance_seconds < 0:
            raise ValueError("tolerance_seconds must be non-negative")
        self.tolerance_seconds = tolerance_seconds
        self._clock = clock

    def is_recent(self, timestamp: TimestampType) -> bool:
        return is_event_recent(timestamp, self.tolerance_seconds, now=self._clock())

    def check(self, event: WebhookEvent) -> bool:
        """Check the timestamp embedded in a validated event."""
        return self.is_recent(event.timestamp)
