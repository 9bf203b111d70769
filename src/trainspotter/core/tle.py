"""TLE (Two-Line Element) validation and freshness checks.

Element sets arrive from upstream providers as raw text lines plus an
epoch string. Nothing here raises on bad data: invalid or stale sets are
reported as such and filtered out by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from trainspotter.utils.constants import MAX_TLE_AGE_HOURS, TLE_LINE_LENGTH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementSet:
    """One satellite's orbital element set as delivered upstream.

    Attributes:
        sat_id: Provider identifier of the satellite.
        launch_id: Identifier of the launch the satellite belongs to.
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        epoch: Epoch of the element set, ISO-8601 text (may be empty).
    """

    sat_id: str
    launch_id: str
    line1: str
    line2: str
    epoch: str = ""

    @property
    def is_valid(self) -> bool:
        return validate_tle(self.line1, self.line2)

    def is_fresh(self, now: datetime | None = None, max_age_hours: float = MAX_TLE_AGE_HOURS) -> bool:
        return is_fresh(self.epoch, now, max_age_hours)


def validate_tle(line1: str | None, line2: str | None) -> bool:
    """Check the structure of a TLE pair.

    Both lines must be exactly 69 characters, line 1 must start with
    ``"1 "`` and line 2 with ``"2 "``. Lines are not stripped.
    """
    if not line1 or not line2:
        return False
    return (
        len(line1) == TLE_LINE_LENGTH
        and len(line2) == TLE_LINE_LENGTH
        and line1.startswith("1 ")
        and line2.startswith("2 ")
    )


def parse_epoch(epoch: str | datetime) -> datetime:
    """Parse an epoch into a UTC-aware datetime.

    Naive values are taken to be UTC.

    Raises:
        ValueError: If the text is not ISO-8601.
    """
    if isinstance(epoch, datetime):
        parsed = epoch
    else:
        text = epoch.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_fresh(
    epoch: str | datetime | None,
    now: datetime | None = None,
    max_age_hours: float = MAX_TLE_AGE_HOURS,
) -> bool:
    """Return True if ``now - epoch`` is at most ``max_age_hours``.

    The boundary is inclusive. Missing or unparseable epochs are never
    fresh.
    """
    if not epoch:
        return False
    try:
        epoch_dt = parse_epoch(epoch)
    except (TypeError, ValueError):
        logger.debug("Unparseable TLE epoch: %r", epoch)
        return False

    if now is None:
        now = datetime.now(timezone.utc)
    return now - epoch_dt <= timedelta(hours=max_age_hours)


def tle_epoch(line1: str) -> datetime:
    """Extract the epoch encoded in columns 19-32 of TLE line 1.

    Raises:
        ValueError: If the epoch field is malformed.
    """
    year = int(line1[18:20])
    year = year + 2000 if year < 57 else year + 1900
    day_of_year = float(line1[20:32])
    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=day_of_year - 1)
