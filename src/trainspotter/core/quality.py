from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from trainspotter.core.launch import LaunchSnapshot
from trainspotter.core.observer import ObserverLocation
from trainspotter.utils.constants import MAX_TLE_AGE_HOURS

logger = logging.getLogger(__name__)


@dataclass
class QualityReport:
    quality: str                # excellent/good/fair/poor
    score: float                # starts at 100, adjusted per factor
    factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


def assess_quality(
    snapshot: LaunchSnapshot,
    observer: ObserverLocation,
    now: datetime | None = None,
    degraded: bool = False,
    max_tle_age_hours: float = MAX_TLE_AGE_HOURS,
) -> QualityReport:
    """
    Assess how much to trust predictions built from a data snapshot.

    Args:
        snapshot: Launch and element-set snapshot the predictions use
        observer: Observer location (latitude band matters)
        now: Reference time (defaults to current UTC)
        degraded: Whether stale cached predictions were served for this observer
        max_tle_age_hours: Freshness limit for element sets

    Returns:
        QualityReport with bucket, score, factors and recommendations
    """
    if now is None:
        now = datetime.now(timezone.utc)

    factors: list[str] = []
    recommendations: list[str] = []
    score = 100.0

    # Launch recency
    if not snapshot.launches:
        factors.append("No recent Starlink launches found")
        score -= 50
        recommendations.append("Check back after the next Starlink launch")
    else:
        newest = max(launch.launched_at for launch in snapshot.launches)
        days_since_newest = (now - newest).total_seconds() / 86400.0
        if days_since_newest > 7:
            factors.append("Most recent launch is over a week old")
            score -= 20
        elif days_since_newest < 2:
            factors.append("Very recent launch available")
            score += 10

    # Element set quality
    total = valid = stale = 0
    for element_sets in snapshot.satellites.values():
        for element_set in element_sets:
            total += 1
            if element_set.is_valid:
                valid += 1
                if not element_set.is_fresh(now, max_tle_age_hours):
                    stale += 1

    if total > 0:
        if valid / total < 0.5:
            factors.append("Many satellites have invalid orbital data")
            score -= 30
            recommendations.append("Predictions may be less accurate due to data quality issues")

        if valid > 0 and stale / valid > 0.3:
            factors.append("Some orbital data is outdated")
            score -= 15
            recommendations.append("Predictions accuracy may decrease over time")

    # Latitude band
    abs_lat = abs(observer.lat)
    if abs_lat > 60:
        factors.append("High latitude location")
        score += 5
        recommendations.append("Excellent visibility at high latitudes")
    elif abs_lat < 30:
        factors.append("Low latitude location")
        score -= 5
        recommendations.append("Fewer passes visible at low latitudes")

    if degraded:
        factors.append("Showing cached predictions because live data is unavailable")
        recommendations.append("Refresh later for updated predictions")

    logger.debug("Quality for %s: %.0f (%d/%d valid, %d stale)", observer.label, score, valid, total, stale)
    # Nothing to predict without a launch, whatever the other factors say.
    quality = _categorize_score(score) if snapshot.launches else "poor"
    return QualityReport(
        quality=quality,
        score=score,
        factors=factors,
        recommendations=recommendations,
    )


def unavailable_report() -> QualityReport:
    """Report used when no snapshot can be obtained at all."""
    return QualityReport(
        quality="poor",
        score=0.0,
        factors=["Unable to assess prediction quality"],
        recommendations=["Check your internet connection and try again"],
    )


def _categorize_score(score: float) -> str:
    """Bucket a quality score."""
    if score >= 90:
        return "excellent"
    elif score >= 70:
        return "good"
    elif score >= 50:
        return "fair"
    else:
        return "poor"
