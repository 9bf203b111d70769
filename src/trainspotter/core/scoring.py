from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from trainspotter.core.observer import ObserverLocation
from trainspotter.core.passes import Pass
from trainspotter.utils.constants import UNBALANCED_WEIGHT_SUM

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionWeights:
    deployment: float = 0.45   # recency of deployment
    brightness: float = 0.30   # phase-angle brightness proxy
    elevation: float = 0.20    # peak elevation
    twilight: float = 0.05     # time-of-day bonus

    def __post_init__(self) -> None:
        for name in ("deployment", "brightness", "elevation", "twilight"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Weight {name} must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Weight {name} must be finite and non-negative, got {value!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PredictionWeights:
        """Build weights from ``w1..w4`` or named keys; missing keys keep defaults."""
        aliases = {"w1": "deployment", "w2": "brightness", "w3": "elevation", "w4": "twilight"}
        values = {aliases.get(key, key): value for key, value in data.items()}
        unknown = set(values) - {"deployment", "brightness", "elevation", "twilight"}
        if unknown:
            raise ValueError(f"Unknown weight keys: {sorted(unknown)}")
        return cls(**values)

    @property
    def total(self) -> float:
        return self.deployment + self.brightness + self.elevation + self.twilight

    @property
    def is_unbalanced(self) -> bool:
        return self.total > UNBALANCED_WEIGHT_SUM

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.deployment, self.brightness, self.elevation, self.twilight)


DEFAULT_WEIGHTS = PredictionWeights()


def twilight_bonus(local_time: datetime) -> float:
    """Step bonus for passes near civil twilight, by local hour."""
    hour = local_time.hour

    if 6 <= hour <= 7 or 19 <= hour <= 20:
        return 1.0
    if 5 <= hour <= 8 or 18 <= hour <= 21:
        return 0.7
    if 4 <= hour <= 9 or 17 <= hour <= 22:
        return 0.4
    return 0.1


def deployment_score(peak: datetime, launched_at: datetime) -> float:
    """1 / (1 + days since launch); a peak before launch counts as day zero."""
    days = (peak - launched_at).total_seconds() / 86400.0
    return 1.0 / (1.0 + max(0.0, days))


def brightness_score(phase_angle_deg: float) -> float:
    return 1.0 - phase_angle_deg / 180.0


def elevation_score(max_elevation_deg: float) -> float:
    return max_elevation_deg / 90.0


def score_pass(
    pass_: Pass,
    launched_at: datetime,
    observer: ObserverLocation,
    weights: PredictionWeights = DEFAULT_WEIGHTS,
) -> float:
    """Weighted linear sum of the four sub-scores of a pass."""
    return (
        weights.deployment * deployment_score(pass_.peak, launched_at)
        + weights.brightness * brightness_score(pass_.phase_angle_deg)
        + weights.elevation * elevation_score(pass_.max_elevation_deg)
        + weights.twilight * twilight_bonus(observer.local_time(pass_.peak))
    )


def rank_passes(
    scored: list[tuple[Pass, datetime]],
    observer: ObserverLocation,
    weights: PredictionWeights = DEFAULT_WEIGHTS,
    limit: int | None = None,
) -> list[Pass]:
    """Score passes against their launch times and sort best first.

    Args:
        scored: Pairs of (pass, launch time of its launch group).
        observer: Observer, for the local time of day.
        weights: Scoring weights.
        limit: Keep at most this many passes.

    Returns:
        New Pass objects with ``score`` set, in descending score order.
        Equal scores keep their input order.
    """
    if weights.is_unbalanced:
        logger.info("Scoring with unbalanced weights (sum %.2f)", weights.total)

    ranked = [replace(p, score=score_pass(p, launched_at, observer, weights)) for p, launched_at in scored]
    ranked.sort(key=lambda p: p.score, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked
