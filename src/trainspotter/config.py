"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from trainspotter.utils import constants as c


@dataclass(frozen=True)
class EngineConfig:
    """Tunables of one :class:`~trainspotter.engine.engine.PredictionEngine`.

    Every default comes from :mod:`trainspotter.utils.constants`.

    Attributes:
        horizon_days: Forward prediction horizon.
        step_seconds: Scan step of the pass finder.
        min_elevation_deg: Minimum satellite elevation for visibility.
        twilight_deg: Observer sun elevation threshold for darkness.
        max_tle_age_hours: Element sets older than this are not scanned.
        recent_launch_days: Launch window requested from the launch provider.
        group_concurrency: Launch groups processed per batch.
        sample_stride: Scan every Nth valid satellite of a group.
        sample_limit: Scan at most this many satellites per group.
        max_results: Number of ranked passes returned.
        prediction_ttl_seconds: Lifetime of per-location predictions.
        snapshot_ttl_seconds: Lifetime of the shared launch snapshot.
        request_timeout_s: Optional budget for one fresh computation. The
            pass scan runs on the event loop, so the timeout can only fire
            while upstream data is being fetched, not during a scan.
    """

    horizon_days: float = c.PREDICTION_DAYS
    step_seconds: float = c.PREDICTION_STEP_SECONDS
    min_elevation_deg: float = c.MIN_ELEVATION_DEG
    twilight_deg: float = c.CIVIL_TWILIGHT_DEG
    max_tle_age_hours: float = c.MAX_TLE_AGE_HOURS
    recent_launch_days: int = c.RECENT_LAUNCH_DAYS
    group_concurrency: int = c.GROUP_CONCURRENCY
    sample_stride: int = c.SATELLITE_SAMPLE_STRIDE
    sample_limit: int = c.SATELLITE_SAMPLE_LIMIT
    max_results: int = c.MAX_RESULTS
    prediction_ttl_seconds: float = c.PREDICTION_CACHE_TTL_SECONDS
    snapshot_ttl_seconds: float = c.SNAPSHOT_CACHE_TTL_SECONDS
    request_timeout_s: float | None = None

    def __post_init__(self) -> None:
        for name in ("group_concurrency", "sample_stride", "sample_limit", "max_results"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")
        if self.step_seconds <= 0 or self.horizon_days < 0:
            raise ValueError("step_seconds must be positive and horizon_days non-negative")

    @property
    def horizon(self) -> timedelta:
        return timedelta(days=self.horizon_days)

    @property
    def step(self) -> timedelta:
        return timedelta(seconds=self.step_seconds)

    @property
    def prediction_ttl(self) -> timedelta:
        return timedelta(seconds=self.prediction_ttl_seconds)

    @property
    def snapshot_ttl(self) -> timedelta:
        return timedelta(seconds=self.snapshot_ttl_seconds)
