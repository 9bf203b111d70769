"""Prediction engine — cached, degradable entry point for pass predictions."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from trainspotter.config import EngineConfig
from trainspotter.core.launch import LaunchSnapshot
from trainspotter.core.observer import ObserverLocation
from trainspotter.core.passes import Pass, PassFinder, Sampler
from trainspotter.core.quality import QualityReport, assess_quality, unavailable_report
from trainspotter.core.scoring import DEFAULT_WEIGHTS, PredictionWeights
from trainspotter.core.tle import ElementSet
from trainspotter.data.providers import BoosterProvider, LaunchProvider, SatelliteProvider, UpstreamError
from trainspotter.engine.cache import ExpiringCache, InflightRequests
from trainspotter.engine.orchestrator import compute_predictions

logger = logging.getLogger(__name__)

_SNAPSHOT_KEY = "recent-launches"


class PredictionUnavailableError(RuntimeError):
    """Predictions could not be computed and nothing cached can stand in."""


@dataclass(frozen=True)
class CacheStats:
    """Diagnostic view of the engine caches.

    Attributes:
        prediction_cache_size: Number of prediction entries, live or expired.
        launch_cache_valid: Whether the launch snapshot is live.
        launch_cache_expiry: When the launch snapshot expires, if cached.
        stale_served: How many requests were answered from expired entries.
    """

    prediction_cache_size: int
    launch_cache_valid: bool
    launch_cache_expiry: datetime | None
    stale_served: int = 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PredictionEngine:
    """Serve ranked pass predictions for observers.

    Two caches back the engine: one shared snapshot of recent launches and
    their element sets, and one ranked pass list per quantized observer
    location and weight set. Each has its own lifetime.

    Args:
        launches: Source of recent launches.
        satellites: Source of element sets per launch.
        boosters: Optional source of core metadata.
        config: Engine tunables.
        clock: Returns the current UTC time.
        sampler: Optional replacement for the per-instant visibility sampler.

    Example::

        client = SpaceXClient()
        engine = PredictionEngine(client, client, client)
        passes = await engine.get_predictions(ObserverLocation(37.7749, -122.4194))
    """

    def __init__(
        self,
        launches: LaunchProvider,
        satellites: SatelliteProvider,
        boosters: BoosterProvider | None = None,
        *,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        sampler: Sampler | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._launches = launches
        self._satellites = satellites
        self._boosters = boosters
        self._clock = clock or _utc_now
        self._finder = PassFinder(
            horizon=self.config.horizon,
            step=self.config.step,
            min_elevation_deg=self.config.min_elevation_deg,
            twilight_deg=self.config.twilight_deg,
            sampler=sampler,
        )
        self._predictions: ExpiringCache[tuple[Pass, ...]] = ExpiringCache(self.config.prediction_ttl)
        self._snapshots: ExpiringCache[LaunchSnapshot] = ExpiringCache(self.config.snapshot_ttl)
        self._inflight_predictions: InflightRequests[tuple[Pass, ...]] = InflightRequests()
        self._inflight_snapshots: InflightRequests[LaunchSnapshot] = InflightRequests()
        self._degraded: set[str] = set()
        self._stale_served = 0

    @staticmethod
    def _prediction_key(observer: ObserverLocation, weights: PredictionWeights) -> tuple:
        return (observer.cache_key, weights.as_tuple())

    async def get_predictions(
        self, observer: ObserverLocation, weights: PredictionWeights | None = None
    ) -> list[Pass]:
        """Ranked visible passes for an observer.

        A live cache entry is returned as is. Otherwise predictions are
        recomputed; if that fails, an expired entry for the same location
        is served instead.

        Returns:
            Passes, best first. An empty list means no visible passes.

        Raises:
            PredictionUnavailableError: If computation failed and nothing is cached.
        """
        weights = weights or DEFAULT_WEIGHTS
        key = self._prediction_key(observer, weights)
        cached = self._predictions.get(key)

        if cached is not None and cached.is_live(self._clock()):
            logger.debug("Returning cached predictions for %s", observer.label)
            return list(cached.value)

        try:
            passes = await self._inflight_predictions.run(key, lambda: self._compute(observer, weights))
        except (UpstreamError, asyncio.TimeoutError) as exc:
            logger.error("Failed to calculate predictions for %s: %s", observer.label, exc)
            if cached is not None:
                logger.warning("Returning expired cached predictions for %s", observer.label)
                self._degraded.add(observer.cache_key)
                self._stale_served += 1
                return list(cached.value)
            raise PredictionUnavailableError(
                "Unable to calculate predictions right now; try again later"
            ) from exc

        self._degraded.discard(observer.cache_key)
        return list(passes)

    async def _compute(self, observer: ObserverLocation, weights: PredictionWeights) -> tuple[Pass, ...]:
        computation = self._compute_fresh(observer, weights)
        if self.config.request_timeout_s is not None:
            computation = asyncio.wait_for(computation, self.config.request_timeout_s)
        passes = tuple(await computation)

        now = self._clock()
        self._predictions.put(self._prediction_key(observer, weights), passes, now)
        self._prune(now)
        return passes

    async def _compute_fresh(self, observer: ObserverLocation, weights: PredictionWeights) -> list[Pass]:
        snapshot = await self._get_snapshot()
        return await compute_predictions(
            snapshot,
            observer,
            self._clock(),
            self._finder,
            self.config,
            weights=weights,
            boosters=self._boosters,
        )

    async def _get_snapshot(self) -> LaunchSnapshot:
        entry = self._snapshots.get_live(_SNAPSHOT_KEY, self._clock())
        if entry is not None:
            logger.debug("Using cached launch data")
            return entry.value
        return await self._inflight_snapshots.run(_SNAPSHOT_KEY, self._refresh_snapshot)

    async def _refresh_snapshot(self) -> LaunchSnapshot:
        logger.info("Fetching fresh launch and satellite data")
        launches = await asyncio.to_thread(
            self._launches.list_recent_launches, self.config.recent_launch_days, True
        )
        satellite_lists = await asyncio.gather(*(self._fetch_satellites(launch.id) for launch in launches))

        now = self._clock()
        snapshot = LaunchSnapshot(
            launches=tuple(launches),
            satellites={launch.id: sats for launch, sats in zip(launches, satellite_lists)},
            fetched_at=now,
        )
        self._snapshots.put(_SNAPSHOT_KEY, snapshot, now)
        logger.info(
            "Cached %d launches with %d satellites",
            len(launches), sum(len(sats) for sats in satellite_lists),
        )
        return snapshot

    async def _fetch_satellites(self, launch_id: str) -> tuple[ElementSet, ...]:
        try:
            return tuple(await asyncio.to_thread(self._satellites.list_satellites_for_launch, launch_id))
        except UpstreamError as exc:
            logger.error("Failed to fetch satellites for launch %s: %s", launch_id, exc)
            return ()

    def _prune(self, now: datetime) -> None:
        self._predictions.prune(now)
        self._snapshots.prune(now)

    async def get_prediction_quality(self, observer: ObserverLocation) -> QualityReport:
        """Confidence report for predictions at this observer.

        Falls back to an expired snapshot when upstream data cannot be
        refreshed.
        """
        try:
            snapshot = await self._get_snapshot()
        except UpstreamError as exc:
            stale = self._snapshots.get(_SNAPSHOT_KEY)
            if stale is None:
                logger.warning("Unable to assess prediction quality: %s", exc)
                return unavailable_report()
            logger.warning("Assessing quality from expired launch data: %s", exc)
            snapshot = stale.value
        return assess_quality(
            snapshot,
            observer,
            now=self._clock(),
            degraded=observer.cache_key in self._degraded,
            max_tle_age_hours=self.config.max_tle_age_hours,
        )

    def get_cache_stats(self) -> CacheStats:
        now = self._clock()
        entry = self._snapshots.get(_SNAPSHOT_KEY)
        return CacheStats(
            prediction_cache_size=len(self._predictions),
            launch_cache_valid=entry is not None and entry.is_live(now),
            launch_cache_expiry=entry.expires_at if entry is not None else None,
            stale_served=self._stale_served,
        )

    def clear_cache(self) -> None:
        self._predictions.clear()
        self._snapshots.clear()
        self._degraded.clear()
