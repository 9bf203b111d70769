"""Fan the pass finder out over launch groups and rank the results."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from trainspotter.config import EngineConfig
from trainspotter.core.launch import BoosterInfo, LaunchGroup, LaunchSnapshot
from trainspotter.core.observer import ObserverLocation
from trainspotter.core.passes import Pass, PassFinder
from trainspotter.core.propagation import PropagationError
from trainspotter.core.scoring import DEFAULT_WEIGHTS, PredictionWeights, rank_passes
from trainspotter.core.tle import ElementSet
from trainspotter.data.providers import BoosterProvider

logger = logging.getLogger(__name__)


def filter_valid_satellites(
    element_sets: tuple[ElementSet, ...] | list[ElementSet],
    now: datetime,
    max_age_hours: float,
) -> list[ElementSet]:
    """Keep element sets that are structurally valid and fresh, in source order."""
    valid = []
    for element_set in element_sets:
        if not element_set.is_valid:
            continue
        if not element_set.is_fresh(now, max_age_hours):
            logger.warning("Stale TLE for satellite %s, epoch: %s", element_set.sat_id, element_set.epoch)
            continue
        valid.append(element_set)
    return valid


def sample_satellites(element_sets: list[ElementSet], stride: int, limit: int) -> list[ElementSet]:
    """Every ``stride``-th element set, at most ``limit`` of them."""
    return element_sets[::stride][:limit]


async def _lookup_booster(launch: LaunchGroup, boosters: BoosterProvider | None) -> BoosterInfo | None:
    core_id = launch.first_core
    if boosters is None or not core_id:
        return None
    try:
        return await asyncio.to_thread(boosters.get_booster_info, core_id)
    except Exception as exc:
        logger.warning("Failed to get booster info for launch %s: %s", launch.id, exc)
        return None


async def process_launch(
    launch: LaunchGroup,
    element_sets: tuple[ElementSet, ...],
    observer: ObserverLocation,
    now: datetime,
    finder: PassFinder,
    config: EngineConfig,
    boosters: BoosterProvider | None = None,
) -> list[Pass]:
    """Find the passes of one launch group.

    Groups without valid, fresh element sets are skipped. A satellite whose
    propagation fails is skipped; the rest of the group continues.
    """
    if not element_sets:
        logger.warning("No satellites found for launch %s", launch.id)
        return []

    valid = filter_valid_satellites(element_sets, now, config.max_tle_age_hours)
    if not valid:
        logger.warning("No valid TLEs for launch %s", launch.id)
        return []

    booster = await _lookup_booster(launch, boosters)

    passes: list[Pass] = []
    for element_set in sample_satellites(valid, config.sample_stride, config.sample_limit):
        try:
            passes.extend(finder.find_passes(element_set, observer, now, launch=launch, booster=booster))
        except PropagationError as exc:
            logger.error("Failed to calculate passes for satellite %s: %s", element_set.sat_id, exc)

    logger.debug("Launch %s: %d passes from %d valid satellites", launch.id, len(passes), len(valid))
    return passes


async def compute_predictions(
    snapshot: LaunchSnapshot,
    observer: ObserverLocation,
    now: datetime,
    finder: PassFinder,
    config: EngineConfig,
    weights: PredictionWeights = DEFAULT_WEIGHTS,
    boosters: BoosterProvider | None = None,
) -> list[Pass]:
    """Find, score and rank passes of every launch in a snapshot.

    Launch groups run in batches of ``config.group_concurrency``; each batch
    completes before the next one starts.

    Returns:
        At most ``config.max_results`` passes, best score first.
    """
    if not snapshot.launches:
        logger.warning("No recent Starlink launches found")
        return []

    collected: list[tuple[Pass, datetime]] = []
    launches = snapshot.launches
    size = config.group_concurrency

    for i in range(0, len(launches), size):
        batch = launches[i:i + size]
        results = await asyncio.gather(*(
            process_launch(launch, snapshot.satellites_for(launch.id), observer, now, finder, config, boosters)
            for launch in batch
        ))
        for launch, passes in zip(batch, results):
            collected.extend((p, launch.launched_at) for p in passes)

    ranked = rank_passes(collected, observer, weights, limit=config.max_results)
    logger.info("Found %d passes for %s, returning %d", len(collected), observer.label, len(ranked))
    return ranked
