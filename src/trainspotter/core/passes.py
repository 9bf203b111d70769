"""Visible pass search — segment a time-stepped scan into passes."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sgp4.api import Satrec

from trainspotter.core.illumination import is_visible, phase_angle_deg, sun_position_eci
from trainspotter.core.launch import BoosterInfo, LaunchGroup
from trainspotter.core.observer import ObserverLocation
from trainspotter.core.propagation import look_angles, observer_position_eci, parse_satrec, propagate
from trainspotter.core.tle import ElementSet
from trainspotter.utils.constants import (
    CIVIL_TWILIGHT_DEG,
    MIN_ELEVATION_DEG,
    PREDICTION_DAYS,
    PREDICTION_STEP_SECONDS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pass:
    """One contiguous visible interval of one satellite.

    Attributes:
        sat_id: Satellite identifier.
        launch_id: Identifier of the launch the satellite belongs to.
        start: First visible sample (UTC).
        peak: Sample with the highest elevation (UTC).
        end: Last visible sample (UTC).
        max_elevation_deg: Elevation at the peak.
        phase_angle_deg: Sun-satellite-observer angle at the peak.
        azimuth_start_deg: Azimuth of the first sample.
        azimuth_end_deg: Azimuth of the last sample.
        score: Ranking score, filled in after all passes are collected.
        launch_name: Mission name, for display.
        booster: First-stage core metadata, for display.
    """

    sat_id: str
    launch_id: str
    start: datetime
    peak: datetime
    end: datetime
    max_elevation_deg: float
    phase_angle_deg: float
    azimuth_start_deg: float
    azimuth_end_deg: float
    score: float = 0.0
    launch_name: str | None = None
    booster: BoosterInfo | None = None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class Sample:
    """Observer-relative state of a satellite at one scan instant."""

    time: datetime
    elevation_deg: float
    azimuth_deg: float
    range_km: float
    visible: bool
    phase_angle_deg: float = 90.0


Sampler = Callable[[Satrec, ObserverLocation, datetime], Sample]


def sample_satellite(
    satrec: Satrec,
    observer: ObserverLocation,
    t: datetime,
    min_elevation_deg: float = MIN_ELEVATION_DEG,
    twilight_deg: float = CIVIL_TWILIGHT_DEG,
) -> Sample:
    """Propagate, look up angles and apply the visibility predicate at ``t``.

    Raises:
        PropagationError: If SGP4 fails at ``t``.
    """
    state = propagate(satrec, t)
    angles = look_angles(state.position_km, observer, t)
    visible = is_visible(
        state.position_km, observer, t, angles.elevation_deg,
        min_elevation_deg=min_elevation_deg, twilight_deg=twilight_deg,
    )

    phase = 90.0
    if visible:
        phase = phase_angle_deg(state.position_km, observer_position_eci(observer, t), sun_position_eci(t))

    return Sample(
        time=t,
        elevation_deg=angles.elevation_deg,
        azimuth_deg=angles.azimuth_deg,
        range_km=angles.range_km,
        visible=visible,
        phase_angle_deg=phase,
    )


@dataclass
class PassFinder:
    """Scan one satellite from a start instant to the horizon.

    The scan is a two-state machine: out of pass, a visible sample opens a
    pass; in pass, samples are buffered until the first non-visible one,
    which closes it. A pass still open at the horizon is closed with the
    samples collected so far. Passes with fewer than two samples are
    dropped.

    Attributes:
        horizon: How far ahead of the start instant to scan.
        step: Time between samples.
        min_elevation_deg: Minimum elevation for visibility.
        twilight_deg: Observer sun elevation at or below which it is dark.
        sampler: Optional replacement for :func:`sample_satellite`.
    """

    horizon: timedelta = field(default_factory=lambda: timedelta(days=PREDICTION_DAYS))
    step: timedelta = field(default_factory=lambda: timedelta(seconds=PREDICTION_STEP_SECONDS))
    min_elevation_deg: float = MIN_ELEVATION_DEG
    twilight_deg: float = CIVIL_TWILIGHT_DEG
    sampler: Sampler | None = None

    def __post_init__(self) -> None:
        if self.step <= timedelta(0):
            raise ValueError(f"Scan step must be positive, got {self.step}")

    def _sample(self, satrec: Satrec, observer: ObserverLocation, t: datetime) -> Sample:
        if self.sampler is not None:
            return self.sampler(satrec, observer, t)
        return sample_satellite(satrec, observer, t, self.min_elevation_deg, self.twilight_deg)

    def find_passes(
        self,
        element_set: ElementSet,
        observer: ObserverLocation,
        start: datetime,
        launch: LaunchGroup | None = None,
        booster: BoosterInfo | None = None,
    ) -> list[Pass]:
        """Find every visible pass of one satellite within the horizon.

        Raises:
            PropagationError: If the element set cannot be parsed or
                propagated. The whole scan for this satellite is abandoned.
        """
        satrec = parse_satrec(element_set)
        end_time = start + self.horizon

        passes: list[Pass] = []
        points: list[Sample] = []
        in_pass = False

        current = start
        while current <= end_time:
            sample = self._sample(satrec, observer, current)

            if sample.visible:
                if not in_pass:
                    in_pass = True
                    points = []
                points.append(sample)
            elif in_pass:
                closed = _close_pass(element_set, points, launch, booster)
                if closed is not None:
                    passes.append(closed)
                in_pass = False
                points = []

            current += self.step

        if in_pass:
            closed = _close_pass(element_set, points, launch, booster)
            if closed is not None:
                passes.append(closed)

        logger.debug("Satellite %s: %d passes in %s", element_set.sat_id, len(passes), self.horizon)
        return passes


def _close_pass(
    element_set: ElementSet,
    points: list[Sample],
    launch: LaunchGroup | None,
    booster: BoosterInfo | None,
) -> Pass | None:
    if len(points) < 2:
        return None

    peak = max(points, key=lambda p: p.elevation_deg)
    first, last = points[0], points[-1]

    return Pass(
        sat_id=element_set.sat_id,
        launch_id=element_set.launch_id,
        start=first.time,
        peak=peak.time,
        end=last.time,
        max_elevation_deg=peak.elevation_deg,
        phase_angle_deg=peak.phase_angle_deg,
        azimuth_start_deg=first.azimuth_deg,
        azimuth_end_deg=last.azimuth_deg,
        launch_name=launch.name if launch is not None else None,
        booster=booster,
    )
