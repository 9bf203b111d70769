"""Sunlight and twilight geometry for naked-eye satellite visibility.

A satellite train is seen when the satellite is still lit by the Sun while
the observer's sky is already dark (dusk) or not yet light (dawn). The
models here are deliberately simple: the Sun's direction comes from a
low-order day-of-year approximation and Earth's shadow is treated as the
whole night-side hemisphere.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

import numpy as np
from numpy.typing import NDArray

from trainspotter.core.observer import ObserverLocation
from trainspotter.utils.constants import AU_KM, CIVIL_TWILIGHT_DEG, MIN_ELEVATION_DEG, OBLIQUITY_DEG


def _as_utc(t: datetime) -> datetime:
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def _day_of_year(t: datetime) -> int:
    return _as_utc(t).timetuple().tm_yday


def _utc_hours(t: datetime) -> float:
    t = _as_utc(t)
    return t.hour + t.minute / 60.0 + t.second / 3600.0


def sun_position_eci(t: datetime) -> NDArray[np.float64]:
    """Approximate Earth-centred inertial position of the Sun in km.

    The ecliptic longitude advances uniformly from the March equinox
    (day 81) using the fractional UTC day of year.
    """
    day = _day_of_year(t) + _utc_hours(t) / 24.0
    solar_longitude = math.radians((day - 81.0) * (360.0 / 365.25))
    epsilon = math.radians(OBLIQUITY_DEG)

    return np.array([
        AU_KM * math.cos(solar_longitude),
        AU_KM * math.sin(solar_longitude) * math.cos(epsilon),
        AU_KM * math.sin(solar_longitude) * math.sin(epsilon),
    ])


def is_satellite_sunlit(position_km: NDArray[np.float64], t: datetime) -> bool:
    """True if the satellite sits on the day side of Earth.

    Cylindrical shadow approximation: the satellite is lit whenever its
    position has a positive component along the Sun direction.
    """
    sun = sun_position_eci(t)
    sun_unit = sun / np.linalg.norm(sun)
    return float(np.dot(position_km, sun_unit)) > 0.0


def sun_elevation_deg(observer: ObserverLocation, t: datetime) -> float:
    """Approximate solar elevation seen by the observer, in degrees.

    Uses the day-of-year declination formula and the hour angle from the
    observer's local solar time.
    """
    declination = math.radians(23.45 * math.sin(math.radians(360.0 * (284 + _day_of_year(t)) / 365.0)))
    solar_time = _utc_hours(t) + observer.lon / 15.0
    hour_angle = math.radians(15.0 * (solar_time - 12.0))
    lat = math.radians(observer.lat)

    sin_el = (
        math.sin(declination) * math.sin(lat)
        + math.cos(declination) * math.cos(lat) * math.cos(hour_angle)
    )
    return math.degrees(math.asin(max(-1.0, min(1.0, sin_el))))


def is_visible(
    position_km: NDArray[np.float64],
    observer: ObserverLocation,
    t: datetime,
    elevation_deg: float,
    min_elevation_deg: float = MIN_ELEVATION_DEG,
    twilight_deg: float = CIVIL_TWILIGHT_DEG,
) -> bool:
    """Visibility predicate: high enough, sunlit, and observer in darkness.

    The elevation gate is checked first so low satellites never reach the
    illumination model.
    """
    if elevation_deg <= min_elevation_deg:
        return False
    if not is_satellite_sunlit(position_km, t):
        return False
    return sun_elevation_deg(observer, t) <= twilight_deg


def phase_angle_deg(
    satellite_km: NDArray[np.float64],
    observer_km: NDArray[np.float64],
    sun_km: NDArray[np.float64],
) -> float:
    """Sun-satellite-observer angle at the satellite, in degrees.

    0° means the observer sees the fully lit face (brightest); 180° means
    the satellite is back-lit.
    """
    to_sun = sun_km - satellite_km
    to_observer = observer_km - satellite_km
    cos_angle = float(np.dot(to_sun, to_observer) / (np.linalg.norm(to_sun) * np.linalg.norm(to_observer)))
    return math.degrees(math.acos(max(-1.0, min(1.0, cos_angle))))
