"""Orbital propagation via SGP4 and observer look angles."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

import numpy as np

logger = logging.getLogger(__name__)
from numpy.typing import NDArray
from sgp4.api import Satrec, WGS72, jday
from sgp4.propagation import gstime

from trainspotter.core.observer import ObserverLocation
from trainspotter.core.tle import ElementSet, validate_tle
from trainspotter.utils.constants import EARTH_FLATTENING, EARTH_RADIUS_KM, OBSERVER_HEIGHT_KM


class PropagationError(ValueError):
    """An element set could not be parsed or propagated by SGP4."""


@dataclass
class StateVector:
    """Position and velocity in TEME frame.

    Attributes:
        position_km: [x, y, z] position in km.
        velocity_km_s: [vx, vy, vz] velocity in km/s.
        epoch: Time of this state vector.
    """

    position_km: NDArray[np.float64]  # shape (3,)
    velocity_km_s: NDArray[np.float64]  # shape (3,)
    epoch: datetime


@dataclass(frozen=True)
class LookAngles:
    """Observer-relative direction to a satellite.

    Attributes:
        azimuth_deg: Azimuth clockwise from north, [0, 360).
        elevation_deg: Elevation above the horizon, [-90, 90].
        range_km: Slant range in km.
    """

    azimuth_deg: float
    elevation_deg: float
    range_km: float


def parse_satrec(element_set: ElementSet) -> Satrec:
    """Parse an element set into an SGP4 record.

    The record can be kept and reused for every instant of the same satellite.

    Raises:
        PropagationError: If SGP4 cannot initialise from the lines.
    """
    if not validate_tle(element_set.line1, element_set.line2):
        raise PropagationError(f"Malformed TLE for satellite {element_set.sat_id}")
    try:
        sat = Satrec.twoline2rv(element_set.line1, element_set.line2, WGS72)
    except (ValueError, IndexError) as exc:
        logger.error("Failed to parse TLE for satellite %s: %s", element_set.sat_id, exc)
        raise PropagationError(f"Failed to parse TLE for satellite {element_set.sat_id}") from exc

    if sat.error != 0:
        logger.error("SGP4 init failed for satellite %s: error code %d", element_set.sat_id, sat.error)
        raise PropagationError(
            f"SGP4 init failed for satellite {element_set.sat_id}: error code {sat.error}"
        )
    return sat


def _julian(t: datetime) -> tuple[float, float]:
    return jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)


def gmst_rad(t: datetime) -> float:
    """Greenwich mean sidereal time in radians."""
    jd, fr = _julian(t)
    return gstime(jd + fr)


def propagate(satrec: Satrec, t: datetime) -> StateVector:
    """Propagate an SGP4 record to a single UTC instant.

    Raises:
        PropagationError: If SGP4 reports an error code.
    """
    jd, fr = _julian(t)
    error_code, pos, vel = satrec.sgp4(jd, fr)

    if error_code != 0:
        logger.warning("SGP4 propagation failed for NORAD %s at %s: error code %d", satrec.satnum, t, error_code)
        raise PropagationError(
            f"SGP4 propagation failed for NORAD {satrec.satnum} at {t}: error code {error_code}"
        )

    return StateVector(
        position_km=np.array(pos, dtype=np.float64),
        velocity_km_s=np.array(vel, dtype=np.float64),
        epoch=t,
    )


def observer_position_ecef(observer: ObserverLocation) -> NDArray[np.float64]:
    """Earth-fixed position of the observer on the WGS-84 ellipsoid, km."""
    lat = math.radians(observer.lat)
    lon = math.radians(observer.lon)
    e2 = EARTH_FLATTENING * (2.0 - EARTH_FLATTENING)
    n = EARTH_RADIUS_KM / math.sqrt(1.0 - e2 * math.sin(lat) ** 2)
    return np.array([
        (n + OBSERVER_HEIGHT_KM) * math.cos(lat) * math.cos(lon),
        (n + OBSERVER_HEIGHT_KM) * math.cos(lat) * math.sin(lon),
        (n * (1.0 - e2) + OBSERVER_HEIGHT_KM) * math.sin(lat),
    ])


def observer_position_eci(observer: ObserverLocation, t: datetime) -> NDArray[np.float64]:
    """Observer position rotated into the inertial frame at ``t``, km."""
    theta = gmst_rad(t)
    x, y, z = observer_position_ecef(observer)
    c, s = math.cos(theta), math.sin(theta)
    return np.array([x * c - y * s, x * s + y * c, z])


def look_angles(position_km: NDArray[np.float64], observer: ObserverLocation, t: datetime) -> LookAngles:
    """Convert an inertial satellite position into observer look angles.

    The position is rotated to Earth-fixed coordinates by the Greenwich
    sidereal angle, then projected onto the observer's south/east/zenith
    axes.
    """
    theta = gmst_rad(t)
    c, s = math.cos(theta), math.sin(theta)
    x, y, z = position_km
    sat_ecef = np.array([x * c + y * s, -x * s + y * c, z])

    rx, ry, rz = sat_ecef - observer_position_ecef(observer)
    lat = math.radians(observer.lat)
    lon = math.radians(observer.lon)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)

    south = sin_lat * cos_lon * rx + sin_lat * sin_lon * ry - cos_lat * rz
    east = -sin_lon * rx + cos_lon * ry
    zenith = cos_lat * cos_lon * rx + cos_lat * sin_lon * ry + sin_lat * rz

    range_km = math.sqrt(south ** 2 + east ** 2 + zenith ** 2)
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, zenith / range_km))))
    azimuth = math.degrees(math.atan2(east, -south)) % 360.0

    return LookAngles(azimuth_deg=azimuth, elevation_deg=elevation, range_km=range_km)
