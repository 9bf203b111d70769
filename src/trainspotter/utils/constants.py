from __future__ import annotations

"""Physical constants and default thresholds for visibility prediction.

Distances in km, angles in degrees, durations in the unit named by the
constant.
"""

# --- Earth parameters (WGS-84) ---
EARTH_RADIUS_KM: float = 6378.137
"""Equatorial radius of Earth in km."""

EARTH_FLATTENING: float = 1.0 / 298.257223563
"""WGS-84 flattening."""

OBSERVER_HEIGHT_KM: float = 0.1
"""Assumed observer height above the ellipsoid in km."""

AU_KM: float = 149597870.7
"""Astronomical unit in km."""

OBLIQUITY_DEG: float = 23.439291
"""Obliquity of the ecliptic in degrees."""

# --- TLE format ---
TLE_LINE_LENGTH: int = 69
"""Exact length of a TLE element line."""

MAX_TLE_AGE_HOURS: float = 48.0
"""Element sets older than this are excluded from pass finding."""

# --- Visibility ---
MIN_ELEVATION_DEG: float = 10.0
"""Minimum satellite elevation for a visible pass."""

CIVIL_TWILIGHT_DEG: float = -6.0
"""Observer sun elevation at or below which the sky is dark enough."""

# --- Pass finding ---
PREDICTION_DAYS: float = 7.0
"""Forward prediction horizon in days."""

PREDICTION_STEP_SECONDS: float = 30.0
"""Time step of the pass scan in seconds."""

# --- Orchestration ---
RECENT_LAUNCH_DAYS: int = 30
"""Window of launches considered recent."""

BROADER_LAUNCH_DAYS: int = 60
"""Window used when the recent-launch query returns nothing."""

GROUP_CONCURRENCY: int = 3
"""Launch groups processed per batch."""

SATELLITE_SAMPLE_STRIDE: int = 3
"""Every Nth valid satellite of a group is scanned."""

SATELLITE_SAMPLE_LIMIT: int = 10
"""At most this many satellites per group are scanned."""

MAX_RESULTS: int = 20
"""Number of ranked passes returned."""

# --- Caching ---
PREDICTION_CACHE_TTL_SECONDS: float = 15 * 60
"""Lifetime of a per-location prediction entry."""

SNAPSHOT_CACHE_TTL_SECONDS: float = 60 * 60
"""Lifetime of the shared launch/satellite snapshot."""

LOCATION_KEY_PRECISION: int = 2
"""Decimal places kept when quantizing observer coordinates (~1 km)."""

# --- Scoring ---
UNBALANCED_WEIGHT_SUM: float = 1.2
"""Weight sums above this are reported as unbalanced."""
