"""Ground observer location."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from trainspotter.utils.constants import LOCATION_KEY_PRECISION


@dataclass(frozen=True)
class ObserverLocation:
    """A validated observer position on the ground.

    Attributes:
        lat: Geodetic latitude in degrees, [-90, 90].
        lon: Longitude in degrees, [-180, 180].
        name: Optional display name.
        timezone: Optional IANA timezone name (e.g. ``"America/Los_Angeles"``).

    Raises:
        ValueError: If a coordinate is non-finite or out of range, or the
            timezone is not a known IANA name.
    """

    lat: float
    lon: float
    name: str | None = None
    timezone: str | None = None

    def __post_init__(self) -> None:
        for label, value, limit in (("latitude", self.lat, 90.0), ("longitude", self.lon, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Invalid {label}: {value!r}")
            if not math.isfinite(value) or abs(value) > limit:
                raise ValueError(f"Invalid {label}: {value!r}")
        if self.timezone is not None:
            if not isinstance(self.timezone, str) or not self.timezone:
                raise ValueError(f"Invalid timezone: {self.timezone!r}")
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ObserverLocation:
        """Build a location from untyped request data (``lat``/``lon`` keys).

        Raises:
            ValueError: If the mapping is missing coordinates or they are invalid.
        """
        if not isinstance(data, Mapping):
            raise ValueError("Location must be a mapping with 'lat' and 'lon'")
        if "lat" not in data or "lon" not in data:
            raise ValueError("Location must provide 'lat' and 'lon'")
        return cls(
            lat=data["lat"],
            lon=data["lon"],
            name=data.get("name"),
            timezone=data.get("timezone"),
        )

    @property
    def cache_key(self) -> str:
        """Coordinates rounded to ~1 km, used to share cached predictions."""
        factor = 10 ** LOCATION_KEY_PRECISION
        lat = math.floor(self.lat * factor + 0.5) / factor
        lon = math.floor(self.lon * factor + 0.5) / factor
        return f"{lat:.{LOCATION_KEY_PRECISION}f},{lon:.{LOCATION_KEY_PRECISION}f}"

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        return f"{self.lat:.4f}, {self.lon:.4f}"

    def local_tz(self) -> tzinfo:
        """The observer's timezone, or a whole-hour offset from longitude."""
        if self.timezone:
            return ZoneInfo(self.timezone)
        return timezone(timedelta(hours=round(self.lon / 15.0)))

    def local_time(self, instant: datetime) -> datetime:
        return instant.astimezone(self.local_tz())
