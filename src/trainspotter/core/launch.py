"""Launch groups and the upstream data snapshot they arrive in."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from trainspotter.core.tle import ElementSet


@dataclass(frozen=True)
class BoosterInfo:
    """First-stage core flown on a launch."""

    core_id: str
    flight_number: int
    landing_type: str
    landing_pad: str | None = None


@dataclass(frozen=True)
class LaunchGroup:
    """A launch whose satellites travel together as a train.

    Attributes:
        id: Provider identifier of the launch.
        name: Mission name (e.g. ``"Starlink 6-12"``).
        launched_at: Launch time, UTC.
        cores: Core identifiers, first stage first. ``None`` entries are unknown cores.
        launchpad: Launchpad identifier, if known.
    """

    id: str
    name: str
    launched_at: datetime
    cores: tuple[str | None, ...] = ()
    launchpad: str | None = None

    @property
    def first_core(self) -> str | None:
        return self.cores[0] if self.cores else None


@dataclass(frozen=True)
class LaunchSnapshot:
    """Recent launches and their element sets, fetched together.

    Attributes:
        launches: Launch groups, newest first.
        satellites: Element sets keyed by launch id.
        fetched_at: When the snapshot was assembled.
    """

    launches: tuple[LaunchGroup, ...]
    satellites: dict[str, tuple[ElementSet, ...]] = field(default_factory=dict)
    fetched_at: datetime | None = None

    def satellites_for(self, launch_id: str) -> tuple[ElementSet, ...]:
        return self.satellites.get(launch_id, ())
