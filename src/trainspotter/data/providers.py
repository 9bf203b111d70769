"""Contracts for the upstream data sources the engine depends on.

Providers are blocking; the engine runs them in worker threads. Any
failure a provider cannot recover from is raised as :class:`UpstreamError`.
"""

from __future__ import annotations

from typing import Protocol

from trainspotter.core.launch import BoosterInfo, LaunchGroup
from trainspotter.core.tle import ElementSet


class UpstreamError(RuntimeError):
    """An upstream data provider could not deliver data."""


class LaunchProvider(Protocol):
    def list_recent_launches(self, window_days: int = 30, success_only: bool = True) -> list[LaunchGroup]:
        """Recent Starlink launches, newest first."""
        ...


class SatelliteProvider(Protocol):
    def list_satellites_for_launch(self, launch_id: str) -> list[ElementSet]:
        """Element sets of every satellite deployed by a launch."""
        ...


class BoosterProvider(Protocol):
    def get_booster_info(self, core_id: str) -> BoosterInfo | None:
        """Best-effort core metadata; ``None`` when unavailable."""
        ...
