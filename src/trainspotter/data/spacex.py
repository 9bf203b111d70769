"""SpaceX API client.

Provides access to the public r/SpaceX API for recent Starlink launches,
the element sets of the satellites they deployed, and first-stage core
history. Implements the launch, satellite and booster provider contracts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import requests

logger = logging.getLogger(__name__)

from trainspotter.core.launch import BoosterInfo, LaunchGroup
from trainspotter.core.tle import ElementSet, parse_epoch, tle_epoch, validate_tle
from trainspotter.data.providers import UpstreamError
from trainspotter.utils.constants import BROADER_LAUNCH_DAYS, RECENT_LAUNCH_DAYS

_LAUNCH_FIELDS = ["id", "name", "date_utc", "cores", "launchpad", "success"]


@dataclass
class SpaceXClient:
    """Client for the SpaceX REST API.

    No account is needed. When the main API is down, recent launches are
    read from the static backup dump instead.

    Attributes:
        base_url: API base URL.
        backup_url: Base URL of the static backup dump.
        timeout: Per-request timeout in seconds.
    """

    base_url: str = "https://api.spacexdata.com"
    backup_url: str = "https://backups.spacexdata.com"
    timeout: float = 15.0
    _session: requests.Session = field(default_factory=requests.Session, repr=False)

    def _post_query(self, path: str, query: dict[str, Any]) -> dict[str, Any]:
        """POST a mongo-style query to a ``/query`` endpoint.

        Raises:
            requests.RequestException: If the request fails.
            ValueError: If the body is not a JSON object.
        """
        response = self._session.post(f"{self.base_url}{path}", json=query, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object from {path}, got {type(data).__name__}")
        return data

    def _get(self, url: str) -> Any:
        response = self._session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _launch_query(self, window_days: int, success_only: bool, limit: int) -> dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(days=window_days)
        query: dict[str, Any] = {
            "name": {"$regex": "Starlink", "$options": "i"},
            "date_utc": {"$gte": since.isoformat()},
        }
        if success_only:
            query["success"] = True
        return {
            "query": query,
            "options": {"select": _LAUNCH_FIELDS, "sort": {"date_utc": -1}, "limit": limit},
        }

    def list_recent_launches(
        self, window_days: int = RECENT_LAUNCH_DAYS, success_only: bool = True
    ) -> list[LaunchGroup]:
        """Fetch recent Starlink launches, newest first.

        Falls back to a broader query (60 days, any outcome) when nothing
        matches, and to the backup dump when the API is unreachable.

        Args:
            window_days: How many days back to search.
            success_only: Only include successful launches.

        Returns:
            List of LaunchGroup objects.

        Raises:
            UpstreamError: If both the API and the backup dump fail.
        """
        try:
            data = self._post_query("/v5/launches/query", self._launch_query(window_days, success_only, 15))
        except (requests.RequestException, ValueError) as exc:
            logger.warning("SpaceX launch query failed (%s), trying backup source", exc)
            return self._launches_from_backup(window_days)

        launches = _parse_launches(data.get("docs") or [])
        logger.info("Found %d Starlink launches in the last %d days", len(launches), window_days)
        if launches:
            return launches

        logger.info("No recent launches, trying broader search (%d days, any outcome)", BROADER_LAUNCH_DAYS)
        try:
            data = self._post_query("/v5/launches/query", self._launch_query(BROADER_LAUNCH_DAYS, False, 20))
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Broader launch search failed: %s", exc)
            return []
        return _parse_launches(data.get("docs") or [])

    def _launches_from_backup(self, window_days: int) -> list[LaunchGroup]:
        try:
            docs = self._get(f"{self.backup_url}/launches.json")
        except (requests.RequestException, ValueError) as exc:
            logger.error("Backup launch source failed: %s", exc)
            raise UpstreamError("SpaceX API and backup launch source are unavailable") from exc
        if not isinstance(docs, list):
            raise UpstreamError("Backup launch source returned an unexpected payload")

        since = datetime.now(timezone.utc) - timedelta(days=window_days)
        recent = [
            launch for launch in _parse_launches(docs)
            if "starlink" in launch.name.lower() and launch.launched_at >= since and launch.cores
        ]
        recent.sort(key=lambda launch: launch.launched_at, reverse=True)
        logger.info("Backup source: %d recent Starlink launches", len(recent[:15]))
        return recent[:15]

    def list_satellites_for_launch(self, launch_id: str) -> list[ElementSet]:
        """Fetch the element sets of every Starlink satellite from a launch.

        Args:
            launch_id: SpaceX launch identifier.

        Returns:
            List of ElementSet objects (possibly invalid or stale).

        Raises:
            UpstreamError: If the request fails.
        """
        query = {
            "query": {"launch": launch_id},
            "options": {
                "select": ["id", "launch", "spaceTrack.TLE_LINE1", "spaceTrack.TLE_LINE2", "spaceTrack.EPOCH"],
                "pagination": False,
            },
        }
        try:
            data = self._post_query("/v4/starlink/query", query)
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamError(f"Failed to fetch satellites for launch {launch_id}") from exc

        element_sets = [_parse_satellite(doc, launch_id) for doc in data.get("docs") or []]
        logger.debug("Launch %s: %d satellites", launch_id, len(element_sets))
        return element_sets

    def get_booster_info(self, core_id: str) -> BoosterInfo | None:
        """Fetch first-stage core history. Returns None on any failure."""
        try:
            core = self._get(f"{self.base_url}/v4/cores/{core_id}")
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Failed to fetch booster info for %s: %s", core_id, exc)
            return None
        if not isinstance(core, dict):
            logger.warning("Unexpected booster payload for %s", core_id)
            return None

        return BoosterInfo(
            core_id=core.get("id") or core_id,
            flight_number=int(core.get("reuse_count") or 0) + 1,
            landing_type=core.get("last_update") or "Unknown",
            landing_pad=core.get("landing_pad") or None,
        )

    def check_status(self) -> str:
        """Probe the API: ``"online"``, ``"degraded"`` or ``"offline"``."""
        try:
            response = self._session.get(f"{self.base_url}/v4/company", timeout=self.timeout)
        except requests.RequestException:
            return "offline"
        return "online" if response.ok else "degraded"


def _parse_launches(docs: list[dict[str, Any]]) -> list[LaunchGroup]:
    launches = []
    for doc in docs:
        try:
            launched_at = parse_epoch(doc["date_utc"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping launch with bad date: %r", doc.get("id"))
            continue
        cores = tuple(core.get("core") for core in doc.get("cores") or [] if isinstance(core, dict))
        launches.append(
            LaunchGroup(
                id=str(doc.get("id", "")),
                name=str(doc.get("name", "")),
                launched_at=launched_at,
                cores=cores,
                launchpad=doc.get("launchpad"),
            )
        )
    return launches


def _parse_satellite(doc: dict[str, Any], launch_id: str) -> ElementSet:
    space_track = doc.get("spaceTrack") or {}
    line1 = space_track.get("TLE_LINE1") or ""
    line2 = space_track.get("TLE_LINE2") or ""
    epoch = space_track.get("EPOCH") or ""

    if not epoch and validate_tle(line1, line2):
        try:
            epoch = tle_epoch(line1).isoformat()
        except ValueError:
            epoch = ""

    return ElementSet(
        sat_id=str(doc.get("id", "")),
        launch_id=str(doc.get("launch") or launch_id),
        line1=line1,
        line2=line2,
        epoch=epoch,
    )
