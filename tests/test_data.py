"""Tests for the SpaceX API client (mocked HTTP)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from trainspotter.core.launch import BoosterInfo
from trainspotter.data.providers import UpstreamError
from trainspotter.data.spacex import SpaceXClient

ISS_LINE1 = "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993"
ISS_LINE2 = "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596"


def _make_response(status_code: int = 200, payload=None) -> MagicMock:
    """Helper to create a mock response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.json.return_value = payload
    resp.raise_for_status = MagicMock()
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    return resp


def _iso(days_ago: float) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days_ago)).strftime("%Y-%m-%dT%H:%M:%S.000Z")


LAUNCH_DOCS = {
    "docs": [
        {
            "id": "launch-new",
            "name": "Starlink 6-12",
            "date_utc": _iso(2),
            "cores": [{"core": "core-1", "flight": 14}],
            "launchpad": "pad-1",
            "success": True,
        },
        {
            "id": "launch-old",
            "name": "Starlink 6-10",
            "date_utc": _iso(12),
            "cores": [{"core": None}],
            "launchpad": "pad-2",
            "success": True,
        },
    ]
}


def test_client_init():
    client = SpaceXClient()
    assert client.base_url == "https://api.spacexdata.com"
    assert "session" not in repr(client)


def test_recent_launches_success():
    client = SpaceXClient()
    with patch.object(client._session, "post", return_value=_make_response(200, LAUNCH_DOCS)) as post:
        launches = client.list_recent_launches()

    assert [l.id for l in launches] == ["launch-new", "launch-old"]
    assert launches[0].first_core == "core-1"
    assert launches[1].first_core is None
    assert launches[0].launched_at.tzinfo is not None

    query = post.call_args.kwargs["json"]["query"]
    assert query["success"] is True
    assert query["name"]["$regex"] == "Starlink"


def test_recent_launches_broader_search_when_empty():
    client = SpaceXClient()
    responses = [_make_response(200, {"docs": []}), _make_response(200, LAUNCH_DOCS)]
    with patch.object(client._session, "post", side_effect=responses) as post:
        launches = client.list_recent_launches()

    assert len(launches) == 2
    broader = post.call_args_list[1].kwargs["json"]
    assert "success" not in broader["query"]
    assert broader["options"]["limit"] == 20


def test_recent_launches_backup_on_failure():
    client = SpaceXClient()
    backup = [
        {"id": "b1", "name": "Starlink 4-1", "date_utc": _iso(3), "cores": [{"core": "c"}], "launchpad": "p"},
        {"id": "b2", "name": "Starlink 4-2", "date_utc": _iso(1), "cores": [{"core": "c"}], "launchpad": "p"},
        {"id": "b3", "name": "Starlink 4-3", "date_utc": _iso(90), "cores": [{"core": "c"}], "launchpad": "p"},
        {"id": "b4", "name": "CRS-30", "date_utc": _iso(2), "cores": [{"core": "c"}], "launchpad": "p"},
        {"id": "b5", "name": "Starlink 4-5", "date_utc": _iso(2), "cores": [], "launchpad": "p"},
    ]
    with patch.object(client._session, "post", side_effect=requests.ConnectionError("down")):
        with patch.object(client._session, "get", return_value=_make_response(200, backup)):
            launches = client.list_recent_launches()

    assert [l.id for l in launches] == ["b2", "b1"]


def test_recent_launches_all_sources_down():
    client = SpaceXClient()
    with patch.object(client._session, "post", return_value=_make_response(503)):
        with patch.object(client._session, "get", return_value=_make_response(503)):
            with pytest.raises(UpstreamError):
                client.list_recent_launches()


def test_satellites_for_launch():
    client = SpaceXClient()
    docs = {
        "docs": [
            {
                "id": "sat-1",
                "launch": "launch-new",
                "spaceTrack": {"TLE_LINE1": ISS_LINE1, "TLE_LINE2": ISS_LINE2, "EPOCH": "2024-02-14T13:10:30.161"},
            },
            {"id": "sat-2", "launch": "launch-new", "spaceTrack": None},
            {
                "id": "sat-3",
                "launch": "launch-new",
                "spaceTrack": {"TLE_LINE1": ISS_LINE1, "TLE_LINE2": ISS_LINE2, "EPOCH": None},
            },
        ]
    }
    with patch.object(client._session, "post", return_value=_make_response(200, docs)):
        sats = client.list_satellites_for_launch("launch-new")

    assert [s.sat_id for s in sats] == ["sat-1", "sat-2", "sat-3"]
    assert sats[0].is_valid
    assert sats[0].epoch == "2024-02-14T13:10:30.161"
    assert not sats[1].is_valid
    assert sats[1].epoch == ""
    # Epoch recovered from line 1 when the provider omits it.
    assert sats[2].epoch.startswith("2024-02-14")


def test_satellites_for_launch_failure():
    client = SpaceXClient()
    with patch.object(client._session, "post", return_value=_make_response(500)):
        with pytest.raises(UpstreamError):
            client.list_satellites_for_launch("launch-new")


def test_booster_info():
    client = SpaceXClient()
    core = {"id": "core-1", "reuse_count": 13, "last_update": "Landed on OCISLY", "landing_pad": None}
    with patch.object(client._session, "get", return_value=_make_response(200, core)):
        info = client.get_booster_info("core-1")
    assert info == BoosterInfo("core-1", 14, "Landed on OCISLY", None)


def test_booster_info_failure_returns_none():
    client = SpaceXClient()
    with patch.object(client._session, "get", return_value=_make_response(404)):
        assert client.get_booster_info("missing") is None


@pytest.mark.parametrize("response,expected", [
    (_make_response(200, {}), "online"),
    (_make_response(500), "degraded"),
])
def test_check_status(response, expected):
    client = SpaceXClient()
    with patch.object(client._session, "get", return_value=response):
        assert client.check_status() == expected


def test_check_status_offline():
    client = SpaceXClient()
    with patch.object(client._session, "get", side_effect=requests.ConnectionError("down")):
        assert client.check_status() == "offline"


def test_satellites_for_launch_non_object_body():
    client = SpaceXClient()
    with patch.object(client._session, "post", return_value=_make_response(200, ["not", "an", "object"])):
        with pytest.raises(UpstreamError):
            client.list_satellites_for_launch("launch-new")


def test_recent_launches_non_object_body_uses_backup():
    client = SpaceXClient()
    backup = [{"id": "b1", "name": "Starlink 4-1", "date_utc": _iso(3), "cores": [{"core": "c"}], "launchpad": "p"}]
    with patch.object(client._session, "post", return_value=_make_response(200, None)):
        with patch.object(client._session, "get", return_value=_make_response(200, backup)):
            launches = client.list_recent_launches()
    assert [l.id for l in launches] == ["b1"]


def test_booster_info_non_object_body_returns_none():
    client = SpaceXClient()
    with patch.object(client._session, "get", return_value=_make_response(200, [{"id": "core-1"}])):
        assert client.get_booster_info("core-1") is None
