from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from trainspotter.core.launch import LaunchGroup, LaunchSnapshot
from trainspotter.core.observer import ObserverLocation
from trainspotter.core.quality import assess_quality, unavailable_report
from trainspotter.core.tle import ElementSet

ISS_LINE1 = "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993"
ISS_LINE2 = "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596"

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
MID_LATITUDE = ObserverLocation(45.0, 7.0)


def snapshot(launch_age_days: float = 4.0, fresh: int = 3, stale: int = 0, invalid: int = 0) -> LaunchSnapshot:
    launch = LaunchGroup("L1", "Starlink 7-1", NOW - timedelta(days=launch_age_days))
    sats = [ElementSet(f"f{i}", "L1", ISS_LINE1, ISS_LINE2, (NOW - timedelta(hours=2)).isoformat()) for i in range(fresh)]
    sats += [ElementSet(f"s{i}", "L1", ISS_LINE1, ISS_LINE2, (NOW - timedelta(days=5)).isoformat()) for i in range(stale)]
    sats += [ElementSet(f"x{i}", "L1", "bad", "bad", NOW.isoformat()) for i in range(invalid)]
    return LaunchSnapshot(launches=(launch,), satellites={"L1": tuple(sats)}, fetched_at=NOW)


class TestAssessQuality:
    def test_no_launches_is_poor(self):
        report = assess_quality(LaunchSnapshot(launches=()), MID_LATITUDE, now=NOW)
        assert report.quality == "poor"
        assert "No recent Starlink launches found" in report.factors
        assert "Check back after the next Starlink launch" in report.recommendations

    def test_no_launches_poor_even_at_high_latitude(self):
        report = assess_quality(LaunchSnapshot(launches=()), ObserverLocation(65.0, 20.0), now=NOW)
        assert report.quality == "poor"

    def test_clean_data_excellent(self):
        report = assess_quality(snapshot(), MID_LATITUDE, now=NOW)
        assert report.score == 100
        assert report.quality == "excellent"
        assert report.factors == []

    def test_very_recent_launch_bonus(self):
        report = assess_quality(snapshot(launch_age_days=1), MID_LATITUDE, now=NOW)
        assert report.score == 110
        assert "Very recent launch available" in report.factors

    def test_old_launch_penalty(self):
        report = assess_quality(snapshot(launch_age_days=10), MID_LATITUDE, now=NOW)
        assert report.score == 80
        assert report.quality == "good"

    def test_invalid_ratio_penalty(self):
        report = assess_quality(snapshot(fresh=1, invalid=3), MID_LATITUDE, now=NOW)
        assert report.score == 70
        assert "Many satellites have invalid orbital data" in report.factors

    def test_stale_ratio_penalty(self):
        report = assess_quality(snapshot(fresh=2, stale=2), MID_LATITUDE, now=NOW)
        assert report.score == 85
        assert report.quality == "good"
        assert "Some orbital data is outdated" in report.factors

    def test_all_invalid_no_division_error(self):
        report = assess_quality(snapshot(fresh=0, invalid=4), MID_LATITUDE, now=NOW)
        assert report.score == 70

    @pytest.mark.parametrize("lat,delta", [(65.0, 5), (-70.0, 5), (10.0, -5), (-25.0, -5), (45.0, 0)])
    def test_latitude_band(self, lat, delta):
        report = assess_quality(snapshot(), ObserverLocation(lat, 0.0), now=NOW)
        assert report.score == 100 + delta

    def test_degraded_flagged(self):
        report = assess_quality(snapshot(), MID_LATITUDE, now=NOW, degraded=True)
        assert any("cached predictions" in f for f in report.factors)

    def test_fair_bucket(self):
        report = assess_quality(snapshot(launch_age_days=10, fresh=1, invalid=3), MID_LATITUDE, now=NOW)
        assert report.score == 50
        assert report.quality == "fair"


def test_unavailable_report():
    report = unavailable_report()
    assert report.quality == "poor"
    assert report.factors == ["Unable to assess prediction quality"]
