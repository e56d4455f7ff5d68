"""Shared fixtures for vatsim-online tests."""

import copy
import threading

import pytest

from vatsim_online.api import FetchError
from vatsim_online.models import Roster, parse_roster

FEED = {
    "general": {
        "version": 3,
        "reload": 1,
        "update": "20240301120000",
        "update_timestamp": "2024-03-01T12:00:00.1234567Z",
        "connected_clients": 3,
        "unique_users": 3,
    },
    "pilots": [
        {
            "cid": 1000001,
            "name": "A",
            "callsign": "UAL123",
            "server": "USA-EAST",
            "pilot_rating": 0,
            "latitude": 40.6413,
            "longitude": -73.7781,
            "altitude": 35000,
            "groundspeed": 480,
            "transponder": "2200",
            "heading": 270,
            "qnh_i_hg": 29.92,
            "qnh_mb": 1013,
            "flight_plan": {
                "flight_rules": "I",
                "aircraft": "B738/M-SDE2E3FGHIRWXY/LB1",
                "aircraft_faa": "B738/L",
                "aircraft_short": "B738",
                "departure": "KJFK",
                "arrival": "KSFO",
                "alternate": "KOAK",
                "cruise_tas": "450",
                "altitude": "35000",
                "deptime": "1130",
                "enroute_time": "0600",
                "fuel_time": "0730",
                "remarks": "/v/",
                "route": "DCT GREKI J584 ...",
                "revision_id": 1,
                "assigned_transponder": "2200",
            },
            "logon_time": "2024-03-01T10:30:00.0000000Z",
            "last_updated": "2024-03-01T11:59:58.0000000Z",
        },
        {
            "cid": 1000002,
            "name": "B",
            "callsign": "DAL456",
            "server": "GERMANY",
            "pilot_rating": 1,
            "latitude": 33.6407,
            "longitude": -84.4277,
            "altitude": 12,
            "groundspeed": 0,
            "transponder": "1200",
            "heading": 90,
            "flight_plan": None,
            "logon_time": "2024-03-01T11:45:00Z",
            "last_updated": "2024-03-01T11:59:58Z",
        },
    ],
    "controllers": [
        {
            "cid": 1000003,
            "name": "Carol Controller",
            "callsign": "BOS_TWR",
            "frequency": "128.800",
            "facility": 4,
            "rating": 3,
            "server": "USA-EAST",
            "visual_range": 50,
            "text_atis": ["Boston Tower", "Departures on 4R"],
            "last_updated": "2024-03-01T11:59:58Z",
            "logon_time": "2024-03-01T09:00:00Z",
        }
    ],
    "atis": [],
    "servers": [],
    "prefiles": [],
    "facilities": [
        {"id": 0, "short": "OBS", "long": "Observer"},
        {"id": 4, "short": "TWR", "long": "Tower"},
        {"id": 6, "short": "CTR", "long": "Enroute"},
    ],
    "ratings": [
        {"id": 1, "short": "OBS", "long": "Observer"},
        {"id": 3, "short": "S2", "long": "Tower Trainee"},
        {"id": 5, "short": "C1", "long": "Enroute Controller"},
    ],
    "pilot_ratings": [],
}


@pytest.fixture
def feed() -> dict:
    """A fresh copy of a small v3 data feed document."""
    return copy.deepcopy(FEED)


@pytest.fixture
def roster(feed) -> Roster:
    return parse_roster(feed, fetched_at=1709294400.0)


class FakeClient:
    """Stand-in for VatsimClient returning queued outcomes."""

    def __init__(self, *outcomes) -> None:
        self._outcomes = list(outcomes)
        self._last = outcomes[-1] if outcomes else Roster()
        self.calls = 0
        self.called = threading.Event()

    def fetch(self) -> Roster:
        self.calls += 1
        self.called.set()
        outcome = self._outcomes.pop(0) if self._outcomes else self._last
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_client(roster) -> FakeClient:
    return FakeClient(roster)


@pytest.fixture
def failing_client() -> FakeClient:
    return FakeClient(FetchError("Got status 503 from https://data.vatsim.net/v3/vatsim-data.json"))
