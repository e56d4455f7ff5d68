"""Tests for vatsim-online data models."""

from datetime import datetime, timezone

import pytest

from vatsim_online.models import (
    Controller,
    FlightPlan,
    Pilot,
    Role,
    Roster,
    parse_roster,
    parse_timestamp,
)


def test_parse_roster_counts_every_user(feed):
    """Test the roster has one record per user entry in the feed."""
    roster = parse_roster(feed)

    assert len(roster) == len(feed["pilots"]) + len(feed["controllers"])
    assert len(roster.pilots) == 2
    assert len(roster.controllers) == 1


def test_parse_roster_preserves_response_order(feed):
    """Test records keep the order of the API response."""
    feed["pilots"].reverse()
    roster = parse_roster(feed)

    assert [p.callsign for p in roster.pilots] == ["DAL456", "UAL123"]
    assert [u.callsign for u in roster.users] == ["DAL456", "UAL123", "BOS_TWR"]


def test_parse_pilot_fields(roster):
    """Test pilot fields are parsed from the feed."""
    pilot = roster.pilots[0]

    assert pilot.cid == 1000001
    assert pilot.callsign == "UAL123"
    assert pilot.name == "A"
    assert pilot.altitude == 35000
    assert pilot.groundspeed == 480
    assert pilot.role is Role.PILOT
    assert pilot.flight_plan is not None
    assert pilot.flight_plan.departure == "KJFK"
    assert pilot.flight_plan.arrival == "KSFO"
    assert pilot.logon_time == datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)


def test_parse_controller_fields(roster):
    """Test controller fields are parsed from the feed."""
    controller = roster.controllers[0]

    assert controller.callsign == "BOS_TWR"
    assert controller.frequency == "128.800"
    assert controller.role is Role.CONTROLLER
    assert controller.text_atis == ("Boston Tower", "Departures on 4R")


def test_pilot_aircraft_prefers_faa_code():
    """Test aircraft falls back from FAA code to short code to unknown."""
    plan = FlightPlan(aircraft_faa="B738/L", aircraft_short="B738")
    assert Pilot(cid=1, callsign="X", name="x", flight_plan=plan).aircraft == "B738/L"

    plan = FlightPlan(aircraft_short="A320")
    assert Pilot(cid=1, callsign="X", name="x", flight_plan=plan).aircraft == "A320"

    assert Pilot(cid=1, callsign="X", name="x", flight_plan=FlightPlan()).aircraft == "???"
    assert Pilot(cid=1, callsign="X", name="x").aircraft == "???"


def test_rating_and_facility_lookup(roster):
    """Test rating and facility ids map to short names."""
    assert roster.rating_short(3) == "S2"
    assert roster.facility_short(4) == "TWR"


def test_unknown_rating_is_question_mark(roster):
    """Test unknown lookup ids render as '?'."""
    assert roster.rating_short(42) == "?"
    assert roster.facility_short(-1) == "?"


def test_network_info(roster):
    """Test the general section is parsed."""
    assert roster.general.connected_clients == 3
    assert roster.general.unique_users == 3
    assert roster.general.update_timestamp is not None
    assert roster.general.update_timestamp.hour == 12


def test_parse_roster_fetched_at(feed):
    """Test fetched_at is recorded."""
    assert parse_roster(feed, fetched_at=123.0).fetched_at == 123.0
    assert parse_roster(feed).fetched_at > 0


def test_parse_roster_missing_optional_sections():
    """Test a feed with only pilots parses with empty defaults."""
    roster = parse_roster({"pilots": [{"cid": 1, "callsign": "N123", "name": "N"}]})

    assert len(roster) == 1
    assert roster.controllers == ()
    assert roster.general.connected_clients == 0
    assert roster.pilots[0].logon_time is None


def test_parse_roster_null_fields_default():
    """Test null numeric fields become zero instead of failing."""
    roster = parse_roster(
        {"pilots": [{"cid": 1, "callsign": "N123", "name": "N", "altitude": None, "latitude": None}]}
    )

    assert roster.pilots[0].altitude == 0
    assert roster.pilots[0].latitude == 0.0


@pytest.mark.parametrize(
    "payload",
    [
        [],
        "not a feed",
        {"general": {}},
        {"pilots": {"cid": 1}},
        {"pilots": ["UAL123"]},
        {"pilots": [{"callsign": "UAL123", "name": "A"}]},
        {"controllers": [{"cid": 1, "name": "A"}]},
    ],
)
def test_parse_roster_rejects_malformed(payload):
    """Test malformed feed documents raise ValueError."""
    with pytest.raises(ValueError):
        parse_roster(payload)


def test_parse_timestamp():
    """Test feed timestamps with seven fractional digits and bad values."""
    parsed = parse_timestamp("2024-03-01T10:30:00.1234567Z")
    assert parsed is not None
    assert parsed.tzinfo is not None
    assert parsed.minute == 30

    assert parse_timestamp("2024-03-01T10:30:00").tzinfo is timezone.utc
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


def test_records_are_frozen(roster):
    """Test that records are immutable (frozen)."""
    pilot = roster.pilots[0]

    try:
        pilot.callsign = "HIJACK"
        raise AssertionError("Should have raised FrozenInstanceError")
    except AttributeError:
        pass  # Expected behavior for frozen dataclass


def test_records_use_slots():
    """Test that records use __slots__."""
    assert not hasattr(Pilot(cid=1, callsign="X", name="x"), "__dict__")
    assert not hasattr(Controller(cid=1, callsign="X_TWR", name="x"), "__dict__")


def test_empty_roster():
    """Test an empty roster has no users."""
    roster = Roster()

    assert len(roster) == 0
    assert roster.users == ()
