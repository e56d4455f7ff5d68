"""Data models for vatsim-online."""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from dateutil.parser import isoparse


class Role(Enum):
    """Kind of connection a user holds on the network."""

    PILOT = "pilot"
    CONTROLLER = "controller"


@dataclass(slots=True, frozen=True)
class FlightPlan:
    """Filed flight plan of a pilot."""

    flight_rules: str = ""
    aircraft: str = ""
    aircraft_faa: str = ""
    aircraft_short: str = ""
    departure: str = ""
    arrival: str = ""
    alternate: str = ""
    cruise_tas: str = ""
    altitude: str = ""
    route: str = ""
    remarks: str = ""


@dataclass(slots=True, frozen=True)
class Pilot:
    """Immutable snapshot of a connected pilot."""

    cid: int
    callsign: str
    name: str
    server: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: int = 0  # Feet
    groundspeed: int = 0  # Knots
    heading: int = 0
    transponder: str = ""
    pilot_rating: int = 0
    flight_plan: FlightPlan | None = None
    logon_time: datetime | None = None

    @property
    def role(self) -> Role:
        return Role.PILOT

    @property
    def aircraft(self) -> str:
        """Aircraft type from the flight plan, preferring the FAA code."""
        if self.flight_plan is None:
            return "???"
        return self.flight_plan.aircraft_faa or self.flight_plan.aircraft_short or "???"


@dataclass(slots=True, frozen=True)
class Controller:
    """Immutable snapshot of a connected air traffic controller."""

    cid: int
    callsign: str
    name: str
    server: str = ""
    frequency: str = ""
    facility: int = 0
    rating: int = 0
    visual_range: int = 0
    text_atis: tuple[str, ...] = ()
    logon_time: datetime | None = None

    @property
    def role(self) -> Role:
        return Role.CONTROLLER


UserRecord = Pilot | Controller


@dataclass(slots=True, frozen=True)
class ReferenceItem:
    """Entry of a feed lookup table (ratings, facilities)."""

    id: int
    short: str
    long: str = ""


@dataclass(slots=True, frozen=True)
class NetworkInfo:
    """General section of the data feed."""

    update_timestamp: datetime | None = None
    connected_clients: int = 0
    unique_users: int = 0


@dataclass(slots=True, frozen=True)
class Roster:
    """
    Snapshot of everyone online at the time of a successful fetch.

    Pilots and controllers keep the order of the API response. A Roster is
    never edited; each refresh produces a new one.
    """

    pilots: tuple[Pilot, ...] = ()
    controllers: tuple[Controller, ...] = ()
    ratings: tuple[ReferenceItem, ...] = ()
    facilities: tuple[ReferenceItem, ...] = ()
    general: NetworkInfo = field(default_factory=NetworkInfo)
    fetched_at: float = 0.0

    def __len__(self) -> int:
        return len(self.pilots) + len(self.controllers)

    @property
    def users(self) -> tuple[UserRecord, ...]:
        """All users, pilots first, in response order."""
        return self.pilots + self.controllers

    def rating_short(self, rating: int) -> str:
        """Short name of a controller rating such as "S1" or "C3"."""
        return _lookup(self.ratings, rating)

    def facility_short(self, facility: int) -> str:
        """Short name of a controller facility such as "TWR" or "CTR"."""
        return _lookup(self.facilities, facility)


def _lookup(items: tuple[ReferenceItem, ...], item_id: int) -> str:
    for item in items:
        if item.id == item_id:
            return item.short
    return "?"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 feed timestamp, returning None when unusable."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = isoparse(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require(entry: Mapping[str, Any], key: str, kind: str) -> Any:
    if key not in entry:
        raise ValueError(f"{kind} entry is missing '{key}'")
    return entry[key]


def _int(value: Any) -> int:
    # Feed fields occasionally arrive as null
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _entries(payload: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    entries = payload.get(key) or []
    if not isinstance(entries, list):
        raise ValueError(f"'{key}' must be a list")
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ValueError(f"'{key}' entries must be objects")
    return entries


def parse_flight_plan(data: Any) -> FlightPlan | None:
    """Build a FlightPlan from its feed object, or None if none was filed."""
    if not isinstance(data, Mapping):
        return None
    return FlightPlan(
        flight_rules=_str(data.get("flight_rules")),
        aircraft=_str(data.get("aircraft")),
        aircraft_faa=_str(data.get("aircraft_faa")),
        aircraft_short=_str(data.get("aircraft_short")),
        departure=_str(data.get("departure")),
        arrival=_str(data.get("arrival")),
        alternate=_str(data.get("alternate")),
        cruise_tas=_str(data.get("cruise_tas")),
        altitude=_str(data.get("altitude")),
        route=_str(data.get("route")),
        remarks=_str(data.get("remarks")),
    )


def parse_pilot(entry: Mapping[str, Any]) -> Pilot:
    """Build a Pilot from a feed entry."""
    return Pilot(
        cid=_int(_require(entry, "cid", "pilot")),
        callsign=_str(_require(entry, "callsign", "pilot")),
        name=_str(_require(entry, "name", "pilot")),
        server=_str(entry.get("server")),
        latitude=_float(entry.get("latitude")),
        longitude=_float(entry.get("longitude")),
        altitude=_int(entry.get("altitude")),
        groundspeed=_int(entry.get("groundspeed")),
        heading=_int(entry.get("heading")),
        transponder=_str(entry.get("transponder")),
        pilot_rating=_int(entry.get("pilot_rating")),
        flight_plan=parse_flight_plan(entry.get("flight_plan")),
        logon_time=parse_timestamp(entry.get("logon_time")),
    )


def parse_controller(entry: Mapping[str, Any]) -> Controller:
    """Build a Controller from a feed entry."""
    atis = entry.get("text_atis") or []
    return Controller(
        cid=_int(_require(entry, "cid", "controller")),
        callsign=_str(_require(entry, "callsign", "controller")),
        name=_str(_require(entry, "name", "controller")),
        server=_str(entry.get("server")),
        frequency=_str(entry.get("frequency")),
        facility=_int(entry.get("facility")),
        rating=_int(entry.get("rating")),
        visual_range=_int(entry.get("visual_range")),
        text_atis=tuple(_str(line) for line in atis) if isinstance(atis, list) else (),
        logon_time=parse_timestamp(entry.get("logon_time")),
    )


def _reference_items(payload: Mapping[str, Any], key: str) -> tuple[ReferenceItem, ...]:
    items = []
    for entry in payload.get(key) or []:
        if isinstance(entry, Mapping) and "id" in entry:
            items.append(
                ReferenceItem(
                    id=_int(entry["id"]),
                    short=_str(entry.get("short")),
                    long=_str(entry.get("long")),
                )
            )
    return tuple(items)


def parse_roster(payload: Any, fetched_at: float | None = None) -> Roster:
    """
    Build a Roster from a decoded v3 data feed document.

    Raises:
        ValueError: If the document does not have the expected shape.
    """
    if not isinstance(payload, Mapping):
        raise ValueError("data feed must be a JSON object")
    if "pilots" not in payload and "controllers" not in payload:
        raise ValueError("data feed has neither 'pilots' nor 'controllers'")

    general = payload.get("general") or {}
    if not isinstance(general, Mapping):
        general = {}

    return Roster(
        pilots=tuple(parse_pilot(entry) for entry in _entries(payload, "pilots")),
        controllers=tuple(parse_controller(entry) for entry in _entries(payload, "controllers")),
        ratings=_reference_items(payload, "ratings"),
        facilities=_reference_items(payload, "facilities"),
        general=NetworkInfo(
            update_timestamp=parse_timestamp(general.get("update_timestamp")),
            connected_clients=_int(general.get("connected_clients")),
            unique_users=_int(general.get("unique_users")),
        ),
        fetched_at=time.time() if fetched_at is None else fetched_at,
    )
