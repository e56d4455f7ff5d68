"""Interface state and view building for vatsim-online."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from vatsim_online.models import Controller, Pilot, Roster, UserRecord

PAGE_SIZE = 10


class Tab(Enum):
    """Tables the interface can show."""

    PILOTS = "pilots"
    CONTROLLERS = "controllers"


class SortKey(Enum):
    """Sort keys for the roster table."""

    API = "api"
    CALLSIGN = "callsign"
    NAME = "name"
    ONLINE = "online"


PILOT_HEADERS = ("Callsign", "Name", "Aircraft", "Dep", "Arr", "Alt", "GS", "Online")
CONTROLLER_HEADERS = ("Callsign", "Name", "Frequency", "Rating", "Facility", "Online")


def _initial_selection() -> dict[Tab, int]:
    return {tab: 0 for tab in Tab}


@dataclass
class UIState:
    """
    Transient interface state, mutated by key events.

    Navigation methods take the number of rows currently displayed so the
    selection always stays inside the visible subset.
    """

    tab: Tab = Tab.PILOTS
    selected: dict[Tab, int] = field(default_factory=_initial_selection)
    filter_text: str = ""
    sort_key: SortKey = SortKey.API
    show_help: bool = False
    show_detail: bool = False

    @property
    def current(self) -> int:
        """Selected row of the active tab."""
        return self.selected[self.tab]

    def _select(self, row: int) -> None:
        self.selected[self.tab] = row

    def switch_tab(self) -> Tab:
        """Switch between pilots and controllers, resetting both selections."""
        self.tab = Tab.CONTROLLERS if self.tab is Tab.PILOTS else Tab.PILOTS
        self.selected = _initial_selection()
        return self.tab

    def down(self, count: int) -> None:
        """Move down one row, wrapping to the top."""
        if count <= 0:
            self._select(0)
            return
        self._select(0 if self.current >= count - 1 else self.current + 1)

    def up(self, count: int) -> None:
        """Move up one row, wrapping to the bottom."""
        if count <= 0:
            self._select(0)
            return
        self._select(count - 1 if self.current == 0 else min(self.current, count) - 1)

    def page_down(self, count: int) -> None:
        """Move down a page without wrapping."""
        self._select(max(0, min(self.current + PAGE_SIZE, count - 1)))

    def page_up(self) -> None:
        """Move up a page without wrapping."""
        self._select(max(0, self.current - PAGE_SIZE))

    def home(self) -> None:
        self._select(0)

    def end(self, count: int) -> None:
        self._select(max(0, count - 1))

    def clamp(self, count: int) -> None:
        """Keep the selection inside a table of ``count`` rows."""
        self._select(max(0, min(self.current, count - 1)))

    def set_filter(self, text: str) -> None:
        """Replace the filter text and go back to the first match."""
        if text != self.filter_text:
            self.filter_text = text
            self.selected = _initial_selection()

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        current_index = keys.index(self.sort_key)
        self.sort_key = keys[(current_index + 1) % len(keys)]
        return self.sort_key


def filter_users(users: Iterable[UserRecord], text: str) -> list[UserRecord]:
    """Users whose callsign or name contains ``text``, ignoring case."""
    needle = text.strip().casefold()
    if not needle:
        return list(users)
    return [
        user
        for user in users
        if needle in user.callsign.casefold() or needle in user.name.casefold()
    ]


def sort_users(users: list[UserRecord], key: SortKey) -> list[UserRecord]:
    """Sort the displayed users; the API order is kept for SortKey.API."""
    if key is SortKey.CALLSIGN:
        return sorted(users, key=lambda u: u.callsign.upper())
    if key is SortKey.NAME:
        return sorted(users, key=lambda u: u.name.casefold())
    if key is SortKey.ONLINE:
        # Longest online first, unknown logon times last
        return sorted(
            users,
            key=lambda u: (u.logon_time is None, u.logon_time.timestamp() if u.logon_time else 0.0),
        )
    return list(users)


def visible_users(roster: Roster | None, ui: UIState) -> list[UserRecord]:
    """The filtered and sorted users of the active tab."""
    if roster is None:
        return []
    users = roster.pilots if ui.tab is Tab.PILOTS else roster.controllers
    return sort_users(filter_users(users, ui.filter_text), ui.sort_key)


def format_online(logon_time: datetime | None, now: datetime) -> str:
    """Format time since logon as e.g. "2h 05m"."""
    if logon_time is None:
        return "-"
    minutes = max(0, int((now - logon_time).total_seconds() // 60))
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m"


def pilot_row(pilot: Pilot, now: datetime) -> tuple[str, ...]:
    plan = pilot.flight_plan
    return (
        pilot.callsign,
        pilot.name,
        pilot.aircraft,
        plan.departure if plan else "",
        plan.arrival if plan else "",
        str(pilot.altitude),
        str(pilot.groundspeed),
        format_online(pilot.logon_time, now),
    )


def controller_row(controller: Controller, roster: Roster, now: datetime) -> tuple[str, ...]:
    return (
        controller.callsign,
        controller.name,
        controller.frequency,
        roster.rating_short(controller.rating),
        roster.facility_short(controller.facility),
        format_online(controller.logon_time, now),
    )


def describe_user(user: UserRecord, roster: Roster, now: datetime) -> list[str]:
    """Detail lines for the inspection popup of one user."""
    lines = [
        f"Callsign: {user.callsign}",
        f"Name:     {user.name}",
        f"CID:      {user.cid}",
        f"Server:   {user.server or '-'}",
        f"Online:   {format_online(user.logon_time, now)}",
    ]
    if isinstance(user, Pilot):
        lines += [
            f"Position: {user.latitude:.4f}, {user.longitude:.4f}",
            f"Altitude: {user.altitude} ft  GS: {user.groundspeed} kt  HDG: {user.heading:03d}",
            f"Squawk:   {user.transponder or '-'}",
        ]
        plan = user.flight_plan
        if plan is None:
            lines.append("No flight plan filed")
        else:
            lines += [
                "",
                f"Flight plan ({plan.flight_rules or '?'}): {plan.departure} -> {plan.arrival}"
                + (f" (alt {plan.alternate})" if plan.alternate else ""),
                f"Aircraft: {plan.aircraft or user.aircraft}",
                f"Cruise:   {plan.altitude or '-'} at {plan.cruise_tas or '-'} kt",
                f"Route:    {plan.route or '-'}",
                f"Remarks:  {plan.remarks or '-'}",
            ]
    else:
        lines += [
            f"Frequency: {user.frequency}",
            f"Rating:    {roster.rating_short(user.rating)}",
            f"Facility:  {roster.facility_short(user.facility)}",
            f"Range:     {user.visual_range} nm",
        ]
        if user.text_atis:
            lines += ["", *user.text_atis]
    return lines


@dataclass(slots=True, frozen=True)
class ViewData:
    """Everything the renderer needs to draw one frame."""

    tab: Tab
    title: str
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    selected: int
    selected_user: UserRecord | None
    status: str
    is_stale: bool
    show_help: bool
    show_detail: bool


def build_status(roster: Roster | None, ui: UIState, shown: int, last_error: str | None) -> str:
    """Status line text for the current frame."""
    if roster is None:
        parts = ["Waiting for VATSIM data..."]
    else:
        updated = datetime.fromtimestamp(roster.fetched_at).strftime("%H:%M:%S")
        parts = [
            f"{len(roster.pilots)} pilots, {len(roster.controllers)} controllers",
            f"showing {shown}",
            f"sort: {ui.sort_key.value}",
            f"updated {updated}",
        ]
    if ui.filter_text:
        parts.append(f"filter: {ui.filter_text!r}")
    if last_error:
        parts.append(f"STALE: {last_error}")
    return " | ".join(parts)


def build_view(
    roster: Roster | None,
    ui: UIState,
    last_error: str | None,
    now: datetime | None = None,
) -> ViewData:
    """
    Build the frame for a roster, interface state and last fetch error.

    Does not modify any of its inputs; a selection past the end of the
    displayed rows is shown on the last row.
    """
    now = now or datetime.now(timezone.utc)
    users = visible_users(roster, ui)
    selected = max(0, min(ui.current, len(users) - 1))

    if ui.tab is Tab.PILOTS:
        headers = PILOT_HEADERS
        rows = tuple(pilot_row(user, now) for user in users)
        title = f"Pilots ({len(users)})"
    else:
        headers = CONTROLLER_HEADERS
        rows = tuple(controller_row(user, roster, now) for user in users)
        title = f"Controllers ({len(users)})"

    return ViewData(
        tab=ui.tab,
        title=title,
        headers=headers,
        rows=rows,
        selected=selected,
        selected_user=users[selected] if users else None,
        status=build_status(roster, ui, len(users), last_error),
        is_stale=last_error is not None,
        show_help=ui.show_help,
        show_detail=ui.show_detail,
    )
