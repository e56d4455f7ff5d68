"""vatsim-online - Main Textual application."""

import logging
from datetime import datetime, timezone
from queue import Empty, Queue

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Input, Static

from vatsim_online.api import VatsimClient
from vatsim_online.config import Config
from vatsim_online.models import Roster, UserRecord
from vatsim_online.refresher import RefreshResult, RosterRefresher, RosterSource
from vatsim_online.state import UIState, ViewData, build_view, describe_user, visible_users

logger = logging.getLogger(__name__)

HELP_TEXT = """\
Navigation
  up / down        move one row (wraps around)
  pgup / pgdn      move ten rows
  home / end       first / last row
  tab              switch pilots <-> controllers
  enter            details of the selected row

Search
  /                filter by callsign or name
  escape           clear the filter / close a popup

Other
  s                cycle sort (api, callsign, name, online)
  r                refresh now
  ? / h            toggle this help
  q / ctrl+c       quit
"""


class TerminalError(Exception):
    """Raised when the terminal interface cannot start or ends abnormally."""


class NetworkHeader(Static):
    """Header widget showing network-wide statistics."""

    DEFAULT_CSS = """
    NetworkHeader {
        height: auto;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize NetworkHeader."""
        super().__init__(*args, **kwargs)
        self._connected_clients: int = 0
        self._unique_users: int = 0
        self._feed_updated: datetime | None = None
        self._stale: bool = False

    def on_mount(self) -> None:
        self.update(self._get_summary())

    def update_summary(self, roster: Roster | None, stale: bool) -> None:
        """Update the header from the current roster."""
        if roster is not None:
            self._connected_clients = roster.general.connected_clients
            self._unique_users = roster.general.unique_users
            self._feed_updated = roster.general.update_timestamp
        self._stale = stale
        self.update(self._get_summary())

    def _get_summary(self) -> str:
        if self._feed_updated is None and not self._connected_clients:
            return "Connecting to VATSIM..."
        updated = self._feed_updated.strftime("%H:%M:%SZ") if self._feed_updated else "?"
        summary = (
            f"[b]VATSIM[/b]  clients: {self._connected_clients}"
            f"  unique users: {self._unique_users}"
            f"  feed updated: {updated}"
        )
        if self._stale:
            summary += "  [yellow](stale)[/yellow]"
        return summary


class StatusBar(Static):
    """One-line status: counts, last update and the last fetch error."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        padding: 0 1;
        background: $panel;
    }

    StatusBar.stale {
        background: $warning;
    }
    """

    def show_status(self, view: ViewData) -> None:
        self.update(Text(view.status))
        self.set_class(view.is_stale, "stale")


class RosterDataTable(DataTable, can_focus=False):
    """Row table driven entirely by the app's key bindings."""


class RosterTable(Container):
    """Container for the roster data table."""

    DEFAULT_CSS = """
    RosterTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize RosterTable."""
        super().__init__(*args, **kwargs)
        self._headers: tuple[str, ...] = ()

    def compose(self) -> ComposeResult:
        """Compose the roster table."""
        yield RosterDataTable(id="roster-table", zebra_stripes=True)

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#roster-table", RosterDataTable)
        table.cursor_type = "row"

    def show(self, view: ViewData) -> None:
        """Replace the table contents with the rows of a view."""
        table = self.query_one("#roster-table", RosterDataTable)
        self.border_title = view.title

        if view.headers != self._headers:
            table.clear(columns=True)
            table.add_columns(*view.headers)
            self._headers = view.headers
        else:
            table.clear()

        # Text cells so callsigns and names are never read as markup
        table.add_rows(tuple(Text(cell) for cell in row) for row in view.rows)
        if view.rows:
            table.move_cursor(row=view.selected, animate=False)


class HelpScreen(ModalScreen):
    """Overlay listing the key bindings."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    #help {
        width: 60;
        height: auto;
        padding: 1 2;
        border: thick $accent;
        background: $surface;
    }
    """

    BINDINGS = [
        ("escape", "close", "Close"),
        ("question_mark", "close", "Close"),
        ("h", "close", "Close"),
        ("enter", "close", "Close"),
        ("q", "app.quit", "Quit"),
    ]

    def compose(self) -> ComposeResult:
        yield Static(Text(HELP_TEXT), id="help")

    def action_close(self) -> None:
        self.dismiss()


class DetailScreen(ModalScreen):
    """Popup with everything known about one user."""

    DEFAULT_CSS = """
    DetailScreen {
        align: center middle;
    }

    #detail {
        width: 80%;
        max-height: 80%;
        height: auto;
        padding: 1 2;
        border: thick $accent;
        background: $surface;
    }
    """

    BINDINGS = [
        ("escape", "close", "Close"),
        ("enter", "close", "Close"),
        ("q", "app.quit", "Quit"),
    ]

    def __init__(self, user: UserRecord, roster: Roster) -> None:
        super().__init__()
        self._user = user
        self._roster = roster

    def compose(self) -> ComposeResult:
        lines = describe_user(self._user, self._roster, datetime.now(timezone.utc))
        with VerticalScroll(id="detail"):
            yield Static(Text("\n".join(lines)))

    def action_close(self) -> None:
        self.dismiss()


class VatsimOnlineApp(App):
    """Main vatsim-online application."""

    TITLE = "vatsim-online"
    SUB_TITLE = "Who is online on VATSIM"
    # The filter box only takes focus when opened with /
    AUTO_FOCUS = None

    CSS = """
    Screen {
        layout: vertical;
    }

    #filter {
        dock: bottom;
        display: none;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
        Binding("tab", "switch_tab", "Pilots/Controllers", priority=True),
        Binding("slash", "filter", "Filter"),
        Binding("escape", "escape", "Clear", show=False, priority=True),
        Binding("question_mark", "toggle_help", "Help"),
        Binding("h", "toggle_help", "Help", show=False),
        Binding("enter", "details", "Details"),
        Binding("s", "sort", "Sort"),
        Binding("r", "refresh", "Refresh"),
        Binding("down", "down", show=False),
        Binding("up", "up", show=False),
        Binding("pagedown", "page_down", show=False),
        Binding("pageup", "page_up", show=False),
        Binding("home", "home", show=False),
        Binding("end", "end", show=False),
    ]

    def __init__(self, config: Config | None = None, client: RosterSource | None = None) -> None:
        """Initialize the VatsimOnlineApp."""
        super().__init__()
        self._settings = config or Config()
        self._client = client or VatsimClient(
            status_url=self._settings.status_url,
            data_url=self._settings.data_url,
            timeout=self._settings.request_timeout,
        )
        self._update_queue: Queue[RefreshResult] = Queue()
        self._refresher = RosterRefresher(
            self._client,
            self._update_queue,
            interval=self._settings.refresh_interval,
        )
        self.ui = UIState()
        self._roster: Roster | None = None
        self._last_error: str | None = None
        self._frame: ViewData | None = None

    @property
    def roster(self) -> Roster | None:
        """The roster currently on display."""
        return self._roster

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def view(self) -> ViewData | None:
        """The last frame drawn."""
        return self._frame

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield NetworkHeader(id="network-header")
        yield RosterTable()
        yield StatusBar(id="status-bar")
        yield Input(placeholder="Filter by callsign or name", id="filter")
        yield Footer()

    def on_mount(self) -> None:
        """Start the refresh loop when the app is mounted."""
        self._refresher.start()
        # Poll the queue for new rosters without blocking input
        self.set_interval(0.25, self._check_for_updates)
        self.redraw()

    def _check_for_updates(self) -> None:
        """Check the queue for refresh results and redraw."""
        result = None
        while True:
            try:
                result = self._update_queue.get_nowait()
            except Empty:
                break

        if result is not None:
            self.apply_result(result)

    def apply_result(self, result: RefreshResult) -> None:
        """Take over the outcome of a refresh attempt and redraw."""
        if result.roster is not None:
            self._roster = result.roster
        if result.error and result.error != self._last_error:
            self.notify(result.error, title="Fetch failed", severity="warning")
        self._last_error = result.error
        self.ui.clamp(len(visible_users(self._roster, self.ui)))
        self.redraw()

    def redraw(self) -> None:
        """Render the current roster, interface state and error."""
        self._frame = build_view(self._roster, self.ui, self._last_error)
        self.query_one("#network-header", NetworkHeader).update_summary(
            self._roster, self._frame.is_stale
        )
        self.query_one(RosterTable).show(self._frame)
        self.query_one("#status-bar", StatusBar).show_status(self._frame)

    @property
    def _row_count(self) -> int:
        return len(self._frame.rows) if self._frame else 0

    @property
    def _overlay_open(self) -> bool:
        return isinstance(self.screen, ModalScreen)

    def action_down(self) -> None:
        self.ui.down(self._row_count)
        self.redraw()

    def action_up(self) -> None:
        self.ui.up(self._row_count)
        self.redraw()

    def action_page_down(self) -> None:
        self.ui.page_down(self._row_count)
        self.redraw()

    def action_page_up(self) -> None:
        self.ui.page_up()
        self.redraw()

    def action_home(self) -> None:
        self.ui.home()
        self.redraw()

    def action_end(self) -> None:
        self.ui.end(self._row_count)
        self.redraw()

    def action_switch_tab(self) -> None:
        """Switch between the pilots and controllers tables."""
        if self._overlay_open:
            return
        self.ui.switch_tab()
        self.redraw()

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        new_sort_key = self.ui.cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")
        self.redraw()

    def action_refresh(self) -> None:
        self._refresher.refresh_now()

    def action_filter(self) -> None:
        """Show and focus the filter box."""
        filter_input = self.query_one("#filter", Input)
        filter_input.display = True
        filter_input.focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Re-filter on every keystroke."""
        self.ui.set_filter(event.value)
        self.redraw()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Keep the filter but hand the keys back to the table."""
        if not event.value:
            event.input.display = False
        self.set_focus(None)

    def action_escape(self) -> None:
        """Close the top overlay, or clear the filter."""
        if self._overlay_open:
            self.screen.dismiss()
            return
        filter_input = self.query_one("#filter", Input)
        filter_input.value = ""
        filter_input.display = False
        self.set_focus(None)
        self.ui.set_filter("")
        self.redraw()

    def action_toggle_help(self) -> None:
        """Open the help overlay; it closes itself on the same keys."""
        if self.ui.show_help:
            return
        self.ui.show_help = True
        self.push_screen(HelpScreen(), self._help_closed)

    def _help_closed(self, _result: object = None) -> None:
        self.ui.show_help = False

    def action_details(self) -> None:
        """Open the detail popup for the selected row."""
        if self._frame is None or self._frame.selected_user is None or self._roster is None:
            return
        self.ui.show_detail = True
        self.push_screen(DetailScreen(self._frame.selected_user, self._roster), self._detail_closed)

    def _detail_closed(self, _result: object = None) -> None:
        self.ui.show_detail = False

    def stop_refresh(self) -> None:
        """Stop the refresh loop, abandoning any fetch in flight."""
        self._refresher.stop(timeout=0.5)

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        logger.info("Quit requested")
        self.stop_refresh()
        self.exit()
