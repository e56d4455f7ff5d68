"""Background refresh loop for vatsim-online."""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from queue import Queue
from typing import Protocol

from vatsim_online.api import FetchError
from vatsim_online.models import Roster

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 15.0
MIN_INTERVAL = 1.0


class RosterSource(Protocol):
    """Anything that can produce a fresh Roster."""

    def fetch(self) -> Roster: ...


class RefreshState(Enum):
    """Phases of a single refresh cycle."""

    IDLE = "idle"
    FETCHING = "fetching"
    UPDATED = "updated"
    FAILED_KEEP_STALE = "failed_keep_stale"


@dataclass(slots=True, frozen=True)
class RefreshResult:
    """Outcome of one refresh attempt."""

    roster: Roster | None  # Current roster; unchanged from before on failure
    error: str | None
    state: RefreshState
    finished_at: float


class RosterRefresher:
    """
    Refresh loop that owns the current Roster.

    Runs in a separate daemon thread, fetching on a fixed interval and pushing
    a RefreshResult to a thread-safe Queue after every attempt. A failed fetch
    keeps the previous Roster.
    """

    def __init__(
        self,
        source: RosterSource,
        update_queue: Queue[RefreshResult],
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        """
        Initialize the RosterRefresher.

        Args:
            source: Client used to fetch the roster.
            update_queue: Thread-safe queue to push results to.
            interval: Seconds between fetches. Default 15.0s.
        """
        self._source = source
        self._queue = update_queue
        self._interval = max(MIN_INTERVAL, interval)
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._roster: Roster | None = None
        self._state = RefreshState.IDLE

    @property
    def interval(self) -> float:
        """Get the refresh interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the refresh interval."""
        self._interval = max(MIN_INTERVAL, value)

    @property
    def roster(self) -> Roster | None:
        """The last successfully fetched roster."""
        return self._roster

    @property
    def state(self) -> RefreshState:
        """Current phase of the refresh cycle."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the refresh thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the refresh thread."""
        if self.is_running:
            return

        # Each run gets its own stop event so a thread abandoned by stop()
        # can never publish alongside its successor
        self._stop_event = threading.Event()
        self._wake_event.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop,
            args=(self._stop_event,),
            daemon=True,
            name="RosterRefresher",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 1.0) -> None:
        """
        Stop the refresh thread.

        A fetch still in flight is abandoned; its result is never published.

        Args:
            timeout: How long to wait for the thread to stop (seconds).
        """
        self._stop_event.set()
        self._wake_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def refresh_now(self) -> None:
        """Cut the current wait short and fetch immediately."""
        self._wake_event.set()

    def refresh_once(self) -> RefreshResult:
        """Run a single refresh cycle and return its result."""
        return self._commit(*self._attempt())

    def _attempt(self) -> tuple[Roster | None, str | None]:
        """Fetch a roster without touching the current one."""
        self._state = RefreshState.FETCHING
        try:
            return self._source.fetch(), None
        except FetchError as exc:
            logger.warning("Refresh failed, keeping previous data: %s", exc)
            return None, str(exc)
        except Exception as exc:
            # Keep the loop alive; the error still reaches the status bar
            logger.exception("Unexpected error during refresh")
            return None, f"Unexpected error: {exc}"

    def _commit(self, roster: Roster | None, error: str | None) -> RefreshResult:
        if error is not None:
            return self._failed(error)

        self._roster = roster
        self._state = RefreshState.UPDATED
        logger.info("Roster updated: %d users online", len(roster))
        return RefreshResult(
            roster=roster,
            error=None,
            state=self._state,
            finished_at=time.time(),
        )

    def _failed(self, error: str) -> RefreshResult:
        self._state = RefreshState.FAILED_KEEP_STALE
        return RefreshResult(
            roster=self._roster,
            error=error,
            state=self._state,
            finished_at=time.time(),
        )

    def _refresh_loop(self, stop_event: threading.Event) -> None:
        """Main loop running in the background thread."""
        while not stop_event.is_set():
            roster, error = self._attempt()
            if stop_event.is_set():
                break
            self._queue.put(self._commit(roster, error))
            self._state = RefreshState.IDLE

            # Wait for the interval, an early refresh request, or stop
            self._wake_event.wait(timeout=self._interval)
            self._wake_event.clear()
