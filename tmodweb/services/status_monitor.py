"""Periodic status polling, roster refresh and broadcast trigger."""

import threading

from tmodweb.core.errors import SessionError
from tmodweb.services.output_scraper import extract_players, read_snapshot_lines
from tmodweb.state import STATUS_RUNNING, STATUS_STOPPED, StatusSnapshot

ROSTER_QUERY_COMMAND = "players"


class StatusMonitor:
    """Owns the last scraped roster and the background polling thread.

    Every tick does the full cycle and broadcasts even when nothing changed.
    Both waits (tick period, roster response delay) are on ``_stop_event`` so
    ``stop()`` interrupts them.
    """

    def __init__(
        self,
        *,
        controller,
        log_store,
        hub,
        log_action,
        log_exception,
        interval_seconds=5.0,
        roster_delay_seconds=2.0,
        recent_log_limit=10,
    ):
        self.controller = controller
        self.log_store = log_store
        self.hub = hub
        self.log_action = log_action
        self.log_exception = log_exception
        self.interval_seconds = interval_seconds
        self.roster_delay_seconds = roster_delay_seconds
        self.recent_log_limit = recent_log_limit
        self._roster_lock = threading.Lock()
        self._players = []
        self._stop_event = threading.Event()
        self._start_lock = threading.Lock()
        self._thread = None

    def players(self):
        with self._roster_lock:
            return list(self._players)

    def _set_players(self, players):
        with self._roster_lock:
            self._players = list(players)

    def reset_roster(self):
        self._set_players([])

    def refresh_roster(self):
        """Ask the server for its player list and scrape the answer.

        Sends ``players``, waits for the game to print its reply, takes a
        fresh hardcopy and parses it. Returns the stored roster.
        """
        try:
            self.controller.send_line(ROSTER_QUERY_COMMAND)
        except SessionError as exc:
            self.log_action("roster", command=ROSTER_QUERY_COMMAND, rejection_message=str(exc))
            self.reset_roster()
            return []
        if self._stop_event.wait(self.roster_delay_seconds):
            return self.players()
        if not self.controller.capture_snapshot():
            return self.players()
        players = extract_players(read_snapshot_lines(self.controller.hardcopy_path))
        self._set_players(players)
        return players

    def build_snapshot(self):
        """Build a fresh snapshot; liveness is re-queried every time."""
        if self.controller.is_running():
            status, players = STATUS_RUNNING, self.players()
        else:
            status, players = STATUS_STOPPED, []
        return StatusSnapshot(
            status=status,
            players=players,
            logs=self.log_store.recent(self.recent_log_limit),
        )

    def publish(self):
        """Broadcast the current snapshot to every subscriber."""
        return self.hub.broadcast(self.build_snapshot())

    def tick(self):
        if self.controller.is_running():
            self.controller.capture_snapshot()
            self.refresh_roster()
        else:
            self.reset_roster()
        self.publish()

    def run_forever(self):
        """Tick every ``interval_seconds`` until ``stop()`` is called."""
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as exc:
                self.log_exception("status_monitor", exc)
            self._stop_event.wait(self.interval_seconds)

    def start(self):
        """Start the monitor daemon thread once per process."""
        with self._start_lock:
            if self._thread is not None:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self.run_forever, name="tmodweb-monitor", daemon=True)
            self._thread.start()
        self.log_action("monitor-start", command=f"interval={self.interval_seconds:g}s")

    def stop(self, timeout=None):
        """Signal the loop to finish and wait for the thread to exit."""
        self._stop_event.set()
        with self._start_lock:
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    @property
    def running(self):
        with self._start_lock:
            return self._thread is not None and self._thread.is_alive()
