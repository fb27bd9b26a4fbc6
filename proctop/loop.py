"""Single-threaded cooperative loop: poll input, check timer, mutate, redraw."""

import logging

from .input import ViewState, handle_keypress, reconcile_selection
from .painter import network_summary, status_line

logger = logging.getLogger(__name__)

DEFAULT_POLL_TIMEOUT = 0.1


class EventLoop:
    """Owns the ViewState and drives the table, scheduler and painter.

    ``read_key(timeout)`` must return a keystroke (falsy on timeout); with
    blessed this is ``Terminal.inkey``. Every state change is followed by
    its own recompute and redraw, so a frame never mixes a new snapshot
    with a half-applied keypress.
    """

    def __init__(
        self,
        table,
        scheduler,
        painter,
        read_key,
        view=None,
        poll_timeout=DEFAULT_POLL_TIMEOUT,
    ):
        self.table = table
        self.scheduler = scheduler
        self.painter = painter
        self.view = view if view is not None else ViewState()
        self.rows = []
        self._read_key = read_key
        self._poll_timeout = poll_timeout

    def recompute(self):
        self.rows = self.table.visible_rows(self.view)
        reconcile_selection(self.view, self.rows, self.painter.page_size())
        return self.rows

    def redraw(self):
        current = self.table.current
        interfaces = current.interfaces if current is not None else ()
        self.painter.draw(
            self.rows,
            self.view,
            network=network_summary(self.table.network_rates(), interfaces),
            status=status_line(self.scheduler, len(self.rows), len(self.table.records)),
        )

    def _refresh(self):
        self.scheduler.tick()
        self.recompute()
        self.redraw()

    def step(self):
        """Run one iteration. Returns False once quit has been requested."""
        if self.view.quit_requested:
            return False

        key = self._read_key(self._poll_timeout)
        if key and handle_keypress(key, self.view):
            if self.view.quit_requested:
                return False
            self.recompute()
            self.redraw()

        if self.scheduler.due():
            self._refresh()
        elif self.painter.resized():
            self.recompute()
            self.redraw()
        return True

    def run(self):
        self._refresh()
        while self.step():
            pass
        logger.info("quit requested")
        return 0
