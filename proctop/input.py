"""Interactive keyboard input handling for the dashboard."""

from dataclasses import dataclass
from typing import Optional

from .models import (
    ORDER_DESCENDING,
    SORT_CPU,
    SORT_MEMORY,
    SORT_NAME,
    toggle_order,
)

KEY_UP = "up"
KEY_DOWN = "down"
KEY_ESCAPE = "escape"
KEY_BACKSPACE = "backspace"
KEY_ENTER = "enter"

_NAMED_KEYS = {
    "KEY_UP": KEY_UP,
    "KEY_DOWN": KEY_DOWN,
    "KEY_ESCAPE": KEY_ESCAPE,
    "KEY_BACKSPACE": KEY_BACKSPACE,
    "KEY_DELETE": KEY_BACKSPACE,
    "KEY_ENTER": KEY_ENTER,
}
_CONTROL_CHARS = {
    "\x1b": KEY_ESCAPE,
    "\x7f": KEY_BACKSPACE,
    "\x08": KEY_BACKSPACE,
    "\r": KEY_ENTER,
    "\n": KEY_ENTER,
}
_SORT_BINDINGS = {"c": SORT_CPU, "m": SORT_MEMORY, "n": SORT_NAME}


@dataclass
class ViewState:
    """Mutable UI state owned by the event loop."""

    sort_key: str = SORT_CPU
    sort_order: str = ORDER_DESCENDING
    search_active: bool = False
    search_query: str = ""
    selected_index: int = 0
    scroll_offset: int = 0
    # Identity of the highlighted process; None lets the index pick it.
    selected_pid: Optional[int] = None
    quit_requested: bool = False


def classify_key(key):
    """Map a blessed Keystroke (or plain str) to ``(kind, value)``.

    ``kind`` is ``"special"`` with one of the KEY_* constants above,
    ``"text"`` with a single printable character, or ``None``.
    """
    if not key:
        return None, None
    name = getattr(key, "name", None)
    if name in _NAMED_KEYS:
        return "special", _NAMED_KEYS[name]
    ch = str(key)
    if ch in _CONTROL_CHARS:
        return "special", _CONTROL_CHARS[ch]
    if len(ch) == 1 and ch.isprintable():
        return "text", ch
    return None, None


def _move_selection(view, delta):
    view.selected_index = max(0, view.selected_index + delta)
    view.selected_pid = None


def handle_keypress(key, view):
    """Apply one keypress to ``view``. Returns True if the state changed."""
    kind, value = classify_key(key)
    if kind is None:
        return False

    if kind == "text" and value == "q":
        view.quit_requested = True
        return True

    if kind == "special" and value in (KEY_UP, KEY_DOWN):
        _move_selection(view, -1 if value == KEY_UP else 1)
        return True

    if view.search_active:
        if kind == "text":
            view.search_query += value
            return True
        if value == KEY_BACKSPACE:
            if not view.search_query:
                return False
            view.search_query = view.search_query[:-1]
            return True
        if value == KEY_ESCAPE:
            view.search_active = False
            view.search_query = ""
            return True
        # Enter and anything else are swallowed while typing.
        return False

    if kind != "text":
        return False
    if value == "/":
        view.search_active = True
        view.search_query = ""
        return True
    if value in _SORT_BINDINGS:
        sort_key = _SORT_BINDINGS[value]
        if sort_key == view.sort_key:
            return False
        view.sort_key = sort_key
        return True
    if value == "r":
        view.sort_order = toggle_order(view.sort_order)
        return True
    return False


def scroll_into_view(view, row_count, page_size):
    """Adjust ``scroll_offset`` so the selected row is inside the window."""
    page_size = max(1, int(page_size))
    if view.selected_index < view.scroll_offset:
        view.scroll_offset = view.selected_index
    elif view.selected_index >= view.scroll_offset + page_size:
        view.scroll_offset = view.selected_index - page_size + 1
    # Do not leave blank rows at the bottom when the list shrinks.
    view.scroll_offset = max(0, min(view.scroll_offset, row_count - page_size))


def reconcile_selection(view, rows, page_size):
    """Re-resolve the selection against freshly computed visible rows.

    The selection follows the process, not the screen position: if the
    selected pid is still visible its new index is used, otherwise the
    selection and scroll reset to the top.
    """
    if not rows:
        view.selected_index = 0
        view.scroll_offset = 0
        view.selected_pid = None
        return

    if view.selected_pid is not None:
        for index, record in enumerate(rows):
            if record.pid == view.selected_pid:
                view.selected_index = index
                break
        else:
            view.selected_index = 0
            view.scroll_offset = 0
    else:
        view.selected_index = min(max(0, view.selected_index), len(rows) - 1)

    view.selected_pid = rows[view.selected_index].pid
    scroll_into_view(view, len(rows), page_size)
