"""Dashing tile layout for the dashboard and the painter that displays it."""

import math

from dashing import Text, VSplit
from dashing.dashing import TBox

from .models import ORDER_DESCENDING, SORT_LABELS
from .utils import convert_to_MB, format_rate, shorten_text

SEARCH_HINT = "Press '/' to search, 'q' to quit"
EMPTY_PLACEHOLDER = "(no matching processes)"

COLUMN_WIDTHS = (10, 25, 10, 15)
COLUMN_TITLES = ("PID", "Name", "CPU %", "Memory MB")

DEFAULT_BASE_COLOR = 7

PANEL_SEARCH = "search"
PANEL_NETWORK = "network"
PANEL_STATUS = "status"

# Screen lines each optional panel takes, borders included.
PANEL_ROWS = {PANEL_SEARCH: 3, PANEL_NETWORK: 3, PANEL_STATUS: 1}
# Optional panels in the order they are given up on short terminals.
DROP_ORDER = (PANEL_NETWORK, PANEL_SEARCH, PANEL_STATUS)
# Process panel border (2) plus its column header.
PROCESS_CHROME = 3
# dashing leaves the bottom line of the terminal unused.
RESERVED_ROWS = 1
# Lines used by everything but process rows when every panel is shown.
CHROME_ROWS = RESERVED_ROWS + PROCESS_CHROME + sum(PANEL_ROWS.values())


def plan_panels(height):
    """Return ``(panels, page_size)`` for a terminal ``height`` lines tall.

    Optional panels are dropped until at least one process row fits.
    """
    usable = max(0, height - RESERVED_ROWS)
    panels = [PANEL_SEARCH, PANEL_NETWORK, PANEL_STATUS]
    for panel in DROP_ORDER:
        if usable - PROCESS_CHROME - sum(PANEL_ROWS[p] for p in panels) >= 1:
            break
        panels.remove(panel)
    page_size = usable - PROCESS_CHROME - sum(PANEL_ROWS[p] for p in panels)
    return panels, max(1, page_size)


def page_size_for(height):
    return plan_panels(height)[1]


class PanelStack(VSplit):
    """VSplit whose items may pin ``height`` in lines; the rest share the remainder."""

    def _display(self, tbox, parent):
        tbox = self._draw_borders_and_title(tbox)
        pinned = sum(getattr(item, "height", None) or 0 for item in self.items)
        flexible = [item for item in self.items if not getattr(item, "height", None)]
        spare = max(0, tbox.h - pinned)

        x = tbox.x
        bottom = tbox.x + tbox.h
        for item in self.items:
            rows = getattr(item, "height", None) or spare // max(1, len(flexible))
            rows = min(rows, bottom - x)
            if rows <= 0:
                break
            item._display(TBox(tbox.t, x, tbox.y, tbox.w, rows), self)
            x += rows


class ProcessListText(Text):
    """Process table tile: bold header, reversed selected row, colored CPU cell."""

    def __init__(self, header, rows, selected=None, **kw):
        super().__init__(header, **kw)
        self.header = header
        self.rows = rows
        self.selected = selected
        self.height = None

    def _render_row(self, term, segments, width, selected):
        if selected:
            text = "".join(text for text, _ in segments)[:width]
            return term.reverse(text.ljust(width))
        parts = []
        remaining = width
        for text, color in segments:
            piece = text[:remaining]
            remaining -= len(piece)
            if color is not None and piece:
                piece = term.color(color) + piece + term.color(self.color)
            parts.append(piece)
        parts.append(" " * remaining)
        return "".join(parts)

    def _display(self, tbox, parent):
        tbox = self._draw_borders_and_title(tbox)
        term = tbox.t
        for dx in range(tbox.h):
            if dx == 0:
                line = term.bold(self.header[: tbox.w].ljust(tbox.w))
            elif dx - 1 < len(self.rows):
                line = self._render_row(
                    term, self.rows[dx - 1], tbox.w, dx - 1 == self.selected
                )
            else:
                line = " " * tbox.w
            print(term.move(tbox.x + dx, tbox.y) + term.color(self.color) + line)


def _fmt_cpu(value):
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "?"
    return "{:.2f}%".format(value)


def _fmt_mem(value):
    if value is None:
        return "?"
    return "{:.2f} MB".format(convert_to_MB(value))


def format_row(record, color_for=None):
    pid_w, name_w, cpu_w, mem_w = COLUMN_WIDTHS
    cpu_color = color_for(record.cpu_percent) if color_for else None
    return (
        (str(record.pid).ljust(pid_w), None),
        (shorten_text(record.name, max_len=name_w - 1).ljust(name_w), None),
        (_fmt_cpu(record.cpu_percent).ljust(cpu_w), cpu_color),
        (_fmt_mem(record.memory_bytes).ljust(mem_w), None),
    )


def format_header():
    return "".join(
        title.ljust(width) for title, width in zip(COLUMN_TITLES, COLUMN_WIDTHS)
    )


def network_summary(rates, interfaces):
    """One-line network panel text: aggregate rate, then per-NIC totals."""
    parts = []
    if rates is not None:
        parts.append(
            "↓{} ↑{}".format(
                format_rate(rates.rx_bytes_per_sec), format_rate(rates.tx_bytes_per_sec)
            )
        )
    for iface in interfaces:
        parts.append(
            "{} ↓{} KB ↑{} KB".format(
                iface.name, iface.rx_bytes // 1024, iface.tx_bytes // 1024
            )
        )
    if not parts:
        return "(no network data yet)"
    return " | ".join(parts)


def status_line(scheduler, row_count, total_count):
    parts = [
        "refresh {} ms".format(int(scheduler.interval_s * 1000)),
        "{}/{} processes".format(row_count, total_count),
    ]
    if scheduler.last_error:
        parts.append("stale: {}".format(scheduler.last_error))
    parts.append("c/m/n sort  r reverse  ↑/↓ move")
    return " | ".join(parts)


def _process_title(rows, view):
    order = "desc" if view.sort_order == ORDER_DESCENDING else "asc"
    title = "Processes (sort: {} {}".format(SORT_LABELS[view.sort_key], order)
    if view.search_query:
        title += ", filter: {}".format(shorten_text(view.search_query, max_len=20))
    if rows:
        title += ", {}/{}".format(view.selected_index + 1, len(rows))
    return title + ")"


def _clip(text, width):
    # dashing's Text needs at least one line and does not clip.
    return text[: max(0, width)] or " "


def _pinned(tile, rows):
    tile.height = rows
    return tile


def build_layout(
    rows,
    view,
    network="",
    status="",
    width=80,
    height=24,
    color_for=None,
    base_color=DEFAULT_BASE_COLOR,
):
    """Build the dashing tile tree for the current rows and view state."""
    panels, page_size = plan_panels(height)
    inner = width - 2

    window = rows[view.scroll_offset : view.scroll_offset + page_size]
    if window:
        table_rows = [format_row(record, color_for) for record in window]
        selected = view.selected_index - view.scroll_offset
    else:
        table_rows = [((EMPTY_PLACEHOLDER, None),)]
        selected = None
    process_panel = ProcessListText(
        format_header(),
        table_rows,
        selected=selected,
        color=base_color,
        border_color=base_color,
        title=_clip(_process_title(rows, view), inner - 2),
    )

    items = []
    if PANEL_SEARCH in panels:
        if view.search_active:
            search_text = "Search: {}".format(view.search_query)
        else:
            search_text = SEARCH_HINT
        items.append(
            _pinned(
                Text(
                    _clip(search_text, inner),
                    color=base_color,
                    border_color=base_color,
                    title="Search",
                ),
                PANEL_ROWS[PANEL_SEARCH],
            )
        )
    if PANEL_NETWORK in panels:
        items.append(
            _pinned(
                Text(
                    _clip(network, inner),
                    color=base_color,
                    border_color=base_color,
                    title="Network",
                ),
                PANEL_ROWS[PANEL_NETWORK],
            )
        )
    items.append(process_panel)
    if PANEL_STATUS in panels:
        items.append(
            _pinned(
                Text(_clip(status, width), color=base_color),
                PANEL_ROWS[PANEL_STATUS],
            )
        )
    return PanelStack(*items)


class ScreenPainter:
    """Draw frames on a blessed Terminal. Never touches monitoring state."""

    def __init__(self, terminal, color_for=None, base_color=DEFAULT_BASE_COLOR):
        self._terminal = terminal
        self._color_for = color_for
        self._base_color = base_color
        self._last_size = None

    def size(self):
        return self._terminal.width, self._terminal.height

    def page_size(self):
        return page_size_for(self._terminal.height)

    def resized(self):
        return self._last_size is not None and self.size() != self._last_size

    def draw(self, rows, view, network="", status=""):
        term = self._terminal
        width, height = self.size()
        ui = build_layout(
            rows,
            view,
            network,
            status,
            width=width,
            height=height,
            color_for=self._color_for,
            base_color=self._base_color,
        )
        if (width, height) != self._last_size:
            print(term.home + term.clear, end="")
        # dashing draws on the terminal cached on the root tile.
        ui._terminal = term
        ui.display()
        self._last_size = (width, height)
