import argparse
import contextlib
import logging
import os
import sys

from blessed import Terminal

from .color_modes import (
    COLOR_MODE_MONO,
    is_truthy_env,
    load_color_index,
    resolve_color_mode,
)
from .config import DEFAULT_CONFIG_PATH, load_config
from .input import ViewState
from .loop import EventLoop
from .models import SORT_KEYS
from .painter import ScreenPainter
from .sampler import create_provider
from .scheduler import RefreshScheduler
from .state import create_app_config
from .table import ProcessTable

logger = logging.getLogger("proctop")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class TerminalError(Exception):
    """The terminal cannot be put into the mode the dashboard needs."""


def _positive_interval(value):
    try:
        interval = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("interval must be an integer (ms)")
    if interval <= 0:
        raise argparse.ArgumentTypeError("interval must be > 0 ms")
    return interval


def build_parser():
    parser = argparse.ArgumentParser(
        description="proctop: interactive process and network monitor"
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="TOML file with refresh_rate and default_sort (default: %(default)s)",
    )
    parser.add_argument(
        "--interval",
        type=_positive_interval,
        default=None,
        help="Refresh interval in milliseconds, overrides refresh_rate",
    )
    parser.add_argument(
        "--sort",
        choices=SORT_KEYS,
        default=None,
        help="Initial sort column, overrides default_sort",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write log messages to this file (nothing is logged otherwise)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Log level for --log-file",
    )
    return parser


def configure_logging(log_file=None, level="WARNING"):
    # The dashboard owns the screen, so never log to the terminal.
    logger.handlers.clear()
    logger.propagate = False
    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(handler)
        logger.setLevel(level)
    else:
        logger.addHandler(logging.NullHandler())


def _create_terminal():
    terminal = Terminal(force_styling=is_truthy_env(os.getenv("FORCE_COLOR")))
    return terminal, resolve_color_mode(os.environ, terminal)


def _stdin_is_tty():
    try:
        return sys.stdin is not None and sys.stdin.isatty()
    except ValueError:
        # stdin was closed
        return False


@contextlib.contextmanager
def _terminal_mode(terminal):
    """Fullscreen, cbreak and hidden cursor, restored on every exit path."""
    with contextlib.ExitStack() as stack:
        try:
            stack.enter_context(terminal.fullscreen())
            stack.enter_context(terminal.cbreak())
            stack.enter_context(terminal.hidden_cursor())
        except OSError as e:
            raise TerminalError("cannot set up the terminal: {}".format(e)) from e
        yield


def _run_dashboard(config):
    terminal, color_mode = _create_terminal()
    if not terminal.is_a_tty or not _stdin_is_tty():
        raise TerminalError(
            "proctop needs an interactive terminal on both stdin and stdout"
        )

    def color_for(cpu_percent):
        return load_color_index(cpu_percent, color_mode, terminal)

    table = ProcessTable()
    provider = create_provider(sample_timeout=config.sample_timeout)
    scheduler = RefreshScheduler(
        provider, table, interval_ms=config.refresh_interval_ms
    )
    painter = ScreenPainter(
        terminal, color_for=None if color_mode == COLOR_MODE_MONO else color_for
    )
    loop = EventLoop(
        table,
        scheduler,
        painter,
        read_key=lambda timeout: terminal.inkey(timeout=timeout),
        view=ViewState(sort_key=config.default_sort),
        poll_timeout=config.poll_timeout,
    )
    logger.info(
        "starting: config %s, refresh %d ms, sort %s, color %s",
        config.config_path,
        config.refresh_interval_ms,
        config.default_sort,
        color_mode,
    )
    try:
        with _terminal_mode(terminal):
            return loop.run()
    finally:
        provider.close()


def main(args=None):
    if args is None:
        args = build_parser().parse_args()
    configure_logging(args.log_file, args.log_level)
    config = create_app_config(args, load_config(args.config))
    try:
        return _run_dashboard(config)
    except KeyboardInterrupt:
        return 0


def cli(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return main(args)
    except Exception as e:
        logger.exception("startup failed")
        print("Error: {}".format(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(cli())
