"""Command-line entry point for the grel curses client."""

from __future__ import annotations

import argparse
import curses
import logging
import sys
from pathlib import Path
from typing import TextIO

from grel_client.config import (
    DEFAULT_SETTINGS_FILE,
    ConfigError,
    Settings,
    configure_logging,
    load_settings,
    persist_settings,
)
from grel_client.layout import Screen
from grel_client.protocol import Name, encode_message
from grel_client.session import Session, run_session
from grel_client.transport import TransportError, open_transport

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grel", description="grel chat terminal client")
    parser.add_argument("name", nargs="?", help="display name to log in with")
    parser.add_argument("-c", "--config", default=None, help="use an alternate settings file")
    parser.add_argument("-a", "--address", default=None, help="connect to the server at HOST:PORT")
    parser.add_argument(
        "-g",
        "--generate-default",
        action="store_true",
        help="write a default settings file and exit",
    )
    return parser


def _run_curses(session: Session, settings: Settings) -> None:
    def _runner(stdscr: "curses.window") -> None:
        screen = Screen(stdscr, settings.roster_width, settings.tick_ms)
        run_session(session, screen)

    # curses.wrapper restores the terminal on every exit path, errors included.
    curses.wrapper(_runner)


def main(argv: list[str] | None = None, output: TextIO | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    stream = output or sys.stdout
    config_path = Path(args.config) if args.config else DEFAULT_SETTINGS_FILE

    if args.generate_default:
        written = persist_settings(Settings(), config_path)
        stream.write(f"Default configuration file written to {written}\n")
        return 0

    if not args.name or not args.name.strip():
        parser.error("a display name is required")

    try:
        settings = load_settings(config_path).with_overrides(address=args.address)
    except ConfigError as exc:
        stream.write(f"Error loading configuration from {config_path}: {exc}\n")
        return 2
    configure_logging(settings)
    logger.debug("starting with %r", settings)

    try:
        transport = open_transport(
            settings.address,
            timeout=settings.connect_timeout_seconds,
            read_size=settings.read_size,
            hello=encode_message(Name(who="", new=args.name)),
        )
    except (TransportError, ValueError) as exc:
        stream.write(f"{exc}\n")
        return 1

    session = Session(
        name=args.name,
        transport=transport,
        cmd_char=settings.cmd_char,
        read_timeout=settings.read_timeout_seconds,
        max_scrollback=settings.max_scrollback,
    )
    try:
        _run_curses(session, settings)
    except KeyboardInterrupt:
        stream.write("Interrupted.\n")
        return 130
    finally:
        transport.close()

    if session.fatal_error is not None:
        stream.write(f"{session.fatal_error}\n")
        return 1
    if session.exit_message:
        stream.write(f"{session.exit_message}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - convenience execution
    raise SystemExit(main())
