"""Command line entry point for vatsim-online."""

import argparse
import logging
import sys
from collections.abc import Mapping, Sequence

from vatsim_online.app import TerminalError, VatsimOnlineApp
from vatsim_online.config import Config, defaults_from_env, positive_float
from vatsim_online.log import configure_logging

logger = logging.getLogger(__name__)


def _seconds(value: str) -> float:
    try:
        return positive_float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vatsim-online",
        description="Browse the pilots and controllers currently online on VATSIM.",
    )
    p.add_argument("-i", "--interval", type=_seconds, dest="refresh_interval", help="Seconds between refreshes (default 15).")
    p.add_argument("-t", "--timeout", type=_seconds, dest="request_timeout", help="HTTP request timeout in seconds (default 10).")
    p.add_argument("--status-url", help="VATSIM status document used to discover the data feed.")
    p.add_argument("--data-url", help="Use this v3 data feed URL instead of asking the status document.")
    p.add_argument("--log-file", help="Log file path, or '-' to disable logging (default vatsim_online.log).")
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default INFO).",
    )
    return p


def parse_config(argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """Build the configuration from environment defaults and command line flags."""
    parser = build_parser()
    try:
        settings = defaults_from_env(environ)
    except ValueError as exc:
        parser.error(f"invalid environment setting: {exc}")

    args = parser.parse_args(argv)
    for key, value in vars(args).items():
        if value is not None:
            settings[key] = value

    try:
        return Config(**settings)
    except ValueError as exc:
        parser.error(str(exc))


def run_app(app: VatsimOnlineApp) -> None:
    """
    Run the TUI until it exits.

    Raises:
        TerminalError: If the interface failed to start or exited with an error.
    """
    try:
        app.run()
    except Exception as exc:
        raise TerminalError(f"terminal interface failed: {exc}") from exc
    finally:
        app.stop_refresh()

    if app.return_code:
        raise TerminalError(f"terminal interface exited with code {app.return_code}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the vatsim-online application."""
    config = parse_config(argv)
    try:
        configure_logging(config.log_file, config.log_level)
    except OSError as exc:
        print(f"vatsim-online: cannot open log file {config.log_file}: {exc}", file=sys.stderr)
        return 1
    logger.info("Starting vatsim-online (refresh every %.0fs)", config.refresh_interval)

    try:
        run_app(VatsimOnlineApp(config))
    except TerminalError as exc:
        logger.error("%s", exc)
        print(f"vatsim-online: {exc}", file=sys.stderr)
        return 1

    logger.info("Exited cleanly")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
