"""Main entry point for the headline notifier."""

import argparse
import logging
import os
import sys
import threading

from .app import NewsApplication
from .config import NOTIFICATION_METHODS, load_config, load_env_file
from .models import JobResult

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    # basicConfig is a no-op when the root logger already has handlers
    logging.getLogger().setLevel(getattr(logging, log_level, logging.INFO))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Poll top news headlines and show the latest one as a notification"
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["run", "once", "status"],
        default="run",
        help="run: schedule and poll until interrupted; once: fetch and notify once; "
             "status: show the main screen (default: run)"
    )
    parser.add_argument(
        "--country",
        type=str,
        default=None,
        help="Country code for headlines (overrides NEWS_COUNTRY env var)"
    )
    parser.add_argument(
        "--method",
        choices=NOTIFICATION_METHODS,
        default=None,
        help="Notification method (overrides NOTIFICATION_METHOD env var)"
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Fetch interval in minutes, at least 15 (overrides FETCH_INTERVAL_MINUTES env var)"
    )
    return parser


def main(argv=None) -> int:
    """Main entry point with command-line argument parsing."""
    args = build_parser().parse_args(argv)
    # LOG_LEVEL may come from .env
    load_env_file()
    configure_logging()

    if args.method:
        os.environ["NOTIFICATION_METHOD"] = args.method

    try:
        config = load_config()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    if args.country:
        config.news.country = args.country
    if args.interval is not None:
        config.scheduler.interval_minutes = args.interval

    with NewsApplication(config) as app:
        if args.command == "once":
            result = app.run_once()
            logger.info(f"Job finished with {result.value}")
            return 0 if result is JobResult.SUCCESS else 1

        app.on_create()
        if args.command == "status":
            app.main_screen.open()
            return 0

        stop_event = threading.Event()
        try:
            app.scheduler.run_forever(stop_event=stop_event)
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
            stop_event.set()
    return 0


if __name__ == "__main__":
    sys.exit(main())
