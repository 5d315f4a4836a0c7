#!/usr/bin/env python3
"""logdest demo — builds a console destination from config and logs sample records."""

import sys
import os
import inspect
import argparse
import logging
import threading

# Ensure logdest package is importable when run as `python main.py`
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from logdest.config import load_yaml_config, load_config
from logdest.console import ConsoleDestination
from logdest.levels import Level

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [LOGDEST] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="logdest console demo")
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML config file with format settings and filter rules",
    )
    parser.add_argument(
        "--workers", type=int, default=2,
        help="Number of threads logging concurrently (default: 2)",
    )
    return parser


def log(destination: ConsoleDestination, level: Level, message: str) -> bool:
    """Dispatch message with the caller's file, function and line."""
    frame = inspect.currentframe().f_back
    current = threading.current_thread()
    thread = "main" if current is threading.main_thread() else current.name
    try:
        return destination.dispatch(
            level, message,
            thread=thread,
            path=frame.f_code.co_filename,
            function=frame.f_code.co_name,
            line=frame.f_lineno,
        )
    finally:
        del frame


def _work(destination: ConsoleDestination, worker_id: int):
    log(destination, Level.DEBUG, f"worker {worker_id} starting")
    log(destination, Level.INFO, f"worker {worker_id} processed batch")
    log(destination, Level.WARNING, f"worker {worker_id} saw slow response")


def main():
    args = build_cli_parser().parse_args()

    config = load_config(load_yaml_config(args.config))
    logger.info("Config: min_level=%s, detail_output=%s, colored=%s, %d filter rule(s)",
                config.min_level.name, config.format.detail_output,
                config.format.colored, len(config.rules))

    destination = ConsoleDestination.from_config(config)
    log(destination, Level.VERBOSE, "demo starting")

    threads = [
        threading.Thread(target=_work, args=(destination, i), name=f"worker{i}")
        for i in range(args.workers)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    log(destination, Level.ERROR, "demo finished")
    destination.flush()
    destination.close()


if __name__ == "__main__":
    main()
