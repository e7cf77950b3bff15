"""Application entry point for the klipper-timeout daemon."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

from klipper_timeout import __version__
from klipper_timeout.client import connect_klipper
from klipper_timeout.core.config import ExpiryConfig
from klipper_timeout.core.daemon import ExpiryDaemon
from klipper_timeout.core.ports import ClipboardSourceError
from klipper_timeout.settings import (
    load_file_config,
    logging_settings,
    resolve_config,
    resolve_config_path,
)

NAME = "KLIPPER TIMEOUT"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _level_for(verbosity: int, configured: Optional[str]) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    if configured:
        return getattr(logging, str(configured).upper(), logging.WARNING)
    return logging.WARNING


def _configure_logging(verbosity: int, config: dict) -> None:
    level = _level_for(verbosity, config.get("level"))

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = os.path.expanduser(file_cfg.get("path", "~/.local/state/klipper-timeout/daemon.log"))
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _install_shutdown_handlers(shutdown: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, shutdown.set)
        except (NotImplementedError, RuntimeError, ValueError) as exc:
            # Ctrl-C still surfaces as KeyboardInterrupt and is handled in main().
            LOGGER.error("Failed to listen for %s: %s", signal.Signals(signum).name, exc)


async def _serve(config: ExpiryConfig) -> None:
    source = await connect_klipper()
    shutdown = asyncio.Event()
    _install_shutdown_handlers(shutdown)

    daemon = ExpiryDaemon(config, source)
    try:
        await daemon.run(shutdown)
    finally:
        source.close()
    LOGGER.info("Shutting down per signal")


def _show_config(config: ExpiryConfig, config_path: str) -> None:
    print(f"config file:      {config_path}")
    print(f"expiry:           {config.expiry:g}s")
    print(f"resync interval:  {config.resync_interval:g}s")
    print("exclude_regex:")
    for pattern in config.patterns.always_remove:
        print(f"  {pattern.pattern}")
    print("never_expire_regex:")
    for pattern in config.patterns.never_remove:
        print(f"  {pattern.pattern}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="klipper-timeout",
        description="Expire Klipper clipboard history entries after a timeout.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "command",
        nargs="?",
        choices=("run", "show-config"),
        default="run",
        help="run the daemon (default) or print the merged configuration",
    )
    parser.add_argument("--expiry-seconds", type=int, help="Seconds before a clipboard entry is purged.")
    parser.add_argument(
        "--resync-interval-seconds",
        type=int,
        help="How often to resync the clipboard history from Klipper (seconds).",
    )
    parser.add_argument(
        "--exclude-regex",
        action="append",
        default=[],
        metavar="REGEX",
        help="Remove matching clipboard entries on sight. May be repeated.",
    )
    parser.add_argument(
        "--never-expire-regex",
        action="append",
        default=[],
        metavar="REGEX",
        help="Never expire matching clipboard entries. May be repeated.",
    )
    parser.add_argument("--config", metavar="PATH", help="Path to the TOML config file.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more verbosely. Use twice for debug output.",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    config_path, explicit = resolve_config_path(args.config)

    try:
        file_config = load_file_config(config_path, explicit=explicit)
        _configure_logging(args.verbose, logging_settings(file_config))
        config = resolve_config(
            file_config,
            expiry_seconds=args.expiry_seconds,
            resync_interval_seconds=args.resync_interval_seconds,
            exclude_regex=args.exclude_regex,
            never_expire_regex=args.never_expire_regex,
        )
    except ValueError as exc:
        _configure_logging(args.verbose, {})
        LOGGER.error("Invalid configuration: %s", exc)
        raise SystemExit(1) from exc

    if args.command == "show-config":
        _show_config(config, config_path)
        return

    _print_banner()
    try:
        asyncio.run(_serve(config))
    except ClipboardSourceError as exc:
        LOGGER.error("Cannot start clipboard expiry daemon: %s", exc)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        LOGGER.info("Shutting down per ctrl-c")


if __name__ == "__main__":
    main()
