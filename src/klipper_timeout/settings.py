"""Configuration loading for klipper-timeout.

User-editable settings live in a single TOML file so expiry and filters can
be tuned without touching Python. Command-line flags are merged on top:
scalar flags win over the file, pattern lists are concatenated.
"""

from __future__ import annotations

import logging
import os
import tomllib
from typing import Any, Iterable, Optional

from dotenv import load_dotenv

from klipper_timeout.core.config import (
    DEFAULT_EXPIRY_SECONDS,
    DEFAULT_RESYNC_SECONDS,
    ExpiryConfig,
    build_expiry_config,
)

LOGGER = logging.getLogger(__name__)

CONFIG_FILENAME = "klipper-timeout.toml"

# Environment override for the config location, also read from a .env file.
CONFIG_ENV_VAR = "KLIPPER_TIMEOUT_CONFIG"


def default_config_path() -> str:
    """Return the config path: env override, else the XDG config dir."""

    load_dotenv()
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return os.path.expanduser(override)

    config_home = os.getenv("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(config_home, CONFIG_FILENAME)


def resolve_config_path(cli_path: Optional[str]) -> tuple[str, bool]:
    """Return (path, explicit); explicit paths came from --config or the env."""

    if cli_path:
        return os.path.expanduser(cli_path), True
    load_dotenv()
    return default_config_path(), bool(os.getenv(CONFIG_ENV_VAR))


def load_file_config(path: str, explicit: bool = False) -> Optional[dict]:
    """Load the TOML config file, returning None when it does not exist."""

    if not os.path.exists(path):
        if explicit:
            LOGGER.warning("Config file %s does not exist; using defaults", path)
        else:
            LOGGER.debug("Config file does not exist: %s", path)
        return None

    LOGGER.debug("Reading config file: %s", path)
    try:
        with open(path, "rb") as handle:
            return tomllib.load(handle)
    except OSError as exc:
        raise ValueError(f"reading config file at {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"parsing config file at {path}: {exc}") from exc


def _seconds(raw: Any, key: str) -> Optional[int]:
    if raw is None:
        return None
    # bool is an int subclass, but `true` is never a sensible duration.
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{key} must be an integer number of seconds")
    return raw


def _patterns(raw: Any, key: str) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ValueError(f"{key} must be a list of strings")
    return raw


def resolve_config(
    file_config: Optional[dict],
    *,
    expiry_seconds: Optional[int] = None,
    resync_interval_seconds: Optional[int] = None,
    exclude_regex: Iterable[str] = (),
    never_expire_regex: Iterable[str] = (),
) -> ExpiryConfig:
    """Merge CLI values over the file config and validate the result."""

    file_config = file_config or {}

    file_expiry = _seconds(file_config.get("item_expiry_seconds"), "item_expiry_seconds")
    file_resync = _seconds(file_config.get("update_interval_seconds"), "update_interval_seconds")

    expiry = expiry_seconds if expiry_seconds is not None else file_expiry
    resync = resync_interval_seconds if resync_interval_seconds is not None else file_resync

    always_remove = list(exclude_regex) + _patterns(file_config.get("exclude_regex"), "exclude_regex")
    never_remove = list(never_expire_regex) + _patterns(
        file_config.get("never_expire_regex"), "never_expire_regex"
    )

    config = build_expiry_config(
        expiry_seconds=DEFAULT_EXPIRY_SECONDS if expiry is None else expiry,
        resync_interval_seconds=DEFAULT_RESYNC_SECONDS if resync is None else resync,
        always_remove=always_remove,
        never_remove=never_remove,
    )
    LOGGER.debug(
        "Using merged configuration: expiry=%ss resync=%ss exclude=%s never_expire=%s",
        config.expiry,
        config.resync_interval,
        len(config.patterns.always_remove),
        len(config.patterns.never_remove),
    )
    return config


_KIND_NAMES = {bool: "a boolean", dict: "a table", int: "an integer", str: "a string"}


def _check_type(table: dict, key: str, kind: type, label: str) -> None:
    value = table.get(key)
    if value is None:
        return
    # bool is an int subclass; only accept it where a boolean is expected.
    wrong_bool = isinstance(value, bool) and kind is not bool
    if wrong_bool or not isinstance(value, kind):
        raise ValueError(f"{label} must be {_KIND_NAMES[kind]}")


def logging_settings(file_config: Optional[dict]) -> dict:
    """Return the optional [logging] table from the config file.

    The table is validated here so a malformed section takes the same fatal
    configuration path as the rest of the file.
    """

    if not file_config:
        return {}
    section = file_config.get("logging", {})
    if not isinstance(section, dict):
        raise ValueError("[logging] must be a table")

    level = section.get("level")
    if level is not None and not isinstance(getattr(logging, str(level).upper(), None), int):
        raise ValueError(f"unknown log level in [logging]: {level!r}")
    _check_type(section, "console", bool, "[logging] console")
    _check_type(section, "file", dict, "[logging] file")

    file_cfg = section.get("file", {})
    _check_type(file_cfg, "enabled", bool, "[logging.file] enabled")
    _check_type(file_cfg, "path", str, "[logging.file] path")
    _check_type(file_cfg, "max_bytes", int, "[logging.file] max_bytes")
    _check_type(file_cfg, "backup_count", int, "[logging.file] backup_count")
    return section
