#!/usr/bin/env python3
"""
Configuration management module.

This module provides the read-only key/value configuration shared by every
session, and functionality for loading and saving configuration files.
"""

import json
import os
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterator, Optional

from ..errors import ConfigError

# Configuration keys
PLATFORM_KEY = "webdriver.platform"
BROWSER_KEY = "webdriver.browser"
BROWSER_VERSION_KEY = "webdriver.browser-version"
WAIT_KEY = "webdriver.wait"
GRID_URL_KEY = "webdriver.grid.url"
CHROME_DRIVER_KEY = "webdriver.chrome.driver"
IE_DRIVER_KEY = "webdriver.ie.driver"
ASYNC_ENABLED_KEY = "webdriver.async.enabled"
ASYNC_TIMEOUT_KEY = "webdriver.async.timeout"
ASYNC_IDLE_KEY = "webdriver.async.idle"
ASYNC_SLEEP_INTERVAL_KEY = "webdriver.async.sleep.interval"
ASYNC_SLEEP_AFTER_KEY = "webdriver.async.sleep.after"
SCREENSHOT_DIR_KEY = "webdriver.screenshot.directory"
DOWNLOAD_DIR_KEY = "webdriver.download.directory"
REMOTE_HOME_DIR_KEY = "webdriver.grid.node.homedir"

DEFAULTS = {
    PLATFORM_KEY: "local",
    BROWSER_KEY: "chrome",
    WAIT_KEY: "10",
    ASYNC_ENABLED_KEY: "false",
    ASYNC_TIMEOUT_KEY: "30",
    ASYNC_IDLE_KEY: "0",
    ASYNC_SLEEP_INTERVAL_KEY: "5",
    ASYNC_SLEEP_AFTER_KEY: "0",
}

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0", ""}


class WebDriverConfig(Mapping):
    """
    Immutable mapping of configuration keys to string values.

    Values given at construction are layered over DEFAULTS. The mapping is
    never modified after construction, so one instance can be shared by
    sessions running in different threads.
    """

    def __init__(self, values: Optional[Mapping] = None, defaults: Optional[Mapping] = DEFAULTS):
        merged: Dict[str, str] = dict(defaults or {})
        for key, value in (values or {}).items():
            merged[str(key)] = _stringify(value)
        self._values = MappingProxyType(merged)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"WebDriverConfig({dict(self._values)!r})"

    def get_int(self, key: str, default: Optional[int] = None) -> int:
        """
        Read a key as an integer.

        Raises:
            ConfigError: If the key is missing without a default, or the value is not an integer
        """
        raw = self.get(key)
        if raw is None or raw.strip() == "":
            if default is None:
                raise ConfigError(f"{key} is not configured")
            return default
        try:
            return int(raw.strip())
        except ValueError:
            raise ConfigError(f"{key} must be an integer, got {raw!r}") from None

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Read a key as a boolean; an unrecognised value is a ConfigError."""
        raw = self.get(key)
        if raw is None:
            return default
        normalized = raw.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        raise ConfigError(f"{key} must be true or false, got {raw!r}")

    def get_optional(self, key: str) -> Optional[str]:
        """Read a key, normalizing blank values to None."""
        raw = self.get(key)
        if raw is None or raw.strip() == "":
            return None
        return raw.strip()

    def with_overrides(self, overrides: Mapping) -> "WebDriverConfig":
        """Return a new configuration with the given keys replaced."""
        merged = dict(self._values)
        merged.update({str(k): _stringify(v) for k, v in overrides.items()})
        return WebDriverConfig(merged, defaults=None)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._values)

    def print_summary(self):
        """Print a summary of the configuration."""
        print(f"\nWebdriver configuration:")
        print(f"- Browser: {self.get(BROWSER_KEY)} {self.get(BROWSER_VERSION_KEY) or '(default version)'}")
        print(f"- Platform: {self.get(PLATFORM_KEY)}")
        if self.get_optional(GRID_URL_KEY):
            print(f"- Grid URL: {self[GRID_URL_KEY]}")
        print(f"- Implicit wait: {self.get(WAIT_KEY)}s")

        if self.get_bool(ASYNC_ENABLED_KEY):
            print(f"- Async settle wait: Enabled")
            print(f"  - Timeout: {self.get(ASYNC_TIMEOUT_KEY)}s")
            print(f"  - Idle confirmation: {self.get(ASYNC_IDLE_KEY)}s")
            print(f"  - Sleep interval ceiling: {self.get(ASYNC_SLEEP_INTERVAL_KEY)}s")
            print(f"  - Cooldown after settle: {self.get(ASYNC_SLEEP_AFTER_KEY)}s")
        else:
            print(f"- Async settle wait: Disabled")

        if self.get_optional(SCREENSHOT_DIR_KEY):
            print(f"- Screenshot directory: {self[SCREENSHOT_DIR_KEY]}")
        if self.get_optional(DOWNLOAD_DIR_KEY):
            print(f"- Download directory: {self[DOWNLOAD_DIR_KEY]}")
        print()


def _stringify(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse Java-style properties text into a dictionary.

    Supports `key=value` and `key: value` lines and `#` or `!` comments.
    Line continuations and unicode escapes are not supported.

    Raises:
        ConfigError: If a non-comment line has no separator
    """
    values = {}
    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped[0] in "#!":
            continue

        separators = [i for i in (stripped.find("="), stripped.find(":")) if i != -1]
        if not separators:
            raise ConfigError(f"line {line_number}: expected key=value, got {stripped!r}")
        index = min(separators)
        values[stripped[:index].strip()] = stripped[index + 1:].strip()
    return values


def load_config(config_file: str) -> WebDriverConfig:
    """
    Load configuration from a JSON or properties file.

    Files ending in .json must hold a single object of flat dotted keys;
    anything else is read as a properties file.

    Args:
        config_file: Path to the configuration file

    Returns:
        WebDriverConfig: Configuration instance

    Raises:
        FileNotFoundError: If the configuration file does not exist
        ConfigError: If the configuration file cannot be parsed
    """
    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    with open(config_file, "r") as f:
        content = f.read()

    if config_file.lower().endswith(".json"):
        try:
            config_dict = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file: {e.msg}") from e
        if not isinstance(config_dict, dict):
            raise ConfigError(f"Configuration file {config_file} must contain a JSON object")
    else:
        config_dict = parse_properties(content)

    return WebDriverConfig(config_dict)


def save_config(config: WebDriverConfig, config_file: str) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config: Configuration instance
        config_file: Path to the configuration file

    Raises:
        IOError: If the configuration file cannot be written
    """
    try:
        directory = os.path.dirname(os.path.abspath(config_file))
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        with open(config_file, "w") as f:
            json.dump(config.to_dict(), f, indent=2, sort_keys=True)

        print(f"Configuration saved to {config_file}")

    except IOError as e:
        raise IOError(f"Error saving configuration: {e}")


def load_config_from_args(args) -> WebDriverConfig:
    """
    Build configuration from command-line arguments.

    The configuration file is read first, then `-D key=value` definitions,
    then the dedicated flags, each layer overriding the previous one.

    Args:
        args: Parsed command-line arguments

    Returns:
        WebDriverConfig: Configuration instance
    """
    config = load_config(args.config) if args.config else WebDriverConfig()

    overrides = dict(args.define or {})
    if args.browser:
        overrides[BROWSER_KEY] = args.browser
    if args.browser_version:
        overrides[BROWSER_VERSION_KEY] = args.browser_version
    if args.platform:
        overrides[PLATFORM_KEY] = args.platform
    if args.grid_url:
        overrides[GRID_URL_KEY] = args.grid_url

    if overrides:
        config = config.with_overrides(overrides)
    return config
