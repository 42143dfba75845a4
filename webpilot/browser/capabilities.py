#!/usr/bin/env python3
"""
Capability resolution module.

This module turns configuration keys (browser, platform, version and the
per-OS browser binary overrides) into a validated capability descriptor.
Resolution is a pure function of the configuration and the host identifier;
nothing here touches the filesystem or starts a process.
"""

import logging
import os
import platform as host_platform
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..cli.config import (BROWSER_KEY, BROWSER_VERSION_KEY, DOWNLOAD_DIR_KEY,
                          PLATFORM_KEY, WebDriverConfig)
from ..errors import ConfigError

logger = logging.getLogger(__name__)

LOCAL_PLATFORM = "local"


class Browser(Enum):
    """Browser kinds a session can be started with."""

    FIREFOX = "firefox"
    CHROME = "chrome"
    INTERNET_EXPLORER = "iexplore"
    HEADLESS = "headless"

    @property
    def key_part(self) -> str:
        """Lowercase name used when building binary path keys."""
        return self.value

    @classmethod
    def lookup(cls, name: Optional[str]) -> "Browser":
        """
        Map a configured browser name to a Browser, ignoring case.

        Raises:
            ConfigError: If the name is empty or not a supported browser
        """
        normalized = (name or "").strip().upper()
        browser = _BROWSER_NAMES.get(normalized)
        if browser is None:
            raise ConfigError(f"unsupported browser {name!r}")
        return browser


_BROWSER_NAMES = {browser.name: browser for browser in Browser}
_BROWSER_NAMES.update({
    "IEXPLORE": Browser.INTERNET_EXPLORER,
    "HTMLUNIT": Browser.HEADLESS,
})


class Platform(Enum):
    """Platforms a session can run on."""

    XP = "xp"
    VISTA = "vista"
    LINUX = "linux"
    WINDOWS = "windows"
    MAC = "mac"

    @property
    def family(self) -> "Platform":
        """XP and Vista are Windows for anything that depends on the OS family."""
        if self in (Platform.XP, Platform.VISTA):
            return Platform.WINDOWS
        return self

    @property
    def key_part(self) -> str:
        """Lowercase OS family name used when building binary path keys."""
        return self.family.value

    @classmethod
    def lookup(cls, name: Optional[str]) -> "Platform":
        """
        Map a configured platform name to a Platform, ignoring case.

        Raises:
            ConfigError: If the name is not a supported platform
        """
        normalized = (name or "").strip().lower()
        for candidate in cls:
            if candidate.value == normalized:
                return candidate
        raise ConfigError(f"unsupported platform {name!r}")


def host_identifier() -> str:
    """Return a string identifying the host OS (e.g. 'Linux-5.10.0-x86_64')."""
    return host_platform.platform()


def detect_platform(identifier: Optional[str] = None) -> Platform:
    """
    Detect the host platform from a host identifier string.

    Args:
        identifier: Host OS identifier, defaults to host_identifier()

    Returns:
        Platform: LINUX, MAC or WINDOWS

    Raises:
        ConfigError: If the identifier names none of the supported systems
    """
    identifier = identifier if identifier is not None else host_identifier()
    lowered = identifier.lower()
    if "linux" in lowered:
        return Platform.LINUX
    if "mac" in lowered or "darwin" in lowered:
        return Platform.MAC
    if "win" in lowered:
        return Platform.WINDOWS
    raise ConfigError(f"unsupported platform, unable to detect host OS from {identifier!r}")


@dataclass(frozen=True)
class CapabilityDescriptor:
    """Resolved, validated parameters used to start or request a session."""

    browser: Browser
    platform: Platform
    version: Optional[str]
    is_local: bool
    binary_path: Optional[str] = None
    extra_preferences: Dict[str, Any] = field(default_factory=dict)


def binary_path_key(platform: Platform, browser: Browser, version: Optional[str]) -> str:
    """Build the key holding a browser binary override, e.g. webdriver.linux.chrome.120."""
    return f"webdriver.{platform.key_part}.{browser.key_part}.{version or ''}"


def lookup_binary_path(config: WebDriverConfig, platform: Platform, browser: Browser,
                       version: Optional[str]) -> Optional[str]:
    """
    Look up a browser binary override.

    Returns:
        str: The configured path, or None when absent or blank (use the backend default)
    """
    key = binary_path_key(platform, browser, version)
    logger.debug(f"looking up browser binary path key {key}")
    binary = config.get_optional(key)
    if binary:
        logger.info(f"using browser binary {binary}")
    return binary


def download_preferences(config: WebDriverConfig) -> Dict[str, Any]:
    """
    Download preferences applied to browsers that support them.

    The configured download directory is taken relative to the user's home
    directory unless it is already absolute.
    """
    prefs: Dict[str, Any] = {
        "download.prompt_for_download": False,
        "download.extensions_to_open": "pdf",
    }
    download_dir = config.get_optional(DOWNLOAD_DIR_KEY)
    if download_dir:
        prefs["download.default_directory"] = os.path.join(os.path.expanduser("~"), download_dir)
    return prefs


def resolve(config: WebDriverConfig, identifier: Optional[str] = None) -> CapabilityDescriptor:
    """
    Resolve configuration into a capability descriptor.

    Args:
        config: Configuration to read
        identifier: Host OS identifier used when the platform is 'local'

    Returns:
        CapabilityDescriptor: The resolved descriptor

    Raises:
        ConfigError: If the browser or platform is unsupported
    """
    browser = Browser.lookup(config.get(BROWSER_KEY))

    platform_name = (config.get(PLATFORM_KEY) or "").strip()
    is_local = platform_name.lower() == LOCAL_PLATFORM
    if is_local:
        platform = detect_platform(identifier)
    else:
        platform = Platform.lookup(platform_name)

    version = config.get_optional(BROWSER_VERSION_KEY)
    return CapabilityDescriptor(
        browser=browser,
        platform=platform,
        version=version,
        is_local=is_local,
        binary_path=lookup_binary_path(config, platform, browser, version),
        extra_preferences=download_preferences(config),
    )
