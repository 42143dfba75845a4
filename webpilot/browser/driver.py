#!/usr/bin/env python3
"""
Session factory module.

This module starts local browsers or opens sessions on a remote grid from
a resolved capability descriptor, and wraps the resulting driver in a
Session with its implicit wait applied.
"""

import logging
import os
import threading
import time
from typing import Callable, Optional

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.firefox.options import Options as FirefoxOptions
from selenium.webdriver.ie.options import Options as IeOptions
from selenium.webdriver.ie.service import Service as IeService
from webdriver_manager.chrome import ChromeDriverManager

from ..cli.config import (CHROME_DRIVER_KEY, DOWNLOAD_DIR_KEY, GRID_URL_KEY,
                          IE_DRIVER_KEY, WebDriverConfig)
from ..errors import ConfigError, LaunchError
from .capabilities import (Browser, CapabilityDescriptor, Platform,
                           detect_platform, resolve)
from .session import Session
from .settle import SettleWaitConfig

logger = logging.getLogger(__name__)

DRIVER_SUFFIXES = {
    Platform.LINUX: "-linux64",
    Platform.MAC: "-mac",
    Platform.WINDOWS: "-win.exe",
}

FIREFOX_NEVER_ASK_MIME_TYPES = "application/octet-stream,application/zip"


class DriverBinarySelector:
    """
    Picks the OS-specific chromedriver binary once per process.

    The configured webdriver.chrome.driver path is a base name such as
    bin/chromedriver; the host OS decides which suffixed file next to it is
    used. The first successful selection is kept until reset() is called.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._selected: Optional[str] = None

    @property
    def selected(self) -> Optional[str]:
        return self._selected

    def select(self, base_path: str, identifier: Optional[str] = None) -> str:
        """
        Return the chromedriver binary for this host, selecting it on first use.

        Args:
            base_path: Configured chromedriver path without OS suffix
            identifier: Host OS identifier, defaults to the running host

        Raises:
            LaunchError: If the suffixed binary does not exist
        """
        with self._lock:
            if self._selected is not None:
                return self._selected

            try:
                host = detect_platform(identifier)
            except ConfigError as e:
                raise LaunchError(f"unable to select a chromedriver binary: {e}") from e

            driver_binary = os.path.abspath(base_path) + DRIVER_SUFFIXES[host.family]
            logger.debug(f"selecting chromedriver binary {driver_binary}")
            if not os.path.isfile(driver_binary):
                raise LaunchError(
                    f"chromedriver path constructed [{driver_binary}] does not match an existing file"
                )
            self._selected = driver_binary
            return driver_binary

    def reset(self):
        """Forget the selection so the next select() picks again."""
        with self._lock:
            self._selected = None


# Shared by every session in the process
chromedriver_selector = DriverBinarySelector()


def _require_file(path: str, what: str):
    if not os.path.isfile(path):
        raise LaunchError(f"{what} [{path}] does not match an existing file")


def chrome_options(descriptor: CapabilityDescriptor) -> ChromeOptions:
    """Build Chrome options with download preferences and the binary override."""
    options = ChromeOptions()
    if descriptor.browser is Browser.HEADLESS:
        options.add_argument("--headless=new")
    if descriptor.binary_path:
        options.binary_location = descriptor.binary_path
    options.add_experimental_option("prefs", dict(descriptor.extra_preferences))
    return options


def firefox_options(descriptor: CapabilityDescriptor, config: WebDriverConfig) -> FirefoxOptions:
    """Build Firefox options that save downloads without prompting."""
    options = FirefoxOptions()
    if descriptor.binary_path:
        options.binary_location = descriptor.binary_path

    download_dir = config.get_optional(DOWNLOAD_DIR_KEY)
    if download_dir:
        options.set_preference("browser.download.dir", download_dir)
    options.set_preference("browser.download.folderList", 0)  # desktop
    options.set_preference("browser.download.manager.showWhenStarting", False)
    options.set_preference("browser.helperApps.neverAsk.saveToDisk", FIREFOX_NEVER_ASK_MIME_TYPES)
    return options


def browser_options(descriptor: CapabilityDescriptor, config: WebDriverConfig):
    """Build the backend options object for the descriptor's browser."""
    browser = descriptor.browser
    if browser is Browser.FIREFOX:
        return firefox_options(descriptor, config)
    if browser in (Browser.CHROME, Browser.HEADLESS):
        return chrome_options(descriptor)
    if browser is Browser.INTERNET_EXPLORER:
        return IeOptions()
    raise ConfigError(f"unsupported browser {browser!r}")


def session_name(descriptor: CapabilityDescriptor, timestamp: int) -> str:
    """Human readable name shown for the session in the grid's dashboard."""
    return (f"{descriptor.browser.name}-{descriptor.version or 'default'} "
            f"on {descriptor.platform.name} time {timestamp}")


def remote_options(descriptor: CapabilityDescriptor, config: WebDriverConfig, timestamp: int):
    """
    Build the capabilities sent to the grid when requesting a session.

    Args:
        descriptor: Resolved capabilities
        config: Configuration
        timestamp: Launch time in epoch seconds, used in the session name

    Returns:
        Backend options object carrying browser, version, platform, the
        javascript flag and the session name
    """
    options = browser_options(descriptor, config)
    if descriptor.version:
        options.browser_version = descriptor.version
    options.platform_name = descriptor.platform.name
    options.set_capability("se:javascriptEnabled", True)
    options.set_capability("se:name", session_name(descriptor, timestamp))
    return options


def _chromedriver_path(config: WebDriverConfig, selector: DriverBinarySelector,
                       identifier: Optional[str]) -> str:
    base_path = config.get_optional(CHROME_DRIVER_KEY)
    if base_path:
        return selector.select(base_path, identifier)
    logger.info("no chromedriver configured, installing one with webdriver-manager")
    return ChromeDriverManager().install()


def _start_local_driver(descriptor: CapabilityDescriptor, config: WebDriverConfig,
                        selector: DriverBinarySelector, identifier: Optional[str]):
    browser = descriptor.browser
    if descriptor.binary_path and browser is not Browser.INTERNET_EXPLORER:
        _require_file(descriptor.binary_path, "browser binary path")

    if browser is Browser.FIREFOX:
        return webdriver.Firefox(options=firefox_options(descriptor, config))

    if browser in (Browser.CHROME, Browser.HEADLESS):
        service = ChromeService(executable_path=_chromedriver_path(config, selector, identifier))
        return webdriver.Chrome(service=service, options=chrome_options(descriptor))

    if browser is Browser.INTERNET_EXPLORER:
        ie_driver = config.get_optional(IE_DRIVER_KEY)
        if ie_driver:
            _require_file(ie_driver, "IE driver path")
            return webdriver.Ie(service=IeService(executable_path=ie_driver), options=IeOptions())
        return webdriver.Ie(options=IeOptions())

    raise ConfigError(f"unsupported browser {browser!r}")


def _attach_session(driver, config: WebDriverConfig, descriptor: CapabilityDescriptor,
                    settle_config: SettleWaitConfig, grid_url: Optional[str] = None) -> Session:
    """Wrap a started driver in a Session, quitting the driver if that fails."""
    try:
        session = Session(driver, config, descriptor, grid_url=grid_url, settle_config=settle_config)
        session.reset_implicit_wait()
    except Exception:
        logger.error(f"failed to initialize {descriptor.browser.name} session, quitting driver")
        driver.quit()
        raise
    return session


def create_local_session(descriptor: CapabilityDescriptor, config: WebDriverConfig,
                         selector: Optional[DriverBinarySelector] = None,
                         identifier: Optional[str] = None,
                         settle_config: Optional[SettleWaitConfig] = None) -> Session:
    """
    Start a browser on this machine.

    Args:
        descriptor: Resolved capabilities
        config: Configuration
        selector: Chromedriver selector, defaults to the process-wide one
        identifier: Host OS identifier used for chromedriver selection
        settle_config: Settle-wait tunables, read from config when omitted

    Returns:
        Session: The started session

    Raises:
        LaunchError: If a binary is missing or the browser fails to start
    """
    selector = selector or chromedriver_selector
    settle_config = settle_config or SettleWaitConfig.from_config(config)

    logger.info(f"starting local {descriptor.browser.name} session")
    try:
        driver = _start_local_driver(descriptor, config, selector, identifier)
    except (ConfigError, LaunchError):
        raise
    except WebDriverException as e:
        raise LaunchError(f"failed to start local {descriptor.browser.name}: {e.msg or e}") from e
    except Exception as e:
        # webdriver-manager surfaces network and download failures as-is
        raise LaunchError(f"failed to start local {descriptor.browser.name}: {e}") from e

    return _attach_session(driver, config, descriptor, settle_config)


def create_remote_session(descriptor: CapabilityDescriptor, config: WebDriverConfig,
                          settle_config: Optional[SettleWaitConfig] = None,
                          clock: Callable[[], float] = time.time) -> Session:
    """
    Open a session on the configured grid.

    Args:
        descriptor: Resolved capabilities
        config: Configuration
        settle_config: Settle-wait tunables, read from config when omitted
        clock: Source of the launch timestamp

    Returns:
        Session: The remote session

    Raises:
        LaunchError: If no grid URL is configured or the grid refuses the session
    """
    grid_url = config.get_optional(GRID_URL_KEY)
    if not grid_url:
        raise LaunchError(f"{GRID_URL_KEY} is not configured, no remote execution available")

    settle_config = settle_config or SettleWaitConfig.from_config(config)

    options = remote_options(descriptor, config, int(clock()))
    logger.info(f"requesting {descriptor.browser.name} {descriptor.version or ''} "
                f"on {descriptor.platform.name} from grid {grid_url}")
    try:
        driver = webdriver.Remote(command_executor=grid_url, options=options)
    except Exception as e:
        raise LaunchError(f"failed to open remote session on {grid_url}: {e}") from e

    return _attach_session(driver, config, descriptor, settle_config, grid_url)


def open_session(config: WebDriverConfig, identifier: Optional[str] = None,
                 selector: Optional[DriverBinarySelector] = None) -> Session:
    """
    Resolve configuration and open a local or remote session.

    Settle-wait tunables are validated before anything is launched.

    Args:
        config: Configuration
        identifier: Host OS identifier, defaults to the running host
        selector: Chromedriver selector, defaults to the process-wide one

    Returns:
        Session: The opened session

    Raises:
        ConfigError: If the configuration is invalid
        LaunchError: If the session cannot be started
    """
    settle_config = SettleWaitConfig.from_config(config)
    descriptor = resolve(config, identifier)
    if descriptor.is_local:
        return create_local_session(descriptor, config, selector, identifier, settle_config)
    return create_remote_session(descriptor, config, settle_config)
