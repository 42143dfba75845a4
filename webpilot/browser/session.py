#!/usr/bin/env python3
"""
Session module.

This module contains the Session class, which owns one live automation
backend handle (a local driver process or a remote grid session) and
routes every lookup and interaction through logging, element wrapping and
the settle wait.
"""

import logging
from typing import List, Optional

from selenium.common.exceptions import (NoAlertPresentException,
                                        NoSuchElementException,
                                        WebDriverException)
from selenium.webdriver.common.action_chains import ActionChains

from ..cli.config import (DOWNLOAD_DIR_KEY, REMOTE_HOME_DIR_KEY,
                          SCREENSHOT_DIR_KEY, WAIT_KEY, WebDriverConfig)
from ..errors import ElementNotFoundError, ElementNotVisibleError
from .capabilities import CapabilityDescriptor
from .common.interface import AutomationBackend, Locator
from .element import Element, describe_locator
from .forms import FormInteractions
from .settle import SettleResult, SettleWaitConfig, SettleWaitPoller
from .utils import resolve_screenshot_path, write_screenshot

logger = logging.getLogger(__name__)

# implicit wait used while probing for elements that may legitimately be absent
PROBE_WAIT_SECONDS = 0.01


class Session(FormInteractions):
    """
    A live automation session driving one browser.

    Sessions are created by the factory functions in driver.py and released
    only by quit(). A session is meant to be driven from a single thread.
    """

    def __init__(self, driver: AutomationBackend, config: WebDriverConfig,
                 descriptor: CapabilityDescriptor, grid_url: Optional[str] = None,
                 settle_config: Optional[SettleWaitConfig] = None, sleep=None):
        """
        Args:
            driver: Backend handle this session owns
            config: Configuration the session was created from
            descriptor: Resolved capabilities the session was created with
            grid_url: Grid URL for remote sessions, None for local ones
            settle_config: Settle-wait tunables, read from config when omitted
            sleep: Sleep function for the settle-wait poller
        """
        self.driver = driver
        self.config = config
        self.descriptor = descriptor
        self.grid_url = grid_url
        self.settle_config = settle_config or SettleWaitConfig.from_config(config)
        self.implicit_wait: Optional[float] = None

        poller_kwargs = {"sleep": sleep} if sleep else {}
        self.poller = SettleWaitPoller(self.execute_script, self.settle_config, **poller_kwargs)

    def __repr__(self):
        where = "local" if self.is_local else self.grid_url
        return f"<Session {self.descriptor.browser.name} on {self.descriptor.platform.name} ({where})>"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.quit()
        return False

    @property
    def is_local(self) -> bool:
        return self.grid_url is None

    @property
    def session_id(self) -> Optional[str]:
        return getattr(self.driver, "session_id", None)

    @property
    def browser(self):
        return self.descriptor.browser

    @property
    def download_dir(self) -> Optional[str]:
        """Download directory name, relative to the user's home directory."""
        return self.config.get_optional(DOWNLOAD_DIR_KEY)

    @property
    def remote_home_dir(self) -> Optional[str]:
        """Home directory of the grid node user, when configured."""
        return self.config.get_optional(REMOTE_HOME_DIR_KEY)

    # Implicit waits

    def reset_implicit_wait(self):
        """Reset the implicit wait to the configured webdriver.wait seconds."""
        wait = self.config.get_int(WAIT_KEY)
        logger.debug(f"resetting implicit wait time to default configuration of {wait} seconds")
        self.set_implicit_wait(wait)

    def set_implicit_wait(self, seconds: float):
        logger.debug(f"setting implicit wait time to {seconds} seconds")
        self.driver.implicitly_wait(seconds)
        self.implicit_wait = seconds

    # Lookups

    def find_element(self, by: str, value: str) -> Element:
        """
        Find a single element.

        Raises:
            ElementNotFoundError: If nothing matches
        """
        locator = (by, value)
        logger.debug(f"find element by {describe_locator(locator)}...")
        try:
            found = self.driver.find_element(by, value)
        except NoSuchElementException as e:
            raise ElementNotFoundError(
                f"Failed to find element by {describe_locator(locator)}. {e.msg or ''}".strip(), locator
            ) from e
        return Element(self, found, locator)

    def find_elements(self, by: str, value: str) -> List[Element]:
        locator = (by, value)
        logger.debug(f"find elements by {describe_locator(locator)}...")
        return [Element(self, found, locator) for found in self.driver.find_elements(by, value)]

    def find_visible_element(self, by: str, value: str) -> Optional[Element]:
        """
        Find the first displayed element.

        Returns:
            Element: The first displayed match, or None when nothing matches

        Raises:
            ElementNotVisibleError: If elements match but none are displayed
        """
        elements = self.find_elements(by, value)
        for element in elements:
            if element.is_displayed():
                return element
        if elements:
            raise ElementNotVisibleError(
                f"An element was found but was not visible by {describe_locator((by, value))}", (by, value)
            )
        return None

    def find_visible_elements(self, by: str, value: str) -> List[Element]:
        return [element for element in self.find_elements(by, value) if element.is_displayed()]

    def is_element_found(self, locator: Locator) -> bool:
        """
        Check whether an element exists, without waiting for it to appear.

        An element can exist without being displayed; use is_element_visible
        when that matters.
        """
        self.set_implicit_wait(PROBE_WAIT_SECONDS)
        try:
            self.find_element(*locator)
            return True
        except ElementNotFoundError:
            logger.info(f"element not found by {describe_locator(locator)}")
            return False
        finally:
            self.reset_implicit_wait()

    def is_element_visible(self, locator: Locator) -> bool:
        """Check whether an element exists and is displayed, without waiting for it."""
        self.set_implicit_wait(PROBE_WAIT_SECONDS)
        try:
            element = self.find_element(*locator)
            if element.is_displayed():
                return True
            logger.info(f"element was found but was not visible by {describe_locator(locator)}")
            return False
        except ElementNotFoundError:
            logger.info(f"element not found by {describe_locator(locator)}")
            return False
        finally:
            self.reset_implicit_wait()

    # Navigation

    def get(self, url: str):
        logger.info(f"navigating to {url}")
        self.driver.get(url)

    def get_force(self, url: str):
        """Navigate, then accept any alert the page raised."""
        self.get(url)
        self.clear_alert()

    def refresh(self) -> SettleResult:
        """Refresh the current page and wait for async calls to settle."""
        logger.info(f"refreshing current page {self.driver.current_url}...")
        self.driver.refresh()
        return self.wait_for_settle("refresh")

    def refresh_force(self) -> SettleResult:
        """Refresh, accept any alert, and wait for async calls to settle."""
        logger.info(f"refreshing current page {self.driver.current_url}...")
        self.driver.refresh()
        self.clear_alert()
        return self.wait_for_settle("refresh")

    @property
    def current_url(self) -> str:
        return self.driver.current_url

    @property
    def title(self) -> str:
        return self.driver.title

    @property
    def page_source(self) -> str:
        return self.driver.page_source

    @property
    def window_handles(self) -> List[str]:
        return self.driver.window_handles

    def clear_alert(self) -> bool:
        """
        Accept an alert if one is open.

        Returns:
            bool: True if an alert was accepted
        """
        logger.info("checking for alerts...")
        try:
            alert = self.driver.switch_to.alert
            logger.info(f"alert present: {alert.text}")
            alert.accept()
            logger.info("alert accepted")
            return True
        except NoAlertPresentException:
            logger.info("no alerts present, continuing...")
            return False

    def switch_to_window(self, handle_index: int) -> str:
        """
        Switch to a window by its position in window_handles.

        Returns:
            str: The window handle switched to
        """
        logger.info(f"switching to window handle index {handle_index}")
        window_handle = list(self.window_handles)[handle_index]
        logger.debug(f"switching to window handle {window_handle}")
        self.driver.switch_to.window(window_handle)
        return window_handle

    # Scripts and settle waits

    def execute_script(self, script: str, *args):
        """
        Execute JavaScript in the page.

        Raises:
            WebDriverException: If the script fails to execute
        """
        logger.debug(f"executing javascript: [{script}]")
        try:
            response = self.driver.execute_script(script, *args)
        except Exception as e:
            logger.error(f"javascript failed to execute [{script}]")
            raise WebDriverException(f"javascript failed to execute: {e}") from e
        logger.debug(f"javascript response [{response}]")
        return response

    def wait_for_settle(self, context: Optional[str] = None) -> SettleResult:
        """
        Block until the page has no active async calls.

        Returns:
            SettleResult: SETTLED, TIMED_OUT or DISABLED; timeouts are not raised
        """
        return self.poller.wait(context)

    # Mouse

    def new_actions(self) -> ActionChains:
        return ActionChains(self.driver)

    def mouse_over(self, locator: Locator) -> Element:
        """Move the mouse over the centre of an element."""
        element = self.find_element(*locator)
        element.mouse_over()
        return element

    # Screenshots

    def screenshot(self, folder_name: Optional[str], file_name: str) -> str:
        """
        Save a screenshot of the current page.

        Args:
            folder_name: None for the screenshot directory itself, a folder name
                for a subfolder of it, or an absolute path
            file_name: File name without extension

        Returns:
            str: Path the screenshot was written to
        """
        path = resolve_screenshot_path(self.config.get_optional(SCREENSHOT_DIR_KEY), folder_name, file_name)
        write_screenshot(path, self.driver.get_screenshot_as_png())
        logger.info(f"saved screenshot {path}")
        return path

    # Lifecycle

    def new_instance(self) -> "Session":
        """Open a new session with the same configuration as this one."""
        from .driver import open_session
        return open_session(self.config)

    def close(self):
        """Close the current window."""
        self.driver.close()

    def quit(self):
        """Quit the browser and release the session."""
        logger.info(f"quitting session {self.session_id}")
        self.driver.quit()
