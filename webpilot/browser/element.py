#!/usr/bin/env python3
"""
Element handle module.

This module wraps backend elements so that interactions are logged and
followed by a settle wait. Anything the wrapper does not define is passed
straight through to the underlying element.
"""

import logging
import time
from typing import TYPE_CHECKING, List, Optional

from selenium.webdriver.common.action_chains import ActionChains

from .common.interface import BackendElement, Locator

if TYPE_CHECKING:
    from .session import Session

logger = logging.getLogger(__name__)


def describe_locator(locator: Optional[Locator]) -> str:
    """Format a locator for log messages, e.g. [element -> id: username]."""
    if not locator:
        return "[element]"
    by, value = locator
    return f"[element -> {by}: {value}]"


class Element:
    """
    An element found through a Session.

    The handle does not outlive the page: once the page navigates away or
    the element detaches, the backend reports it as stale or missing.
    """

    def __init__(self, session: "Session", element: BackendElement, locator: Optional[Locator] = None):
        self.session = session
        self.element = element
        self.locator = locator

    def __getattr__(self, name):
        # only called for attributes not defined on the wrapper
        return getattr(self.element, name)

    def __eq__(self, other):
        if isinstance(other, Element):
            return self.element == other.element
        return self.element == other

    def __hash__(self):
        return hash(self.element)

    def __repr__(self):
        return f"<Element {describe_locator(self.locator)}>"

    def describe(self) -> str:
        return describe_locator(self.locator)

    def click(self):
        """Click, then wait for async calls to settle."""
        logger.info(f"click {self.describe()}")
        self.element.click()
        self.session.wait_for_settle(f"click {self.describe()}")

    def click_no_wait(self):
        """Click without waiting for async calls."""
        logger.info(f"click {self.describe()}")
        self.element.click()

    def click_min_wait(self, seconds: float):
        """Sleep a fixed number of seconds, then click without a settle wait."""
        logger.debug(f"sleeping for {seconds} seconds...")
        time.sleep(seconds)
        self.click_no_wait()

    def submit(self):
        """Submit, then wait for async calls to settle."""
        logger.info(f"submit {self.describe()}")
        self.element.submit()
        self.session.wait_for_settle(f"submit {self.describe()}")

    def submit_no_wait(self):
        logger.info(f"submit {self.describe()}")
        self.element.submit()

    def submit_min_wait(self, seconds: float):
        """Sleep a fixed number of seconds, then submit without a settle wait."""
        logger.debug(f"sleeping for {seconds} seconds...")
        time.sleep(seconds)
        self.submit_no_wait()

    def send_keys(self, *value: str):
        logger.info(f"send keys {value!r} to {self.describe()}")
        self.element.send_keys(*value)

    def clear(self):
        logger.info(f"clearing {self.describe()}")
        self.element.clear()

    def find_element(self, by: str, value: str) -> "Element":
        return Element(self.session, self.element.find_element(by, value), (by, value))

    def find_elements(self, by: str, value: str) -> List["Element"]:
        return [Element(self.session, found, (by, value)) for found in self.element.find_elements(by, value)]

    def mouse_over(self):
        """Move the mouse over the centre of the element."""
        logger.info(f"mouse over {self.describe()}")
        ActionChains(self.session.driver).move_to_element(self.element).perform()
