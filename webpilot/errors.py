#!/usr/bin/env python3
"""
Exception types module.

This module defines the errors raised while resolving configuration,
launching sessions, querying the grid and interacting with page elements.
"""

from selenium.common.exceptions import NoSuchElementException


class WebPilotError(Exception):
    """Base class for all webpilot errors."""


class ConfigError(WebPilotError, ValueError):
    """Raised when configuration is missing, malformed or unsupported."""


class LaunchError(WebPilotError, RuntimeError):
    """Raised when a local or remote session cannot be started."""


class GridLookupError(WebPilotError, LookupError):
    """Raised when the grid control plane cannot tell us where a session runs."""


class ElementNotFoundError(WebPilotError, NoSuchElementException):
    """Raised when a locator matched nothing where an element was required."""

    def __init__(self, msg=None, locator=None):
        super().__init__(msg)
        self.locator = locator


class ElementNotVisibleError(ElementNotFoundError):
    """Raised when a locator matched elements but none of them are displayed."""


class UnsupportedElementError(WebPilotError, TypeError):
    """Raised when a value cannot be set on the kind of element found."""


class SettleTimeoutError(WebPilotError, TimeoutError):
    """
    Raised only on request, by SettleResult.raise_for_status().

    The poller itself never raises this; a timed out wait is reported as a
    status so the interaction that triggered it can carry on.
    """

    def __init__(self, msg=None, result=None):
        super().__init__(msg)
        self.result = result
