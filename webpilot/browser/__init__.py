"""
Browser module for resolving capabilities, opening sessions and driving pages.

This package contains components for turning configuration into local or
remote WebDriver sessions and for interacting with pages that load content
asynchronously.
"""

from .capabilities import Browser, CapabilityDescriptor, Platform, resolve
from .driver import (DriverBinarySelector, chromedriver_selector,
                     create_local_session, create_remote_session, open_session)
from .element import Element
from .session import Session
from .settle import (SettleResult, SettleStatus, SettleWaitConfig,
                     SettleWaitPoller)

__all__ = [
    "Browser",
    "CapabilityDescriptor",
    "Platform",
    "resolve",
    "DriverBinarySelector",
    "chromedriver_selector",
    "create_local_session",
    "create_remote_session",
    "open_session",
    "Element",
    "Session",
    "SettleResult",
    "SettleStatus",
    "SettleWaitConfig",
    "SettleWaitPoller",
]
