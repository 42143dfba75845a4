"""
Webpilot package.

This package turns declarative configuration into local or grid-hosted
WebDriver sessions, and waits for a page's asynchronous calls to finish
after every interaction.
"""

__version__ = "1.0.0"

from .browser import Browser, Platform, Session, open_session, resolve
from .cli.config import WebDriverConfig, load_config
from .errors import (ConfigError, ElementNotFoundError, ElementNotVisibleError,
                     GridLookupError, LaunchError, SettleTimeoutError,
                     UnsupportedElementError, WebPilotError)
from .grid import resolve_node_address

__all__ = [
    "Browser",
    "Platform",
    "Session",
    "open_session",
    "resolve",
    "WebDriverConfig",
    "load_config",
    "resolve_node_address",
    "WebPilotError",
    "ConfigError",
    "LaunchError",
    "GridLookupError",
    "ElementNotFoundError",
    "ElementNotVisibleError",
    "UnsupportedElementError",
    "SettleTimeoutError",
]
