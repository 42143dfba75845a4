"""
Common browser interfaces module.

This package contains the protocols shared by the session layer and any
automation backend it drives.
"""

from .interface import AutomationBackend, BackendElement, Locator

__all__ = ["AutomationBackend", "BackendElement", "Locator"]
