#!/usr/bin/env python3
"""
Automation backend interface module.

This module defines the protocols the session layer relies on. Selenium's
WebDriver and WebElement satisfy them structurally; test doubles only need
to implement the same methods.
"""

from typing import Any, List, Optional, Protocol, Tuple

# (strategy, value) pair, e.g. (By.ID, "username")
Locator = Tuple[str, str]


class BackendElement(Protocol):
    """Protocol defining the element primitives used by the wrapper."""

    @property
    def tag_name(self) -> str:
        """Get the tag name of the element."""
        ...

    @property
    def text(self) -> str:
        """Get the text content of the element."""
        ...

    def click(self) -> None:
        ...

    def submit(self) -> None:
        ...

    def clear(self) -> None:
        ...

    def send_keys(self, *value: str) -> None:
        ...

    def get_attribute(self, name: str) -> Optional[str]:
        """Get the value of the specified attribute."""
        ...

    def is_displayed(self) -> bool:
        """Check if the element is visible."""
        ...

    def is_selected(self) -> bool:
        ...

    def find_element(self, by: str, value: str) -> "BackendElement":
        ...

    def find_elements(self, by: str, value: str) -> List["BackendElement"]:
        ...


class AutomationBackend(Protocol):
    """Protocol defining the session primitives used by the wrapper."""

    @property
    def session_id(self) -> Optional[str]:
        ...

    @property
    def current_url(self) -> str:
        """Get the current URL."""
        ...

    @property
    def window_handles(self) -> List[str]:
        ...

    def get(self, url: str) -> None:
        """Navigate to the specified URL."""
        ...

    def refresh(self) -> None:
        ...

    def find_element(self, by: str, value: str) -> BackendElement:
        """Find a single element using the specified selector strategy."""
        ...

    def find_elements(self, by: str, value: str) -> List[BackendElement]:
        """Find all elements matching the specified selector strategy."""
        ...

    def execute_script(self, script: str, *args: Any) -> Any:
        """Execute JavaScript in the browser context."""
        ...

    def implicitly_wait(self, time_to_wait: float) -> None:
        ...

    def get_screenshot_as_png(self) -> bytes:
        ...

    def close(self) -> None:
        """Close the current window."""
        ...

    def quit(self) -> None:
        """Close the browser and release resources."""
        ...
