"""
Shared fixtures and hand-written backend doubles.

FakeDriver and FakeElement implement just enough of the WebDriver and
WebElement surface for the session layer, so no browser is started.
"""

from unittest.mock import MagicMock

import pytest
from selenium.common.exceptions import NoSuchElementException

from webpilot.browser.capabilities import Browser, CapabilityDescriptor, Platform
from webpilot.browser.session import Session
from webpilot.cli.config import WebDriverConfig


class FakeElement:
    def __init__(self, tag_name="input", displayed=True, selected=False, text="", **attributes):
        self.tag_name = tag_name
        self.displayed = displayed
        self.selected = selected
        self.text = text
        self.attributes = {"value": ""}
        self.attributes.update(attributes)
        self.clicks = 0
        self.submits = 0
        self.children = {}

    def click(self):
        self.clicks += 1
        if self.attributes.get("type") in ("checkbox", "radio"):
            self.selected = not self.selected if self.attributes["type"] == "checkbox" else True

    def submit(self):
        self.submits += 1

    def clear(self):
        self.attributes["value"] = ""

    def send_keys(self, *value):
        self.attributes["value"] = self.attributes.get("value", "") + "".join(value)

    def get_attribute(self, name):
        return self.attributes.get(name)

    def is_displayed(self):
        return self.displayed

    def is_selected(self):
        return self.selected

    def find_element(self, by, value):
        found = self.children.get((by, value))
        if not found:
            raise NoSuchElementException(f"no child {by}={value}")
        return found[0]

    def find_elements(self, by, value):
        return list(self.children.get((by, value), []))


class FakeDriver:
    def __init__(self, elements=None, script_results=None):
        self.elements = elements or {}
        self.script_results = list(script_results or [])
        self.scripts = []
        self.implicit_waits = []
        self.visited = []
        self.refreshes = 0
        self.session_id = "abc123"
        self.current_url = "about:blank"
        self.title = "Fake Page"
        self.page_source = "<html></html>"
        self.window_handles = ["main"]
        self.switch_to = MagicMock()
        self.closed = False
        self.quit_called = False

    def find_element(self, by, value):
        found = self.elements.get((by, value))
        if not found:
            raise NoSuchElementException(f"no element {by}={value}")
        return found[0]

    def find_elements(self, by, value):
        return list(self.elements.get((by, value), []))

    def execute_script(self, script, *args):
        self.scripts.append(script)
        if self.script_results:
            return self.script_results.pop(0)
        return 0

    def implicitly_wait(self, seconds):
        self.implicit_waits.append(seconds)

    def get(self, url):
        self.visited.append(url)
        self.current_url = url

    def refresh(self):
        self.refreshes += 1

    def get_screenshot_as_png(self):
        return b"\x89PNG fake"

    def close(self):
        self.closed = True

    def quit(self):
        self.quit_called = True


@pytest.fixture
def descriptor():
    return CapabilityDescriptor(Browser.CHROME, Platform.LINUX, "120", True)


@pytest.fixture
def config():
    return WebDriverConfig({"webdriver.wait": "7"})


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_session(config, descriptor, sleeps):
    """Build a Session around a FakeDriver, recording poller sleeps."""

    def _make(driver=None, config=config, grid_url=None):
        return Session(driver or FakeDriver(), config, descriptor, grid_url=grid_url, sleep=sleeps.append)

    return _make
