#!/usr/bin/env python3
"""
Form interaction module.

This module combines locate, act and settle into single calls for the
common form operations: clicking, typing into fields, picking options and
setting radio buttons and checkboxes.
"""

import logging
from typing import List, Optional

from selenium.common.exceptions import NoSuchElementException
from selenium.webdriver.support.ui import Select

from ..errors import ElementNotFoundError, UnsupportedElementError
from .common.interface import Locator
from .element import Element, describe_locator

logger = logging.getLogger(__name__)

TEXT_INPUT_TYPES = {"text", "password", "number", "url", "email", "search", "tel"}


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "on", "1")
    return bool(value)


def _input_type(element: Element) -> str:
    return (element.get_attribute("type") or "text").lower()


def _warn_ignored(elements: List[Element], locator: Locator):
    if len(elements) > 1:
        logger.warning(
            f"{len(elements)} elements found by {describe_locator(locator)}, ignoring all but the first"
        )


class FormInteractions:
    """
    Locate-act-settle helpers mixed into Session.

    Expects the host class to provide find_element, find_elements and
    wait_for_settle.
    """

    def click_element(self, locator: Locator) -> Element:
        """
        Find an element and click it, waiting for async calls afterward.

        Returns:
            Element: The element clicked on
        """
        element = self._first_match(locator)
        logger.debug(f"found element {describe_locator(locator)}")
        element.click()
        return element

    def click_element_no_wait(self, locator: Locator) -> Element:
        """Find an element and click it without a settle wait."""
        element = self._first_match(locator)
        element.click_no_wait()
        return element

    def get_input_value(self, locator: Locator) -> Optional[str]:
        """
        Find an input and read its value.

        Select menus report their first selected option; radio and checkbox
        groups report the selected member.

        Returns:
            str: The value, or None when nothing matched, nothing is selected, or the value is blank
        """
        elements = self.find_elements(*locator)
        if not elements:
            logger.warning(f"no input element found by {describe_locator(locator)}")
            return None

        element = None
        first = elements[0]
        if len(elements) == 1:
            if first.tag_name.lower() == "select":
                try:
                    element = Select(first.element).first_selected_option
                except NoSuchElementException:
                    element = None
            else:
                element = first
        elif _input_type(first) in ("radio", "checkbox"):
            for candidate in elements:
                if candidate.is_selected():
                    element = candidate
                    break
        else:
            _warn_ignored(elements, locator)
            element = first

        if element is None:
            logger.warning(f"no input element was found to be selected by {describe_locator(locator)}")
            return None

        # blank values read the same as missing ones
        value = element.get_attribute("value")
        if value == "":
            return None
        return value

    def send_input(self, locator: Locator, value) -> Optional[Element]:
        """
        Set a field's value, appending to whatever text it already holds.

        Returns:
            Element: The element operated on, or None when value is None
        """
        if value is None:
            return None
        logger.info(f"sending input value [{value}] to {describe_locator(locator)}...")
        return self._set_input(locator, value, clear=False)

    def edit_input(self, locator: Locator, value) -> Optional[Element]:
        """
        Set a field's value, clearing it first.

        Returns:
            Element: The element operated on, or None when value is None
        """
        if value is None:
            return None
        logger.info(f"editing input value [{value}] of {describe_locator(locator)}...")
        return self._set_input(locator, value, clear=True)

    def select_by_text(self, locator: Locator, text) -> Optional[Element]:
        """
        Select an option by its visible text.

        When the locator matches several menus the first one is used.

        Returns:
            Element: The select menu, or None when text is None
        """
        if text is None:
            return None
        element = self._first_match(locator)
        logger.info(f"selecting option by visible text [{text}] from {element.describe()}...")
        Select(element.element).select_by_visible_text(str(text))
        self.wait_for_settle(f"select {element.describe()}")
        return element

    def _first_match(self, locator: Locator) -> Element:
        elements = self.find_elements(*locator)
        if not elements:
            raise ElementNotFoundError(f"element not found by {describe_locator(locator)}", locator)
        _warn_ignored(elements, locator)
        return elements[0]

    def _set_input(self, locator: Locator, value, clear: bool) -> Element:
        elements: List[Element] = self.find_elements(*locator)
        if not elements:
            raise ElementNotFoundError(f"input element not found by {describe_locator(locator)}", locator)

        element = elements[0]
        tag_name = element.tag_name.lower()

        if tag_name == "input":
            input_type = _input_type(element)
            if input_type in TEXT_INPUT_TYPES:
                _warn_ignored(elements, locator)
                self._type_into(element, value, clear)
            elif input_type == "radio":
                element = self._choose_radio(elements, locator, str(value))
            elif input_type == "checkbox":
                _warn_ignored(elements, locator)
                self._set_checkbox(element, _as_bool(value))
            else:
                raise UnsupportedElementError(f"not able to handle input type {input_type}")
        elif tag_name == "textarea":
            _warn_ignored(elements, locator)
            self._type_into(element, value, clear)
        elif tag_name == "select":
            _warn_ignored(elements, locator)
            logger.info(f"selecting value [{value}] from select menu {element.describe()}...")
            Select(element.element).select_by_value(str(value))
        else:
            raise UnsupportedElementError(f"not able to handle tag name {tag_name}")

        self.wait_for_settle(f"setting input {element.describe()}")
        return element

    @staticmethod
    def _type_into(element: Element, value, clear: bool):
        if clear:
            element.clear()
        element.send_keys(str(value))

    @staticmethod
    def _choose_radio(elements: List[Element], locator: Locator, value: str) -> Element:
        for candidate in elements:
            if candidate.get_attribute("value") == value:
                logger.info(f"clicking radio element value [{value}]...")
                candidate.click_no_wait()
                return candidate
        raise ElementNotFoundError(f"no radio button with value [{value}] found by {describe_locator(locator)}", locator)

    @staticmethod
    def _set_checkbox(element: Element, check: bool):
        selected = element.is_selected()
        logger.info(f"checkbox {element.describe()} is currently {'selected' if selected else 'not selected'}...")
        if selected != check:
            logger.info(f"{'checking' if check else 'unchecking'} checkbox {element.describe()}...")
            element.click_no_wait()
