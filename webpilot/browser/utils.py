#!/usr/bin/env python3
"""
Browser utility functions.

This module contains helpers shared by the session layer that do not need
a live browser.
"""

import os
from typing import Optional


def resolve_screenshot_path(base_dir: Optional[str], folder_name: Optional[str], file_name: str) -> str:
    """
    Work out where a screenshot should be saved, creating directories as needed.

    Args:
        base_dir: Configured screenshot directory, or None for the current directory
        folder_name: None to save directly in the base directory, a single folder
            name to save in a subfolder of it, or an absolute path to use as-is
        file_name: File name without extension

    Returns:
        str: Absolute path of the .png file
    """
    if folder_name and os.path.isabs(folder_name):
        folder = os.path.realpath(folder_name)
    else:
        base = os.path.realpath(base_dir or "./")
        os.makedirs(base, exist_ok=True)

        if folder_name is None:
            folder = base
        else:
            # a nested path collapses into a single folder name
            sub_folder = folder_name.replace(os.sep, "").replace("/", "")
            folder = os.path.join(base, sub_folder)
            os.makedirs(folder, exist_ok=True)

    return os.path.join(folder, f"{file_name}.png")


def write_screenshot(path: str, png: bytes) -> str:
    """Write raw PNG bytes to path and return the path."""
    with open(path, "wb") as f:
        f.write(png)
    return path
