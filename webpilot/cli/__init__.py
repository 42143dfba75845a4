"""
Command-line interface module.

This package contains modules for parsing command-line arguments
and managing webdriver configuration.
"""

from .argument_parser import create_parser, parse_args
from .config import WebDriverConfig, load_config, save_config

__all__ = ["create_parser", "parse_args", "WebDriverConfig", "load_config", "save_config"]
