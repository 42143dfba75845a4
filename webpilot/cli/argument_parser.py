#!/usr/bin/env python3
"""
Command-line argument parsing module.

This module provides functions for setting up and parsing command-line
arguments for webpilot.
"""

import argparse
from urllib.parse import urlparse

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _definition(text):
    """Parse a -D key=value definition."""
    key, separator, value = text.partition("=")
    if not separator or not key.strip():
        raise argparse.ArgumentTypeError(f"expected key=value, got {text!r}")
    return key.strip(), value.strip()


def create_parser():
    """
    Create the command-line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description='Open a configured WebDriver session, load a page and wait for its async calls to settle'
    )

    parser.add_argument('url', type=str, nargs='?', default=None,
                        help='URL to open (optional when only saving configuration)')

    # Session options
    session_group = parser.add_argument_group('Session Options')
    session_group.add_argument('--browser', type=str, default=None,
                        help='Browser to use: firefox, chrome, internet_explorer or headless')
    session_group.add_argument('--browser-version', type=str, default=None,
                        help='Browser version to request')
    session_group.add_argument('--platform', type=str, default=None,
                        help='Platform: local, xp, vista, linux, windows or mac (default: local)')
    session_group.add_argument('--grid-url', type=str, default=None,
                        help='Grid hub URL used when the platform is not local')

    # Output options
    output_group = parser.add_argument_group('Output Options')
    output_group.add_argument('--screenshot', type=str, default=None,
                        help='Save a screenshot with this file name (without extension)')
    output_group.add_argument('--screenshot-folder', type=str, default=None,
                        help='Folder for the screenshot, relative to the screenshot directory or absolute')
    output_group.add_argument('--node-address', action='store_true',
                        help='Print the address of the grid node running the session')
    output_group.add_argument('--log-level', type=str.upper, default='INFO', choices=LOG_LEVELS,
                        help='Logging level (default: INFO)')

    # Configuration file options
    config_group = parser.add_argument_group('Configuration Options')
    config_group.add_argument('--config', type=str, default=None,
                        help='Path to configuration file (JSON or properties)')
    config_group.add_argument('-D', '--define', type=_definition, action='append', default=[],
                        metavar='KEY=VALUE',
                        help='Set a configuration key, e.g. -D webdriver.async.enabled=true')
    config_group.add_argument('--save-config', type=str, default=None,
                        help='Save the resulting configuration to a JSON file')

    return parser


def parse_args(args=None):
    """
    Parse command-line arguments.

    Args:
        args: Command-line arguments to parse (uses sys.argv if None)

    Returns:
        argparse.Namespace: Parsed arguments

    Raises:
        SystemExit: If required arguments are missing or invalid
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.url is None and not parsed_args.save_config:
        parser.error("A URL is required unless --save-config is given")

    if parsed_args.url is not None:
        parsed_url = urlparse(parsed_args.url)
        if not parsed_url.scheme or not parsed_url.netloc:
            parser.error("Invalid URL. Please provide a valid URL (e.g., https://example.com)")

    if parsed_args.screenshot_folder and not parsed_args.screenshot:
        parser.error("--screenshot-folder requires --screenshot")

    return parsed_args
