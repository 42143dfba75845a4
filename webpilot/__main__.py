#!/usr/bin/env python3
"""
Main entry point for webpilot.

This module opens a session from the command line, loads a page, waits for
it to settle and optionally saves a screenshot or reports the grid node.
"""

import logging
import sys
import traceback

from .browser.driver import open_session
from .cli.argument_parser import parse_args
from .cli.config import load_config_from_args, save_config
from .errors import WebPilotError
from .grid.node import resolve_node_address


def main(argv=None):
    """Main entry point for the command-line tool."""
    try:
        args = parse_args(argv)
        logging.basicConfig(
            level=getattr(logging, args.log_level),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        config = load_config_from_args(args)

        if args.save_config:
            save_config(config, args.save_config)
            if not args.url:
                return 0

        config.print_summary()

        session = open_session(config)
        try:
            session.get(args.url)
            result = session.wait_for_settle(f"loading {args.url}")
            print(f"- Page: {session.title} ({result.status.value} after {result.elapsed}s)")

            if args.screenshot:
                path = session.screenshot(args.screenshot_folder, args.screenshot)
                print(f"- Screenshot: {path}")

            if args.node_address:
                print(f"- Node address: {resolve_node_address(session)}")
        finally:
            session.quit()

        return 0

    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        return 130

    except WebPilotError as e:
        print(f"\nError: {e}")
        return 1

    except Exception as e:
        print(f"\nError: {e}")
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
