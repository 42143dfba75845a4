#!/usr/bin/env python3
"""
Grid node lookup module.

This module asks a grid's control plane which execution node holds a
session. The lookup is made once, on demand, and is never retried.
"""

import logging
from urllib.parse import urlsplit

import requests

from ..errors import GridLookupError

logger = logging.getLogger(__name__)

LOOPBACK_ADDRESS = "127.0.0.1"
TEST_SESSION_PATH = "/grid/api/testsession"


def grid_host_and_port(grid_url: str):
    """
    Split a grid URL such as http://10.0.0.5:4444/wd/hub into host and port.

    Raises:
        GridLookupError: If the URL has no host or no explicit port
    """
    try:
        parts = urlsplit(grid_url or "")
        host, port = parts.hostname, parts.port
    except ValueError as e:
        raise GridLookupError(f"unable to parse grid url {grid_url!r}: {e}") from e
    if not host or port is None:
        raise GridLookupError(f"unable to parse host and port from grid url {grid_url!r}")
    return host, port


def parse_proxy_host(proxy_id: str) -> str:
    """
    Extract the host from a proxyId such as http://10.0.0.9:5555.

    Raises:
        GridLookupError: If the value is not shaped like scheme//host:port
    """
    if not isinstance(proxy_id, str) or "//" not in proxy_id:
        raise GridLookupError(f"unexpected proxyId {proxy_id!r} in grid test session")
    host = proxy_id.split("//", 1)[1].split(":", 1)[0].split("/", 1)[0]
    if not host:
        raise GridLookupError(f"unexpected proxyId {proxy_id!r} in grid test session")
    return host


def resolve_node_address(session, timeout: float = 10) -> str:
    """
    Find the address of the grid node running a session.

    Args:
        session: Session to look up
        timeout: Seconds to wait for the control plane to answer

    Returns:
        str: The node's host address, or the loopback address for local sessions

    Raises:
        GridLookupError: If the grid URL cannot be parsed, the request fails,
            or the response has no usable proxyId
    """
    if session.is_local:
        return LOOPBACK_ADDRESS

    host, port = grid_host_and_port(session.grid_url)
    url = f"http://{host}:{port}{TEST_SESSION_PATH}"
    logger.debug(f"querying grid test session api {url} for session {session.session_id}")

    try:
        response = requests.post(url, params={"session": session.session_id}, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        raise GridLookupError(f"grid test session request to {url} failed: {e}") from e
    except ValueError as e:
        raise GridLookupError(f"grid test session response from {url} is not JSON") from e

    if not isinstance(payload, dict) or "proxyId" not in payload:
        raise GridLookupError(f"grid test session response from {url} has no proxyId")

    proxy_id = payload["proxyId"]
    logger.debug(f"found proxy [{proxy_id}] in grid test session")
    return parse_proxy_host(proxy_id)
