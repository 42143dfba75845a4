"""
Grid module for querying the control plane of a remote execution grid.
"""

from .node import resolve_node_address

__all__ = ["resolve_node_address"]
