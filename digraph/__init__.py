"""
digraph

Build directed graphs out of nodes and edges carrying arbitrary
attributes, and save them for the daVinci graph visualization system.
"""

from digraph.errors import (
    GraphError,
    MissingEndpointError,
    SaveError,
    UnsupportedFormatError,
)
from digraph.models import Edge, Element, Node

__all__ = [
    "Edge",
    "Element",
    "Node",
    "GraphError",
    "MissingEndpointError",
    "SaveError",
    "UnsupportedFormatError",
]
__version__ = "1.1.0"
