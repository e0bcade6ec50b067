"""
Writer module for digraph.

This module serializes a graph, starting from a root node, into the
daVinci term format.
"""

from digraph.writer.davinci import DaVinciWriter
from digraph.writer.output import (
    DEFAULT_FORMAT,
    FORMATS,
    dumps,
    get_writer,
    save,
)

__all__ = [
    "DaVinciWriter",
    "DEFAULT_FORMAT",
    "FORMATS",
    "dumps",
    "get_writer",
    "save",
]
