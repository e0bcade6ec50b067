"""
CLI module for digraph.

The command-line interface providing the tree and deps commands.
"""

from cli.main import app

__all__ = ["app"]
