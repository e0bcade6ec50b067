"""
Scan module for digraph.

This module builds graphs from the outside world: the directory tree
under a path, or the source files a script depends on.
"""

from digraph.scan.dependencies import (
    Dependency,
    DependencyScan,
    DependencyScanner,
)
from digraph.scan.directory import DirectoryScan, build_directory_graph
from digraph.scan.perl import PerlScanner
from digraph.scan.python import PythonScanner, extract_imports_from_source

# Language name -> scanner class
SCANNERS: dict[str, type[DependencyScanner]] = {
    PerlScanner.language: PerlScanner,
    PythonScanner.language: PythonScanner,
}

__all__ = [
    "Dependency",
    "DependencyScan",
    "DependencyScanner",
    "DirectoryScan",
    "PerlScanner",
    "PythonScanner",
    "SCANNERS",
    "build_directory_graph",
    "extract_imports_from_source",
]
