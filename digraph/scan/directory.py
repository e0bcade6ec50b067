"""
Directory Tree Graph Builder

Builds a graph of a directory and all of its sub-directories: one node per
directory, labelled with its name, and one edge from each directory to
each of its children. Files are not included.

Design Decisions:
    - Children are visited in sorted order so repeated scans of the same
      tree produce identical graphs
    - Symlinked directories become leaf nodes unless explicitly followed,
      which keeps symlink loops from recursing forever
    - An unreadable sub-directory is recorded and skipped; only a bad root
      aborts the scan
"""

import fnmatch
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from digraph.models import Edge, Node


@dataclass
class DirectoryScan:
    """
    Result of scanning a directory tree.

    Attributes:
        root: Node for the directory that was scanned
        nodes: Every directory node, root first
        edges: Every parent -> child edge
        errors: (path, message) for each directory that could not be read
        scan_time_seconds: Total time taken for the scan
    """

    root: Node
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)
    scan_time_seconds: float = 0.0

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    @property
    def error_count(self) -> int:
        return len(self.errors)


def build_directory_graph(
    directory: Path | str,
    exclude_patterns: Optional[list[str]] = None,
    follow_symlinks: bool = False,
) -> DirectoryScan:
    """
    Build a graph of a directory and its sub-directories.

    Args:
        directory: Directory to scan; its node is labelled with this
            argument exactly as given
        exclude_patterns: Glob patterns matched against directory names;
            matching directories (and everything below them) are skipped
        follow_symlinks: Descend into symlinked directories

    Returns:
        DirectoryScan whose root node is ready to be saved

    Raises:
        FileNotFoundError: If the directory does not exist
        NotADirectoryError: If the path is not a directory

    Example:
        >>> scan = build_directory_graph("./my_project")
        >>> scan.root.save("dgraph.daVinci")
    """
    start_time = time.time()
    path = Path(directory)

    if not path.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    if not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    root = Node(label=str(directory))
    result = DirectoryScan(root=root, nodes=[root])

    _recurse(path, root, result, exclude_patterns or [], follow_symlinks)

    result.scan_time_seconds = time.time() - start_time
    return result


def _recurse(
    directory: Path,
    parent: Node,
    result: DirectoryScan,
    exclude_patterns: list[str],
    follow_symlinks: bool,
) -> None:
    """Add a node and an edge for every sub-directory, then descend."""
    try:
        with os.scandir(directory) as entries:
            children = sorted(
                (entry for entry in entries if entry.is_dir()),
                key=lambda entry: entry.name,
            )
    except OSError as e:
        result.errors.append((str(directory), e.strerror or str(e)))
        return

    for entry in children:
        if any(fnmatch.fnmatch(entry.name, pattern) for pattern in exclude_patterns):
            continue

        child = Node(label=entry.name)
        result.nodes.append(child)
        result.edges.append(Edge(parent, child))

        if entry.is_symlink() and not follow_symlinks:
            continue

        _recurse(Path(entry.path), child, result, exclude_patterns, follow_symlinks)
