"""
Source Dependency Graph Builder

Follows the dependencies of a source file (modules it uses, files it
requires) through a search path and builds a graph of them: one node per
dependency name and one edge from each file to each dependency it
declares. Language support lives in subclasses of DependencyScanner,
which only have to extract the declared dependencies of one file.

Design Decisions:
    - Nodes are keyed by the name a dependency was declared with, so the
      same module reached from different files shares one node. Names
      that depend on the declaring file (Python relative imports) are
      qualified first, see DependencyScanner.qualify()
    - Each (parent, dependency) pair produces at most one edge
    - Each file is read at most once per scan; cycles between files end
      there
    - All per-scan bookkeeping lives in a _ScanRun, never on the scanner,
      so one scanner can run any number of scans

Limitation:
    Dependencies are found statically. Anything loaded conditionally or
    computed at runtime is either missed or reported as not found.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from digraph.models import Edge, Node


@dataclass(frozen=True)
class Dependency:
    """
    A dependency declared in a source file.

    Attributes:
        name: Name as declared, used to label its node (e.g. "File::Path")
        filename: Relative path looked up on the search path
        line: 1-indexed line of the declaration
        level: Number of leading dots of a relative import, 0 otherwise
    """

    name: str
    filename: str
    line: int = 0
    level: int = 0


@dataclass
class DependencyScan:
    """
    Result of scanning the dependencies of one file.

    Attributes:
        root: Node for the file that was scanned
        nodes: Node for each dependency name, including the root
        edges: Every parent -> dependency edge
        tree: (depth, name) rows in traversal order, for ASCII display
        missing: (parent, name, filename) for dependencies not found
        errors: (path, message) for files that could not be read or parsed
        files_scanned: Number of files read
        scan_time_seconds: Total time taken for the scan
    """

    root: Node
    nodes: dict[str, Node] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    tree: list[tuple[int, str]] = field(default_factory=list)
    missing: list[tuple[str, str, str]] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)
    files_scanned: int = 0
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

    def ascii_tree(self) -> list[str]:
        """Render the traversal as indented lines, one per dependency."""
        return [
            "    " * depth + ("-> " if depth else "") + name
            for depth, name in self.tree
        ]


class DependencyScanner(ABC):
    """
    Base class for language-specific dependency scanners.

    Subclasses implement extract_dependencies(); they may also override
    search_path(), candidates() and qualify() to describe how declared
    names map to files and nodes.

    Attributes:
        include_dirs: Directories searched for dependencies, in order
        verbose: List every occurrence of a dependency in the tree rather
            than only the first one

    Usage:
        scanner = PerlScanner(include_dirs=["/usr/lib/perl5"])
        result = scanner.scan("script.pl")
        result.root.save("script.pl.daVinci")
    """

    language: str = ""

    # Exceptions from extract_dependencies() that mean "this file is broken"
    parse_errors: tuple[type[Exception], ...] = ()

    # Decoding errors policy used when reading source files
    decode_errors: str = "strict"

    def __init__(
        self,
        include_dirs: Optional[list[Path | str]] = None,
        verbose: bool = False,
    ) -> None:
        self.include_dirs = [Path(d) for d in include_dirs or []]
        self.verbose = verbose

    @abstractmethod
    def extract_dependencies(self, source: str, path: Path) -> list[Dependency]:
        """
        Extract the dependencies declared in one source file.

        Args:
            source: Contents of the file
            path: Location of the file, for resolving relative names

        Returns:
            Dependencies in the order they are declared
        """

    def search_path(self, root: Path) -> list[Path]:
        """Directories to resolve dependencies against for a scan of root."""
        return list(self.include_dirs)

    def candidates(self, dependency: Dependency) -> list[str]:
        """Relative file names that could satisfy a dependency."""
        return [dependency.filename]

    def qualify(
        self,
        dependency: Dependency,
        importer: Path,
        search_path: list[Path],
    ) -> Dependency:
        """Give a dependency the name its node is keyed by; as declared by default."""
        return dependency

    def resolve(
        self,
        dependency: Dependency,
        importer: Path,
        search_path: list[Path],
    ) -> Optional[Path]:
        """
        Find the file for a dependency.

        Returns:
            The first matching file on the search path, or None
        """
        for directory in search_path:
            for candidate in self.candidates(dependency):
                full_path = directory / candidate
                if full_path.is_file():
                    return full_path
        return None

    def scan(self, path: Path | str) -> DependencyScan:
        """
        Build the dependency graph of a source file.

        Args:
            path: File to start from; its node is labelled with this
                argument exactly as given

        Returns:
            DependencyScan whose root node is ready to be saved

        Raises:
            FileNotFoundError: If the file does not exist
        """
        start_time = time.time()
        file_path = Path(path)

        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        run = _ScanRun(self, file_path, str(path))
        run.check_file(file_path, 0, str(path), None)

        run.result.scan_time_seconds = time.time() - start_time
        return run.result


class _ScanRun:
    """Bookkeeping for a single DependencyScanner.scan() call."""

    def __init__(self, scanner: DependencyScanner, root_path: Path, root_name: str) -> None:
        self.scanner = scanner
        self.search_path = scanner.search_path(root_path)
        self.seen_files: set[Path] = set()
        self.edge_keys: set[tuple[str, str]] = set()
        self.result = DependencyScan(root=Node(label=root_name))
        self.result.nodes[root_name] = self.result.root

    def get_node(self, name: str) -> Node:
        """Get the node for a dependency name, creating it if needed."""
        node = self.result.nodes.get(name)
        if node is None:
            node = Node(label=name)
            self.result.nodes[name] = node
        return node

    def check_file(
        self,
        path: Path,
        depth: int,
        name: str,
        parent: Optional[str],
    ) -> None:
        """Record the edge into a file, then follow its own dependencies."""
        if parent is not None:
            key = (parent, name)
            # Several declarations can map to one file and one parent
            if key in self.edge_keys:
                return
            self.edge_keys.add(key)
            self.result.edges.append(Edge(self.get_node(parent), self.get_node(name)))

        file_key = path.resolve()
        already_seen = file_key in self.seen_files

        if already_seen and not self.scanner.verbose:
            return
        self.result.tree.append((depth, name))
        if already_seen:
            return
        self.seen_files.add(file_key)

        try:
            source = path.read_text(encoding="utf-8", errors=self.scanner.decode_errors)
        except (OSError, UnicodeDecodeError) as e:
            self.result.errors.append((str(path), str(e)))
            return

        self.result.files_scanned += 1

        try:
            dependencies = self.scanner.extract_dependencies(source, path)
        except self.scanner.parse_errors as e:
            self.result.errors.append((str(path), str(e)))
            return

        for dependency in dependencies:
            dependency = self.scanner.qualify(dependency, path, self.search_path)
            resolved = self.scanner.resolve(dependency, path, self.search_path)
            if resolved is None:
                self.result.missing.append((name, dependency.name, dependency.filename))
                continue
            self.check_file(resolved, depth + 1, dependency.name, name)
