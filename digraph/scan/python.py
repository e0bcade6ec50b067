"""
Python Dependency Scanner

Finds the modules a Python source file imports, using LibCST:

    import a.b               -> a/b.py or a/b/__init__.py
    from a.b import c        -> a/b.py or a/b/__init__.py
    from .sibling import x   -> sibling.py next to the importing file
    from .. import pkg       -> pkg.py or pkg/__init__.py one level up

The search path is the directory of the scanned file followed by the
explicit include directories. Modules outside it (the standard library,
installed packages) are reported as not found unless their location is
passed as an include directory.

Relative imports are named after the module they reach, resolved against
the importing package: "from . import util" in a/x.py gives the node
"a.util", so sibling packages with modules of the same name stay apart.
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional

import libcst as cst
from libcst.helpers import get_full_name_for_node
from libcst.metadata import MetadataWrapper, PositionProvider

from digraph.scan.dependencies import Dependency, DependencyScanner


class ImportCollector(cst.CSTVisitor):
    """
    CST Visitor that collects import statements.

    Handles:
        - Plain imports, including several modules on one line
        - from-imports, absolute and relative
        - Imports nested inside functions, classes and conditionals

    Usage:
        wrapper = MetadataWrapper(module)
        collector = ImportCollector()
        wrapper.visit(collector)
        dependencies = collector.dependencies
    """

    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(self) -> None:
        self.dependencies: list[Dependency] = []

    def visit_Import(self, node: cst.Import) -> bool:
        for alias in node.names:
            name = get_full_name_for_node(alias.name)
            if name:
                self._add(name, 0, node)
        return False

    def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
        level = len(node.relative)

        if node.module is not None:
            module = get_full_name_for_node(node.module)
            if module:
                self._add(module, level, node)
        elif isinstance(node.names, cst.ImportStar):
            # from . import *
            self._add("", level, node)
        else:
            # from . import a, b: each name is a module of the package
            for alias in node.names:
                name = get_full_name_for_node(alias.name)
                if name:
                    self._add(name, level, node)

        return False

    def _add(self, module: str, level: int, node: cst.CSTNode) -> None:
        try:
            line = self.get_metadata(PositionProvider, node).start.line
        except KeyError:
            line = 0

        self.dependencies.append(
            Dependency(
                name="." * level + module,
                filename=module.replace(".", "/"),
                line=line,
                level=level,
            )
        )


def extract_imports_from_source(source: str) -> list[Dependency]:
    """
    Extract all imports from Python source code.

    Args:
        source: Python source code as a string

    Returns:
        One Dependency per imported module, in source order

    Raises:
        libcst.ParserSyntaxError: If the source code has syntax errors

    Example:
        >>> deps = extract_imports_from_source("import os\\nfrom . import util\\n")
        >>> [d.name for d in deps]
        ['os', '.util']
    """
    wrapper = MetadataWrapper(cst.parse_module(source))
    collector = ImportCollector()
    wrapper.visit(collector)
    return collector.dependencies


def package_parts(module_path: Path, search_path: list[Path]) -> list[str]:
    """
    Dotted package of a module file, as a list of names.

    The package is taken relative to the first search path directory that
    contains the file. Files outside the search path climb parent
    directories for as long as they hold an __init__.py.

    Example:
        >>> package_parts(Path("/src/app/services/mail.py"), [Path("/src")])
        ['app', 'services']
    """
    path = module_path.resolve()
    for directory in search_path:
        try:
            relative = path.relative_to(directory.resolve())
        except ValueError:
            continue
        return list(relative.parent.parts)

    parts: list[str] = []
    package = path.parent
    while (package / "__init__.py").is_file():
        parts.insert(0, package.name)
        package = package.parent
    return parts


class PythonScanner(DependencyScanner):
    """Dependency scanner for Python modules."""

    language = "python"

    parse_errors = (cst.ParserSyntaxError,)

    def search_path(self, root: Path) -> list[Path]:
        return [root.parent] + list(self.include_dirs)

    def candidates(self, dependency: Dependency) -> list[str]:
        if not dependency.filename:
            return ["__init__.py"]
        return [f"{dependency.filename}.py", f"{dependency.filename}/__init__.py"]

    def resolve(
        self,
        dependency: Dependency,
        importer: Path,
        search_path: list[Path],
    ) -> Optional[Path]:
        if dependency.level == 0:
            return super().resolve(dependency, importer, search_path)

        # One dot is the importer's own package, each further dot goes up
        package = importer.parent
        for _ in range(dependency.level - 1):
            package = package.parent
        return super().resolve(dependency, importer, [package])

    def qualify(
        self,
        dependency: Dependency,
        importer: Path,
        search_path: list[Path],
    ) -> Dependency:
        if dependency.level == 0:
            return dependency

        package = package_parts(importer, search_path)
        up = dependency.level - 1
        if up > len(package):
            # Beyond the top-level package; keep the dotted name
            return dependency

        parts = package[: len(package) - up]
        if dependency.filename:
            parts.append(dependency.filename.replace("/", "."))
        if not parts:
            return dependency
        return replace(dependency, name=".".join(parts))

    def extract_dependencies(self, source: str, path: Path) -> list[Dependency]:
        return extract_imports_from_source(source)
