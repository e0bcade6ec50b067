"""
Perl Dependency Scanner

Finds the modules and files a Perl source file loads:

    use File::Path;          -> File/Path.pm
    require Carp;            -> Carp.pm
    require 'getopts.pl';    -> getopts.pl

Scanning is line based: statements must start their line, POD blocks are
skipped and everything after __END__ is ignored. The pragmas strict, vars
and subs, and version requirements such as ``use 5.006;``, are not
dependencies.

The search path is the explicit include directories followed by the
entries of the PERL5LIB environment variable.
"""

import os
import re
from pathlib import Path

from digraph.scan.dependencies import Dependency, DependencyScanner


POD_DIRECTIVE = re.compile(r"^=(\S+)")
END_MARKER = re.compile(r"^__END__")
REQUIRE_FILE = re.compile(r"""^\s*require\s+(?:'([^']+)'|"([^"]+)")""")
REQUIRE_MODULE = re.compile(r"^\s*require\s+([A-Za-z_][\w:]*)\s*;")
USE_MODULE = re.compile(r"^\s*use\s+([^\s;]+)")
VERSION_NUMBER = re.compile(r"^v?\d[\d._]*$")

PRAGMAS = frozenset({"strict", "vars", "subs"})


def module_filename(module: str) -> str:
    """Map a module name to its relative file name (Foo::Bar -> Foo/Bar.pm)."""
    return module.replace("::", "/") + ".pm"


class PerlScanner(DependencyScanner):
    """Dependency scanner for Perl scripts and modules."""

    language = "perl"

    # Perl sources are frequently not UTF-8
    decode_errors = "replace"

    def search_path(self, root: Path) -> list[Path]:
        perl5lib = os.environ.get("PERL5LIB", "")
        extra = [Path(entry) for entry in perl5lib.split(os.pathsep) if entry]
        return list(self.include_dirs) + extra

    def extract_dependencies(self, source: str, path: Path) -> list[Dependency]:
        dependencies: list[Dependency] = []
        in_pod = False

        for line_number, line in enumerate(source.splitlines(), start=1):
            if END_MARKER.match(line):
                break

            directive = POD_DIRECTIVE.match(line)
            if directive:
                in_pod = directive.group(1) != "cut"
                continue
            if in_pod:
                continue

            match = REQUIRE_FILE.match(line)
            if match:
                filename = match.group(1) or match.group(2)
                dependencies.append(Dependency(filename, filename, line_number))
                continue

            match = REQUIRE_MODULE.match(line) or USE_MODULE.match(line)
            if match:
                module = match.group(1)
                if module in PRAGMAS or VERSION_NUMBER.match(module):
                    continue
                dependencies.append(
                    Dependency(module, module_filename(module), line_number)
                )

        return dependencies
