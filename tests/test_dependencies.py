"""
Tests for the dependency scanners.

Tests Perl and Python dependency extraction, resolution and graph
construction.
"""

import pytest
from digraph.scan import (
    Dependency,
    PerlScanner,
    PythonScanner,
    extract_imports_from_source,
)
from digraph.scan.perl import module_filename
from digraph.writer import dumps
from tests.fixtures import (
    PERL_GETOPT,
    PERL_HELPERS,
    PERL_SCRIPT,
    PERL_UTIL,
    PYTHON_BROKEN,
    PYTHON_HELPERS,
    PYTHON_MAIL,
    PYTHON_MAIN,
    PYTHON_MODELS,
    PYTHON_SETTINGS,
    PYTHON_VIEWS,
    write_tree,
)


@pytest.fixture(autouse=True)
def no_perl5lib(monkeypatch):
    """Keep the caller's PERL5LIB out of the search path."""
    monkeypatch.delenv("PERL5LIB", raising=False)


@pytest.fixture
def perl_project(tmp_path):
    """A Perl script with a library directory."""
    write_tree(
        tmp_path,
        {
            "script.pl": PERL_SCRIPT,
            "lib/Getopt/Long.pm": PERL_GETOPT,
            "lib/My/Util.pm": PERL_UTIL,
            "lib/helpers.pl": PERL_HELPERS,
        },
    )
    return tmp_path


@pytest.fixture
def python_project(tmp_path):
    """A Python application with nested packages."""
    write_tree(
        tmp_path,
        {
            "main.py": PYTHON_MAIN,
            "settings.py": PYTHON_SETTINGS,
            "app/__init__.py": "",
            "app/models.py": PYTHON_MODELS,
            "app/views.py": PYTHON_VIEWS,
            "app/helpers.py": PYTHON_HELPERS,
            "app/services/__init__.py": "",
            "app/services/mail.py": PYTHON_MAIL,
        },
    )
    return tmp_path


def edge_pairs(result):
    """(from label, to label) for every edge of a scan."""
    return [(e.from_node.label, e.to_node.label) for e in result.edges]


class TestPerlExtraction:
    """Tests for Perl dependency extraction."""

    def test_extracts_use_and_require(self):
        """Test the dependencies found in a script."""
        deps = PerlScanner().extract_dependencies(PERL_SCRIPT, None)

        assert [(d.name, d.filename) for d in deps] == [
            ("Getopt::Long", "Getopt/Long.pm"),
            ("My::Util", "My/Util.pm"),
            ("helpers.pl", "helpers.pl"),
            ("Missing::Module", "Missing/Module.pm"),
        ]

    def test_line_numbers(self):
        """Test that declarations carry their line number."""
        deps = PerlScanner().extract_dependencies(PERL_SCRIPT, None)

        assert deps[0].line == 5

    def test_double_quoted_require(self):
        """Test require with a double-quoted file name."""
        deps = PerlScanner().extract_dependencies('require "My/Util.pm";\n', None)

        assert deps == [Dependency("My/Util.pm", "My/Util.pm", 1)]

    def test_module_with_import_list(self):
        """Test use statements with import lists."""
        deps = PerlScanner().extract_dependencies("use POSIX qw(floor);\n", None)

        assert deps[0].name == "POSIX"

    def test_pod_and_end_skipped(self):
        """Test that POD blocks and text after __END__ are ignored."""
        deps = PerlScanner().extract_dependencies(PERL_SCRIPT, None)
        names = {d.name for d in deps}

        assert "Inside::Pod" not in names
        assert "After::End" not in names

    def test_pragmas_and_versions_skipped(self):
        """Test that strict, vars, subs and versions are not dependencies."""
        source = "use strict;\nuse vars qw($x);\nuse subs;\nuse v5.10;\nrequire 5.006;\n"

        assert PerlScanner().extract_dependencies(source, None) == []

    def test_module_filename(self):
        """Test module name to file name mapping."""
        assert module_filename("IO::Socket::INET") == "IO/Socket/INET.pm"
        assert module_filename("Carp") == "Carp.pm"


class TestPerlScan:
    """Tests for scanning Perl files."""

    def test_graph(self, perl_project):
        """Test nodes and edges of a Perl scan."""
        script = str(perl_project / "script.pl")
        result = PerlScanner(include_dirs=[perl_project / "lib"]).scan(script)

        assert result.root.label == script
        assert set(result.nodes) == {
            script, "Getopt::Long", "My::Util", "helpers.pl", "My/Util.pm",
        }
        assert edge_pairs(result) == [
            (script, "Getopt::Long"),
            (script, "My::Util"),
            ("My::Util", "Getopt::Long"),
            (script, "helpers.pl"),
            ("helpers.pl", "My/Util.pm"),
            ("helpers.pl", "My::Util"),
        ]
        assert result.files_scanned == 4

    def test_missing_reported(self, perl_project):
        """Test that unresolved dependencies are listed."""
        script = str(perl_project / "script.pl")
        result = PerlScanner(include_dirs=[perl_project / "lib"]).scan(script)

        assert result.missing == [(script, "Missing::Module", "Missing/Module.pm")]

    def test_ascii_tree(self, perl_project):
        """Test the ASCII tree lists each file once."""
        result = PerlScanner(include_dirs=[perl_project / "lib"]).scan(perl_project / "script.pl")

        assert result.ascii_tree()[1:] == [
            "    -> Getopt::Long",
            "    -> My::Util",
            "    -> helpers.pl",
        ]

    def test_verbose_tree(self, perl_project):
        """Test that verbose mode lists repeated dependencies."""
        scanner = PerlScanner(include_dirs=[perl_project / "lib"], verbose=True)
        result = scanner.scan(perl_project / "script.pl")

        assert [name for _, name in result.tree[1:]] == [
            "Getopt::Long",
            "My::Util",
            "Getopt::Long",
            "helpers.pl",
            "My/Util.pm",
            "My::Util",
        ]
        assert [depth for depth, _ in result.tree] == [0, 1, 1, 2, 1, 2, 2]
        assert result.edge_count == 6
        assert result.files_scanned == 4

    def test_perl5lib_search_path(self, perl_project, monkeypatch):
        """Test that PERL5LIB directories are searched."""
        monkeypatch.setenv("PERL5LIB", str(perl_project / "lib"))

        result = PerlScanner().scan(perl_project / "script.pl")

        assert "My::Util" in result.nodes

    def test_include_dirs_searched_in_order(self, perl_project, tmp_path):
        """Test that the first include directory wins."""
        write_tree(tmp_path / "first", {"My/Util.pm": "use First::Only;\n"})
        scanner = PerlScanner(include_dirs=[tmp_path / "first", perl_project / "lib"])

        result = scanner.scan(perl_project / "script.pl")

        assert ("My::Util", "First::Only", "First/Only.pm") in result.missing

    def test_nothing_found(self, perl_project):
        """Test a scan with an empty search path."""
        result = PerlScanner().scan(perl_project / "script.pl")

        assert result.node_count == 1
        assert len(result.missing) == 4

    def test_missing_root(self, tmp_path):
        """Test that a missing root file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            PerlScanner().scan(tmp_path / "nope.pl")

    def test_mutual_dependency_terminates(self, tmp_path):
        """Test that modules using each other end the recursion."""
        write_tree(tmp_path, {"A.pm": "use B;\n", "B.pm": "use A;\n", "main.pl": "use A;\n"})

        result = PerlScanner(include_dirs=[tmp_path]).scan(tmp_path / "main.pl")

        assert set(edge_pairs(result)) == {
            (str(tmp_path / "main.pl"), "A"),
            ("A", "B"),
            ("B", "A"),
        }
        output = dumps(result.root)
        assert 'r("' in output


class TestPythonExtraction:
    """Tests for Python import extraction."""

    def test_plain_imports(self):
        """Test import statements, including several on one line."""
        deps = extract_imports_from_source("import os, sys\nimport a.b.c as c\n")

        assert [(d.name, d.filename, d.level) for d in deps] == [
            ("os", "os", 0),
            ("sys", "sys", 0),
            ("a.b.c", "a/b/c", 0),
        ]

    def test_from_imports(self):
        """Test absolute and relative from-imports."""
        source = (
            "from a.b import c\n"
            "from . import x, y\n"
            "from ..pkg import z\n"
            "from . import *\n"
        )
        deps = extract_imports_from_source(source)

        assert [(d.name, d.filename, d.level) for d in deps] == [
            ("a.b", "a/b", 0),
            (".x", "x", 1),
            (".y", "y", 1),
            ("..pkg", "pkg", 2),
            (".", "", 1),
        ]

    def test_nested_imports_and_lines(self):
        """Test imports inside functions and their line numbers."""
        deps = extract_imports_from_source(PYTHON_MAIN)

        assert [d.name for d in deps] == [
            "os", "app.models", "app.views", "app.services.mail", "json",
        ]
        assert deps[-1].line == 8


class TestPythonScan:
    """Tests for scanning Python files."""

    def test_graph(self, python_project):
        """Test nodes of a Python scan, including relative imports."""
        main = str(python_project / "main.py")
        result = PythonScanner().scan(main)

        assert set(result.nodes) == {
            main,
            "app.models",
            "app.views",
            "app.helpers",
            "app.services.mail",
            "settings",
        }
        assert result.files_scanned == 6

    def test_missing_modules(self, python_project):
        """Test that modules outside the search path are missing."""
        main = str(python_project / "main.py")
        result = PythonScanner().scan(main)

        assert [(p, n) for p, n, _ in result.missing] == [(main, "os"), (main, "json")]

    def test_relative_edges(self, python_project):
        """Test edges created from relative imports."""
        result = PythonScanner().scan(python_project / "main.py")
        pairs = edge_pairs(result)

        assert ("app.views", "app.helpers") in pairs
        assert ("app.views", "app.models") in pairs
        assert ("app.services.mail", "app.models") in pairs
        assert ("app.services.mail", "settings") in pairs

    def test_relative_imports_share_absolute_nodes(self, python_project):
        """Test that one module imported both ways is a single node."""
        result = PythonScanner().scan(python_project / "main.py")
        models = result.nodes["app.models"]

        assert {e.from_node.label for e in models.incoming_edges()} == {
            str(python_project / "main.py"),
            "app.views",
            "app.services.mail",
        }

    def test_same_relative_name_in_sibling_packages(self, tmp_path):
        """Test that "from . import util" in two packages gives two nodes."""
        write_tree(
            tmp_path,
            {
                "main.py": "import a.x\nimport b.y\n",
                "a/x.py": "from . import util\n",
                "a/util.py": "",
                "b/y.py": "from . import util\n",
                "b/util.py": "",
            },
        )

        result = PythonScanner().scan(tmp_path / "main.py")

        assert "a.util" in result.nodes
        assert "b.util" in result.nodes
        assert ("a.x", "a.util") in edge_pairs(result)
        assert ("b.y", "b.util") in edge_pairs(result)
        assert result.files_scanned == 5

    def test_relative_import_beyond_top_level(self, tmp_path):
        """Test that a relative import above the search path keeps its name."""
        write_tree(tmp_path, {"main.py": "from .. import outside\n"})

        result = PythonScanner().scan(tmp_path / "main.py")

        assert [n for _, n, _ in result.missing] == ["..outside"]

    def test_package_import(self, python_project):
        """Test that importing a package resolves its __init__."""
        write_tree(python_project, {"entry.py": "import app\nfrom app import *\n"})

        result = PythonScanner().scan(python_project / "entry.py")

        assert "app" in result.nodes
        assert result.missing == []

    def test_include_dirs(self, python_project, tmp_path_factory):
        """Test resolving against an extra include directory."""
        lib = tmp_path_factory.mktemp("lib")
        write_tree(lib, {"json/__init__.py": "", "os.py": ""})

        result = PythonScanner(include_dirs=[lib]).scan(python_project / "main.py")

        assert result.missing == []
        assert {"os", "json"} <= set(result.nodes)

    def test_syntax_error_recorded(self, python_project):
        """Test that unparsable files are recorded and skipped."""
        write_tree(python_project, {"broken.py": PYTHON_BROKEN, "uses.py": "import broken\n"})

        result = PythonScanner().scan(python_project / "uses.py")

        assert "broken" in result.nodes
        assert len(result.errors) == 1
        assert result.errors[0][0].endswith("broken.py")
