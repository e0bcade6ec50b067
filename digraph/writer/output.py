"""
Graph Output

Entry points for serializing a graph: pick a writer by format name and
send its output to a file or a string.
"""

from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING

from digraph.errors import SaveError, UnsupportedFormatError
from digraph.writer.davinci import DaVinciWriter

if TYPE_CHECKING:
    from digraph.models import Node


DEFAULT_FORMAT = "daVinci"

# Format name -> writer class
FORMATS: dict[str, type[DaVinciWriter]] = {
    DaVinciWriter.name: DaVinciWriter,
}


def get_writer(format_name: str) -> type[DaVinciWriter]:
    """
    Look up the writer class for a format.

    Format names are matched case-insensitively.

    Raises:
        UnsupportedFormatError: If no writer is registered for the name
    """
    for name, writer_class in FORMATS.items():
        if name.lower() == str(format_name).lower():
            return writer_class
    raise UnsupportedFormatError(format_name, sorted(FORMATS))


def save(root: "Node", path: Path | str, format: str = DEFAULT_FORMAT) -> None:
    """
    Save the graph reachable from root into a file.

    The whole graph is rendered before the file is opened, so an
    unsupported format or a failing traversal never creates or truncates
    anything.

    Args:
        root: Node to start the traversal from
        path: File to create (or truncate)
        format: Output format name

    Raises:
        UnsupportedFormatError: If the format is unknown
        SaveError: If the file cannot be opened or written
    """
    text = dumps(root, format)
    path = Path(path)

    try:
        path.write_text(text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise SaveError(path, e.strerror or str(e)) from e


def dumps(root: "Node", format: str = DEFAULT_FORMAT) -> str:
    """
    Serialize the graph reachable from root into a string.

    Example:
        >>> root = Node(id="a", label="root")
        >>> print(dumps(root), end="")
        [
         l("a", n("anything", [a("OBJECT", "root")], [
         ]))
        ]
    """
    writer_class = get_writer(format)
    buffer = StringIO()
    writer_class(buffer).write(root)
    return buffer.getvalue()
