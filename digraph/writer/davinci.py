"""
daVinci Graph Writer

Serializes a directed graph into the term format read by the daVinci
graph visualization system (daVinci v2.0).

Traversal:
    Depth-first from the root node along outgoing edges, in edge
    construction order. The first time a node is reached it is written out
    in full; every later visit writes only a reference to its ID. This
    keeps the output finite on cyclic graphs and writes shared subgraphs
    once.

Output Shape:
    [
     l("Node00001", n("anything", [a("OBJECT", "root")], [
      l("Edge00001", e("anything", [],
       l("Node00002", n("anything", [a("OBJECT", "child")], [
       ]))
      ))
     ]))
    ]

    Indentation is one space per level of nesting. A self-loop is written
    with the reference inline, directly before the closing parentheses of
    its edge.

    The traversal keeps its own stack of open nodes, so the depth of a
    graph is not limited by the interpreter's recursion limit.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from digraph.models import Edge, Node


def quote(value: object) -> str:
    """Render a value as a double-quoted daVinci string."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def reference(node: "Node") -> str:
    """Render a reference to an already written node."""
    return f"r({quote(node.id)})"


@dataclass
class _Frame:
    """A node whose term is open, and the next outgoing edge to write."""

    node: "Node"
    depth: int
    edges: list["Edge"]
    index: int = 0


class DaVinciWriter:
    """
    Writes the graph reachable from a node to a text stream.

    The set of nodes already written belongs to a single write() call, so
    one writer can be reused and separate writers never interfere.

    Usage:
        with open("graph.daVinci", "w") as stream:
            DaVinciWriter(stream).write(root)
    """

    name = "daVinci"

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._drawn: set[str] = set()

    def write(self, root: "Node") -> None:
        """Write the complete graph term for everything under root."""
        self._drawn = set()
        self._stream.write("[\n")

        stack: list[_Frame] = []
        self._open_node(root, 1, stack)

        while stack:
            frame = stack[-1]
            indent = " " * frame.depth

            # The previous edge's TO end is finished: close that edge
            if frame.index > 0:
                self._stream.write(f"{indent} ))\n")
                if frame.index < len(frame.edges):
                    self._stream.write(f"{indent},\n")

            if frame.index == len(frame.edges):
                self._stream.write(f"{indent}]))\n")
                stack.pop()
                continue

            edge = frame.edges[frame.index]
            frame.index += 1
            self._stream.write(f'{indent} l({quote(edge.id)}, e("anything", [],\n')

            if edge.is_self_loop:
                # The node is already marked as drawn, so point back at it
                self._stream.write(reference(frame.node))
            else:
                self._open_node(edge.to_node, frame.depth + 2, stack)

        self._stream.write("]\n")

    def _open_node(self, node: "Node", depth: int, stack: list[_Frame]) -> None:
        """
        Write the opening of a node term and push it onto the stack.

        A node that was already written gets a one-line reference instead,
        and nothing is pushed.
        """
        indent = " " * depth

        if node.id in self._drawn:
            self._stream.write(f"{indent}{reference(node)}\n")
            return
        self._drawn.add(node.id)

        attributes = ""
        if node.label is not None:
            attributes = f'a("OBJECT", {quote(node.label)})'

        self._stream.write(
            f'{indent}l({quote(node.id)}, n("anything", [{attributes}], [\n'
        )
        stack.append(_Frame(node, depth, node.outgoing_edges()))
