"""
Core Data Models for digraph

This module defines the object model used to build directed graphs:
- Element: Attribute store shared by nodes and edges
- Node: A vertex, which knows every edge incident to it
- Edge: A directed connection from one Node to another

Design Decisions:
    - Attribute names are case-insensitive and stored upper case
    - Well-known attributes (ID, LABEL, FROM, TO) get properties; anything
      else goes through get_attribute/set_attribute or item access
    - Edges register themselves on their endpoints when constructed, so a
      node's edge list is never populated directly by callers
    - Graphs are append-only: there is no way to remove a node or an edge

Graph Properties:
    - Directed, may contain cycles and self-loops
    - A node's edge list holds outgoing and incoming edges together,
      in edge construction order
"""

from itertools import count
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from digraph.errors import MissingEndpointError
from digraph.writer import DEFAULT_FORMAT, save as save_graph


# Called with (element, attribute name, new value) after the value is stored
AttributeCallback = Callable[["Element", str, Any], None]

# One counter per concrete class, shared by the whole process
_id_counters: dict[type, Iterator[int]] = {}


def _normalize(name: str) -> str:
    """Return the canonical (upper case) form of an attribute name."""
    return str(name).upper()


class Element:
    """
    Base class for graph elements: a bag of named attributes.

    Any number of attributes can be passed to the constructor or set later.
    A single callback may be registered per attribute name; it is invoked
    synchronously every time that attribute is set.

    If no ID attribute is given, a unique one is generated from the class
    name and a per-class sequence number, e.g. ``Node00001``.

    Usage:
        element = Element(label="hello", colour="red")
        element.set_attribute("WEIGHT", 3)
        element["weight"]              # -> 3
        element.get_attribute("size")  # -> None
    """

    def __init__(self, **attributes: Any) -> None:
        self._attributes: dict[str, Any] = {}
        self._callbacks: dict[str, AttributeCallback] = {}

        for name, value in attributes.items():
            self.set_attribute(name, value)

        if self.get_attribute("ID") is None:
            self.set_attribute("ID", self.generate_id())

    @property
    def id(self) -> str:
        """Unique identifier of this element."""
        return self._attributes["ID"]

    @id.setter
    def id(self, value: str) -> None:
        self.set_attribute("ID", value)

    @property
    def label(self) -> Optional[Any]:
        """Display label, or None if the element has none."""
        return self.get_attribute("LABEL")

    @label.setter
    def label(self, value: Any) -> None:
        self.set_attribute("LABEL", value)

    @property
    def attributes(self) -> dict[str, Any]:
        """A copy of all attributes, keyed by upper case name."""
        return dict(self._attributes)

    def set_attribute(self, name: str, value: Any) -> bool:
        """
        Store an attribute value, replacing any previous value.

        If a callback is registered for the attribute it is invoked after
        the value has been stored.

        Args:
            name: Attribute name (case-insensitive)
            value: New value

        Returns:
            Always True
        """
        key = _normalize(name)
        self._attributes[key] = value

        callback = self._callbacks.get(key)
        if callback is not None:
            callback(self, key, value)

        return True

    def get_attribute(self, name: str, default: Any = None) -> Any:
        """
        Get the value of an attribute.

        Args:
            name: Attribute name (case-insensitive)
            default: Returned if the attribute has never been set

        Returns:
            The stored value, or default
        """
        return self._attributes.get(_normalize(name), default)

    def has_attribute(self, name: str) -> bool:
        """Check whether an attribute has been set, even to None."""
        return _normalize(name) in self._attributes

    def add_attribute_callback(self, name: str, callback: AttributeCallback) -> None:
        """
        Register the callback for an attribute.

        Replaces any callback previously registered for the same name.
        """
        self._callbacks[_normalize(name)] = callback

    def generate_id(self) -> str:
        """Generate the next unique identifier for this element's class."""
        cls = type(self)
        counter = _id_counters.setdefault(cls, count(1))
        return f"{cls.__name__}{next(counter):05d}"

    def __getitem__(self, name: str) -> Any:
        key = _normalize(name)
        if key not in self._attributes:
            raise KeyError(name)
        return self._attributes[key]

    def __setitem__(self, name: str, value: Any) -> None:
        self.set_attribute(name, value)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_attribute(name)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._attributes))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, label={self.label!r})"


class Node(Element):
    """
    A node in a directed graph.

    Nodes are created by the caller; edges are attached to them as a side
    effect of constructing Edge objects. A node can save itself and
    everything reachable from it through outgoing edges.

    Usage:
        parent = Node(label="Parent Node")
        child = Node(label="Child Node")
        Edge(parent, child)
        parent.save("simple.daVinci")
    """

    def __init__(self, **attributes: Any) -> None:
        self._edges: list["Edge"] = []
        super().__init__(**attributes)

    @property
    def edges(self) -> tuple["Edge", ...]:
        """All edges incident to this node, in construction order."""
        return tuple(self._edges)

    def outgoing_edges(self) -> list["Edge"]:
        """Edges whose FROM end is this node, in construction order."""
        return [edge for edge in self._edges if edge.from_node is self]

    def incoming_edges(self) -> list["Edge"]:
        """Edges whose TO end is this node, in construction order."""
        return [edge for edge in self._edges if edge.to_node is self]

    def _add_edge(self, edge: "Edge") -> None:
        """
        Record an edge as incident to this node.

        Only Edge construction calls this. It is not idempotent: adding the
        same edge twice produces two entries.
        """
        self._edges.append(edge)

    def save(self, path: Path | str, format: str = DEFAULT_FORMAT) -> None:
        """
        Save the graph under this node into a file.

        The node and every node reachable from it along outgoing edges are
        written; each node is expanded once and referenced by ID afterwards.

        Args:
            path: File to create (or truncate)
            format: Name of the output format

        Raises:
            UnsupportedFormatError: If no writer exists for format
            SaveError: If the file cannot be written
        """
        save_graph(self, path, format)


class Edge(Element):
    """
    A directed edge between two nodes.

    Both endpoints are required. Constructing an edge registers it on the
    FROM and TO nodes; a self-loop is registered once.

    The FROM and TO attributes can technically be overwritten with
    set_attribute, but the endpoints' edge lists are not updated to match.

    Usage:
        edge = Edge(parent, child, id="parent-child")
        edge.to_node is child   # -> True
    """

    def __init__(self, from_node: Node, to_node: Node, **attributes: Any) -> None:
        for role, endpoint in (("FROM", from_node), ("TO", to_node)):
            if endpoint is None:
                raise MissingEndpointError(f"Edge requires a {role} node")
            if not isinstance(endpoint, Node):
                raise TypeError(
                    f"Edge {role} must be a Node, not {type(endpoint).__name__}"
                )

        super().__init__(**attributes)
        self.set_attribute("FROM", from_node)
        self.set_attribute("TO", to_node)

        from_node._add_edge(self)
        if to_node is not from_node:
            to_node._add_edge(self)

    @property
    def from_node(self) -> Node:
        """The node this edge starts at."""
        return self._attributes["FROM"]

    @property
    def to_node(self) -> Node:
        """The node this edge points to."""
        return self._attributes["TO"]

    @property
    def is_self_loop(self) -> bool:
        """Check if this edge starts and ends at the same node."""
        return self.from_node is self.to_node

    def __repr__(self) -> str:
        return (
            f"Edge(id={self.id!r}, from={self.from_node.id!r}, "
            f"to={self.to_node.id!r})"
        )
