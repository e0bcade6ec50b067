"""
Error Types for the digraph library

All failures raised by the library derive from GraphError so callers can
catch the whole family at once. Errors that describe bad arguments also
derive from ValueError.
"""


class GraphError(Exception):
    """Base class for all graph construction and serialization errors."""


class SaveError(GraphError):
    """
    The output file for a graph could not be created or written.

    The underlying OSError is always available as ``__cause__``.
    """

    def __init__(self, path, reason: str) -> None:
        super().__init__(f"Can't save to {path}: {reason}")
        self.path = path


class UnsupportedFormatError(GraphError, ValueError):
    """A graph was saved in a format no writer is registered for."""

    def __init__(self, format_name: str, supported: list[str]) -> None:
        super().__init__(
            f"Unsupported graph format {format_name!r} "
            f"(supported: {', '.join(supported)})"
        )
        self.format_name = format_name
        self.supported = supported


class MissingEndpointError(GraphError, ValueError):
    """An edge was constructed without both of its endpoint nodes."""
