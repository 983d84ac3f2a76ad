"""Error types for the formula tree and the markup transcoders."""

from __future__ import annotations


class TypeMathError(Exception):
    """Base class for all typemath errors."""


class StructuralError(TypeMathError, IndexError):
    """Misuse of the formula tree: bad slot/cell index or bad bracket pair.

    Attributes:
        index: The offending index, when one applies.
    """

    def __init__(self, message: str, index: int | tuple[int, int] | None = None) -> None:
        self.index = index
        full = message
        if index is not None:
            full += f" (index {index})"
        super().__init__(full)


class MarkupError(TypeMathError):
    """Base class for markup reading/writing errors."""


class MarkupDepthError(MarkupError):
    """Nesting deeper than the configured ceiling.

    Attributes:
        depth: The ceiling that was exceeded.
        position: Character offset in the source, for the reader.
    """

    def __init__(self, depth: int, position: int | None = None) -> None:
        self.depth = depth
        self.position = position
        msg = f"Markup nesting exceeds maximum depth {depth}"
        if position is not None:
            msg += f" (at position {position})"
        super().__init__(msg)
