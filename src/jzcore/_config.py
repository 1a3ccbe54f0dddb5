"""Parse configuration and nesting depth limits."""

import logging
import sys
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Stack frames kept free for the deserializer's own call overhead
_RESERVED_FRAMES = 50

# Frames used per nesting level by the deepest built-in chain, an optional
# tuple element: next_element, parse, Optional.deserialize, deserialize_option,
# visit_some, parse, Tuple.deserialize, deserialize_tuple, deserialize_seq,
# visit_seq
_FRAMES_PER_LEVEL = 10


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures deserialization behavior with immutable settings.

    custom_error_messages keeps the binding layer's error text (truncated)
    instead of discarding it. max_depth bounds container nesting; None leaves
    nesting limited only by the interpreter's recursion limit.
    """

    custom_error_messages: bool = True
    max_depth: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.custom_error_messages, bool):
            raise TypeError("custom_error_messages must be a boolean")
        if self.max_depth is not None:
            if isinstance(self.max_depth, bool) or not isinstance(
                self.max_depth, int
            ):
                raise TypeError("max_depth must be an integer or None")
            if self.max_depth < 1:
                raise ValueError("max_depth must be positive")


def clamp_depth(requested_depth: int) -> int:
    """
    Clamps a nesting limit so it is reached before RecursionError.

    Logs a warning when the requested depth cannot be honoured.
    """
    max_safe_depth = max(
        1, (sys.getrecursionlimit() - _RESERVED_FRAMES) // _FRAMES_PER_LEVEL
    )
    if requested_depth > max_safe_depth:
        logger.warning(
            "Requested depth %d exceeds what the recursion limit (%d) allows. "
            "Clamping to %d.",
            requested_depth,
            sys.getrecursionlimit(),
            max_safe_depth,
        )
        return max_safe_depth
    return requested_depth
