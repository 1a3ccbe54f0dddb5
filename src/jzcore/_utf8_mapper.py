"""Maps UTF-8 byte offsets back to character offsets of the source text."""

from __future__ import annotations

from bisect import bisect_right
from typing import Final


class UTF8PositionMapper:
    """Byte to character position mapping with a checkpoint system.

    Instead of recording the byte offset of every character, the mapper
    stores a checkpoint every checkpoint_interval characters and walks
    forward from the nearest checkpoint. Errors raised for text input use it
    to report positions in characters rather than in encoded bytes.
    """

    def __init__(self, text: str, checkpoint_interval: int = 256) -> None:
        """Initialize position mapper with checkpoint system.

        Args:
            text: The text whose UTF-8 encoding was parsed
            checkpoint_interval: Characters between checkpoints
        """
        if checkpoint_interval < 1:
            raise ValueError("checkpoint_interval must be positive")

        self.text: Final = text
        self.checkpoint_interval: Final = checkpoint_interval
        self._is_ascii_only: Final = text.isascii()
        self._byte_checkpoints: list[int] = []
        self._char_checkpoints: list[int] = []

        if not self._is_ascii_only:
            self._build_checkpoints()

    def _build_checkpoints(self) -> None:
        """Records the byte offset of every checkpoint character."""
        byte_pos = 0
        for char_pos, char in enumerate(self.text):
            if char_pos % self.checkpoint_interval == 0:
                self._byte_checkpoints.append(byte_pos)
                self._char_checkpoints.append(char_pos)
            byte_pos += _utf8_len(char)

    def byte_to_char(self, byte_pos: int) -> int:
        """Convert byte position to character position.

        A byte position inside a multi-byte character maps to the character
        that follows it. Positions past the end map to len(text).

        Args:
            byte_pos: Byte position in the UTF-8 encoded text

        Returns:
            Character position in the source text
        """
        if self._is_ascii_only:
            return min(byte_pos, len(self.text))
        if not self._byte_checkpoints:
            return 0

        nearest = bisect_right(self._byte_checkpoints, byte_pos) - 1
        current_byte = self._byte_checkpoints[nearest]
        current_char = self._char_checkpoints[nearest]

        while current_byte < byte_pos and current_char < len(self.text):
            current_byte += _utf8_len(self.text[current_char])
            current_char += 1

        return current_char


def _utf8_len(char: str) -> int:
    code_point = ord(char)
    if code_point < 0x80:
        return 1
    if code_point < 0x800:
        return 2
    if code_point < 0x10000:
        return 3
    return 4
