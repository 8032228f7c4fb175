from __future__ import annotations

from collections.abc import Iterator

from .errors import OutOfBoundsError
from .fields import Field

TAG_LENGTH = 4
DEFAULT_WIDTH = 256
_LINE_BREAKS = "\r\n"


def split_chunks(text: str, width: int, end_marker: str = "") -> Iterator[str]:
    """Cut ``text`` into physical lines of at most ``width`` characters.

    Line breaks and the end marker between lines are consumed; a line break
    inside a window ends the chunk early (short lines are padded later).
    """
    position = 0
    while position < len(text):
        chunk = text[position : position + width]
        breaks = [chunk.find(char) for char in _LINE_BREAKS if char in chunk]
        if breaks:
            chunk = chunk[: min(breaks)]
        position += len(chunk)
        if end_marker and text.startswith(end_marker, position):
            position += len(end_marker)
        while position < len(text) and text[position] in _LINE_BREAKS:
            position += 1
        if chunk:
            yield chunk


class Segment:
    """One physical line (Teildatensatz) of a record.

    The first ``TAG_LENGTH`` bytes carry the record type, the last byte the
    sequence digit of the segment inside its record.
    """

    def __init__(self, tag: str, index: int = 1, width: int = DEFAULT_WIDTH) -> None:
        if width <= TAG_LENGTH:
            raise ValueError(f"Segment width must be > {TAG_LENGTH}, got {width}")
        if index < 1:
            raise ValueError(f"Segment index must be >= 1, got {index}")
        self.width = width
        self.index = index
        self._buffer = " " * width
        self.write(tag, 0)
        self._write_sequence()

    @property
    def offset(self) -> int:
        return (self.index - 1) * self.width

    @property
    def tag(self) -> str:
        return self._buffer[:TAG_LENGTH]

    @property
    def sequence(self) -> str:
        return self._buffer[-1]

    @property
    def buffer(self) -> str:
        return self._buffer

    def _check_bounds(self, offset: int, length: int) -> None:
        if offset < 0 or length < 0 or offset + length > self.width:
            raise OutOfBoundsError(
                f"Segment {self.index}: range {offset}+{length} exceeds width {self.width}"
            )

    def write(self, data: str, offset: int) -> None:
        self._check_bounds(offset, len(data))
        self._buffer = self._buffer[:offset] + data + self._buffer[offset + len(data) :]

    def read(self, offset: int, length: int) -> str:
        self._check_bounds(offset, length)
        return self._buffer[offset : offset + length]

    def load(self, chunk: str) -> None:
        if len(chunk) > self.width:
            raise OutOfBoundsError(
                f"Segment {self.index}: chunk of {len(chunk)} characters exceeds width {self.width}"
            )
        self._buffer = chunk.ljust(self.width)

    def clear(self, tag: str) -> None:
        self._buffer = " " * self.width
        self.write(tag, 0)
        self._write_sequence()

    def _write_sequence(self) -> None:
        self.write(str(self.index)[-1], self.width - 1)

    def renumber(self, index: int) -> None:
        self.index = index
        self._write_sequence()

    def tag_field(self) -> Field:
        return Field.numeric(f"satzart#{self.index}", TAG_LENGTH, self.offset + 1, value=self.tag)

    def sequence_field(self) -> Field:
        return Field.numeric(f"satznummer#{self.index}", 1, self.offset + self.width, value=self.sequence)

    def reserved_fields(self) -> list[Field]:
        return [self.tag_field(), self.sequence_field()]

    def export(self, end_marker: str = "") -> str:
        return self._buffer + end_marker

    def __repr__(self) -> str:
        return f"Segment(tag={self.tag!r}, index={self.index}, width={self.width})"
