from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import IO, TYPE_CHECKING, Any

from .config import PipelineConfig
from .errors import (
    DuplicateFieldError,
    EmptyImportError,
    FieldFormatError,
    IndexOutOfRangeError,
    OutOfRangeError,
    OverlapError,
    SizeMismatchError,
    UnknownFieldError,
)
from .fields import Field
from .segment import TAG_LENGTH, Segment, split_chunks
from .violations import Violation

if TYPE_CHECKING:
    from .registry import RecordRegistry

LOGGER = logging.getLogger(__name__)


def format_tag(record_type: int | str) -> str:
    if isinstance(record_type, int):
        if not 0 <= record_type < 10**TAG_LENGTH:
            raise OutOfRangeError(f"Record type {record_type} does not fit into {TAG_LENGTH} digits")
        return f"{record_type:0{TAG_LENGTH}d}"
    tag = str(record_type)
    if len(tag) != TAG_LENGTH:
        raise SizeMismatchError(f"Record type tag '{tag}' must have {TAG_LENGTH} characters")
    return tag


class Record:
    """A logical record (Satz) made of one or more segments.

    Fields are kept in a name-keyed table; their content is mirrored into the
    segment buffers, which are the source of every export.
    """

    def __init__(
        self,
        record_type: int | str,
        segment_count: int = 1,
        *,
        config: PipelineConfig | None = None,
        name: str | None = None,
        identifying_field: str | None = None,
    ) -> None:
        self.config = config or PipelineConfig()
        tag = format_tag(record_type)
        self.name = name or f"Satzart {tag}"
        self.identifying_field = identifying_field
        self._fields: dict[str, Field] = {}
        self._segments: list[Segment] = []
        for index in range(1, max(segment_count, 1) + 1):
            self._segments.append(Segment(tag, index, self.config.segment_width))

    @property
    def tag(self) -> str:
        return self._segments[0].tag

    @property
    def record_type(self) -> int | None:
        tag = self.tag
        return int(tag) if tag.isdigit() else None

    @property
    def record_type_field(self) -> Field:
        return Field.numeric("satzart", TAG_LENGTH, 1, value=self.tag)

    @property
    def fields(self) -> list[Field]:
        return sorted(self._fields.values(), key=lambda field: field.start)

    @property
    def segments(self) -> tuple[Segment, ...]:
        self._sync_segments()
        return tuple(self._segments)

    @property
    def segment_count(self) -> int:
        return len(self._segments)

    def _reserved_fields(self, segments: Iterable[Segment]) -> Iterator[Field]:
        for segment in segments:
            if segment.index == 1:
                yield self.record_type_field
                yield segment.sequence_field()
            else:
                yield from segment.reserved_fields()

    def add(self, field: Field) -> None:
        if field.name in self._fields:
            raise DuplicateFieldError(f"{self.name}: field {field.name} already defined")

        width = self.config.segment_width
        needed = -(-field.end // width)
        prospective = [
            Segment(self.tag, index, width) for index in range(len(self._segments) + 1, needed + 1)
        ]

        for other in self._fields.values():
            if field.overlaps(other):
                raise OverlapError(field, other)
        for reserved in self._reserved_fields([*self._segments, *prospective]):
            if field.overlaps(reserved):
                raise OverlapError(field, reserved)

        if prospective:
            LOGGER.debug("%s: %s needs %s additional segment(s)", self.name, field.name, len(prospective))
        self._segments.extend(prospective)
        self._fields[field.name] = field
        self._write_field(field)

    def _write_field(self, field: Field) -> None:
        width = self.config.segment_width
        position = field.start - 1
        data = field.content
        while data:
            segment = self._segments[position // width]
            relative = position % width
            take = min(len(data), width - relative)
            segment.write(data[:take], relative)
            data = data[take:]
            position += take

    def _sync_segments(self) -> None:
        # Fields handed out by get_field may have been changed in place.
        for field in self._fields.values():
            self._write_field(field)

    def _read_field(self, field: Field) -> str:
        width = self.config.segment_width
        position = field.start - 1
        remaining = field.length
        parts: list[str] = []
        while remaining:
            segment = self._segments[position // width]
            relative = position % width
            take = min(remaining, width - relative)
            parts.append(segment.read(relative, take))
            remaining -= take
            position += take
        return "".join(parts)

    def get_field(self, name: str) -> Field:
        try:
            return self._fields[name]
        except KeyError:
            raise UnknownFieldError(f"{self.name}: unknown field '{name}'") from None

    def get(self, name: str) -> str:
        return self.get_field(name).content

    def set(self, name: str, value: Any) -> None:
        field = self.get_field(name)
        field.set_content(value)
        self._write_field(field)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def import_from(self, text: str) -> None:
        chunks = list(split_chunks(text, self.config.segment_width, self.config.end_marker))
        if not chunks:
            raise EmptyImportError(f"{self.name}: nothing to import")

        width = self.config.segment_width
        while len(self._segments) < len(chunks):
            self._segments.append(Segment(self.tag, len(self._segments) + 1, width))
        for segment, chunk in zip(self._segments, chunks):
            segment.load(chunk)
        for segment in self._segments[len(chunks) :]:
            segment.clear(self.tag)

        loaded_end = len(chunks) * width
        for field in self._fields.values():
            if field.start > loaded_end:
                field.set_content(None)
                self._write_field(field)
            else:
                field.set_content(self._read_field(field))

    def export(self) -> str:
        self._sync_segments()
        return "".join(segment.export(self.config.end_marker) for segment in self._segments)

    def export_to(self, stream: IO[str]) -> None:
        stream.write(self.export())

    def validate(self, registry: RecordRegistry | None = None) -> list[Violation]:
        if registry is None:
            from .registry import default_registry

            registry = default_registry()

        violations: list[Violation] = []
        for field in self.fields:
            violations.extend(field.validate())

        record_type = self.record_type
        if record_type is None or not registry.knows(record_type):
            violations.append(Violation(self, self.tag, f"unknown record type '{self.tag}'"))

        if self.identifying_field:
            identifying = self._fields.get(self.identifying_field)
            if (
                identifying is None
                or identifying.is_empty()
                or identifying.content.strip() == self.config.dummy_vu_nummer
            ):
                value = identifying.content if identifying is not None else ""
                violations.append(Violation(self, value, f"{self.identifying_field} is not set"))
        return violations

    def is_valid(self, registry: RecordRegistry | None = None) -> bool:
        return not self.validate(registry)

    def remove_segment(self, index: int) -> None:
        count = len(self._segments)
        if not 1 <= index <= count:
            raise IndexOutOfRangeError(f"{self.name}: segment {index} not in [1, {count}]")
        if count == 1:
            raise IndexOutOfRangeError(f"{self.name}: the only segment cannot be removed")

        width = self.config.segment_width
        removed = self._segments.pop(index - 1)
        low = removed.offset + 1
        high = removed.offset + width

        kept: dict[str, Field] = {}
        for name, field in self._fields.items():
            if field.end < low:
                kept[name] = field
            elif field.start > high:
                kept[name] = field.moved(-width)
            else:
                LOGGER.debug("%s: dropping %s with segment %s", self.name, name, index)
        self._fields = kept

        for position, segment in enumerate(self._segments, start=1):
            if segment.index != position:
                segment.renumber(position)

    def remove_all_segments(self, from_index: int = 2) -> None:
        first = max(from_index, 2)
        while len(self._segments) >= first:
            self.remove_segment(len(self._segments))

    def to_dict(self) -> dict[str, Any]:
        fields: list[dict[str, Any]] = []
        for field in self.fields:
            try:
                value = field.decode()
            except FieldFormatError:
                value = field.content.strip()
            fields.append(
                {
                    "name": field.name,
                    "start": field.start,
                    "length": field.length,
                    "type": field.type.value,
                    "content": field.content,
                    "value": value,
                }
            )
        return {
            "record_type": self.tag,
            "name": self.name,
            "segments": self.segment_count,
            "fields": fields,
        }

    def _contents(self) -> dict[str, str]:
        return {name: field.content for name, field in self._fields.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self.tag == other.tag and self._contents() == other._contents()

    def __hash__(self) -> int:
        return hash((self.tag, frozenset(self._contents().items())))

    def __repr__(self) -> str:
        return f"Record({self.tag!r}, name={self.name!r}, segments={self.segment_count}, fields={len(self._fields)})"
