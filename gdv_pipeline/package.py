from __future__ import annotations

import logging
import os
from collections import Counter
from collections.abc import Iterator
from datetime import date
from pathlib import Path
from typing import IO, Any

from .config import PipelineConfig
from .errors import PackageImportError
from .record import Record
from .registry import RecordRegistry, default_registry, load_layout
from .segment import TAG_LENGTH, split_chunks
from .sources import read_file, read_source
from .violations import Violation

LOGGER = logging.getLogger(__name__)

HEADER_TYPE = 1
TRAILER_TYPE = 9999
RECORD_COUNT = "anzahl_saetze"


def _registry_for(config: PipelineConfig) -> RecordRegistry:
    if config == PipelineConfig():
        return default_registry()
    layout = load_layout()
    if layout.segment_width != config.segment_width:
        LOGGER.warning(
            "Bundled layout uses segment width %s, configured %s: every record type is unknown.",
            layout.segment_width,
            config.segment_width,
        )
        return RecordRegistry(config)
    return RecordRegistry.from_layout(layout, config)


class Package:
    """An exchange file (Datenpaket): header, data records and trailer."""

    def __init__(
        self,
        config: PipelineConfig | None = None,
        registry: RecordRegistry | None = None,
        *,
        vu_nummer: str | None = None,
    ) -> None:
        if config is None:
            config = registry.config if registry is not None else PipelineConfig()
        self.config = config
        self.registry = registry if registry is not None else _registry_for(config)
        self._records: list[Record] = []
        if vu_nummer is not None:
            self._init_header_and_trailer(vu_nummer)

    def _init_header_and_trailer(self, vu_nummer: str) -> None:
        header = self.registry.create(HEADER_TYPE)
        today = date.today()
        for name, value in (
            ("vu_nummer", vu_nummer),
            ("erstellungs_datum_von", today),
            ("erstellungs_datum_bis", today),
        ):
            if name in header:
                header.set(name, value)
        self._records = [header, self.registry.create(TRAILER_TYPE)]
        self._update_trailer()

    @property
    def records(self) -> list[Record]:
        return list(self._records)

    @property
    def header(self) -> Record | None:
        if self._records and self._records[0].record_type == HEADER_TYPE:
            return self._records[0]
        return None

    @property
    def trailer(self) -> Record | None:
        if self._records and self._records[-1].record_type == TRAILER_TYPE:
            return self._records[-1]
        return None

    def add(self, record: Record) -> None:
        if self.trailer is not None:
            self._records.insert(len(self._records) - 1, record)
        else:
            self._records.append(record)
        self._update_trailer()

    def _update_trailer(self) -> None:
        trailer = self.trailer
        if trailer is not None and RECORD_COUNT in trailer:
            trailer.set(RECORD_COUNT, len(self._records))

    def _read(self, source: Any) -> str:
        if isinstance(source, str):
            return source
        if isinstance(source, (bytes, bytearray)):
            try:
                return bytes(source).decode(self.config.encoding)
            except (UnicodeDecodeError, LookupError) as error:
                raise PackageImportError(f"Cannot decode payload as {self.config.encoding}: {error}") from error
        if isinstance(source, os.PathLike):
            return read_file(Path(source), encoding=self.config.encoding)
        if hasattr(source, "read"):
            try:
                payload = source.read()
            except OSError as error:
                raise PackageImportError(f"Cannot read {source}: {error}") from error
            return self._read(payload)
        raise TypeError(f"Unsupported source type: {type(source).__name__}")

    def _group_lines(self, text: str) -> list[list[str]]:
        width = self.config.segment_width
        groups: list[list[str]] = []
        previous_tag = ""
        previous_sequence = ""
        for line_number, chunk in enumerate(split_chunks(text, width, self.config.end_marker), start=1):
            if not chunk.strip():
                LOGGER.warning("Line %s: blank line skipped", line_number)
                continue
            if len(chunk) < width:
                LOGGER.debug("Line %s: %s characters, padded to %s", line_number, len(chunk), width)
                chunk = chunk.ljust(width)
            tag = chunk[:TAG_LENGTH]
            sequence = chunk[-1]
            continues = (
                bool(groups)
                and tag == previous_tag
                and sequence.isdigit()
                and previous_sequence.isdigit()
                and int(sequence) > int(previous_sequence)
            )
            if continues:
                groups[-1].append(chunk)
            else:
                groups.append([chunk])
            previous_tag = tag
            previous_sequence = sequence
        return groups

    def _build_record(self, lines: list[str]) -> Record:
        tag = lines[0][:TAG_LENGTH]
        record = self.registry.create(tag)
        record.import_from("".join(lines))
        if record.segment_count > len(lines):
            record.remove_all_segments(len(lines) + 1)
        if record.record_type is None or not self.registry.knows(record.record_type):
            LOGGER.warning("Unknown record type '%s'", tag)
        return record

    def import_from(self, source: Any) -> None:
        text = self._read(source)
        records = [self._build_record(lines) for lines in self._group_lines(text)]
        if not records:
            raise PackageImportError("No records found in source")
        self._records = records
        counts = Counter(record.tag for record in records)
        LOGGER.info("Imported %s record(s), record types: %s", len(records), dict(counts))

    def import_location(self, location: str) -> None:
        self.import_from(read_source(location, encoding=self.config.encoding, timeout=self.config.url_timeout))

    def export(self) -> str:
        return "".join(record.export() for record in self._records)

    def export_to(self, stream: IO[str]) -> None:
        for record in self._records:
            record.export_to(stream)

    def export_file(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding=self.config.encoding, newline="") as handle:
            self.export_to(handle)
        LOGGER.info("Exported %s record(s) to %s", len(self._records), path)

    def validate(self) -> list[Violation]:
        violations: list[Violation] = []
        for record in self._records:
            violations.extend(record.validate(self.registry))
        return violations

    def is_valid(self) -> bool:
        return not self.validate()

    def to_dict(self) -> dict[str, Any]:
        return {"records": [record.to_dict() for record in self._records]}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)
