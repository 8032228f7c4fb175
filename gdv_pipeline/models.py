from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from .config import PipelineConfig
from .fields import Field as RecordField
from .fields import FieldType
from .record import Record
from .segment import TAG_LENGTH


class FieldSpec(BaseModel):
    name: str = Field(min_length=1)
    segment: int = Field(default=1, ge=1)
    start: int = Field(ge=1)
    length: int = Field(ge=1)
    type: FieldType = Field(default=FieldType.ALPHANUMERIC)
    description: str | None = None

    @model_validator(mode="after")
    def validate_date_length(self) -> "FieldSpec":
        if self.type == FieldType.DATE and self.length not in {2, 4, 6, 8}:
            raise ValueError(f"Field {self.name}: date fields must have length 2, 4, 6 or 8.")
        return self

    @property
    def end(self) -> int:
        return self.start + self.length - 1

    def absolute_start(self, segment_width: int) -> int:
        return (self.segment - 1) * segment_width + self.start

    def build(self, segment_width: int) -> RecordField:
        return RecordField(
            self.name,
            self.length,
            self.absolute_start(segment_width),
            self.type,
        )


class RecordSpec(BaseModel):
    record_type: int = Field(ge=0, le=9999)
    name: str = Field(min_length=1)
    segments: int = Field(default=1, ge=1)
    identifying_field: str | None = "vu_nummer"
    fields: list[FieldSpec] = Field(default_factory=list)

    @field_validator("fields")
    @classmethod
    def validate_unique_field_names(cls, fields: list[FieldSpec]) -> list[FieldSpec]:
        names = [field.name for field in fields]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field names: {', '.join(duplicates)}")
        return fields

    @model_validator(mode="after")
    def validate_field_positions(self) -> "RecordSpec":
        for segment in sorted({field.segment for field in self.fields}):
            ordered = sorted(
                (field for field in self.fields if field.segment == segment),
                key=lambda field: field.start,
            )
            previous_end = TAG_LENGTH
            previous_name = "satzart"
            for field in ordered:
                if field.start <= previous_end:
                    raise ValueError(
                        f"Overlapping fields in {self.name} (segment {segment}): {field.name} starts "
                        f"at {field.start} but {previous_name} ends at {previous_end}."
                    )
                previous_end = field.end
                previous_name = field.name
        if self.identifying_field and self.identifying_field not in {field.name for field in self.fields}:
            raise ValueError(
                f"Record {self.name}: identifying field {self.identifying_field} is not defined."
            )
        return self

    @property
    def tag(self) -> str:
        return f"{self.record_type:0{TAG_LENGTH}d}"

    @property
    def segment_count(self) -> int:
        return max([self.segments, *(field.segment for field in self.fields)])

    def build(self, config: PipelineConfig | None = None) -> Record:
        config = config or PipelineConfig()
        record = Record(
            self.record_type,
            self.segment_count,
            config=config,
            name=self.name,
            identifying_field=self.identifying_field,
        )
        for field in self.fields:
            record.add(field.build(config.segment_width))
        return record


class LayoutSpec(BaseModel):
    schema_version: str = Field(default="1.0")
    segment_width: int = Field(default=256, ge=8)
    record_types: list[RecordSpec] = Field(min_length=1)

    @field_validator("record_types")
    @classmethod
    def validate_unique_record_types(cls, records: list[RecordSpec]) -> list[RecordSpec]:
        codes = [record.record_type for record in records]
        duplicates = sorted({code for code in codes if codes.count(code) > 1})
        if duplicates:
            raise ValueError(f"Duplicate record types: {', '.join(str(code) for code in duplicates)}")
        return records

    @model_validator(mode="after")
    def validate_field_ranges(self) -> "LayoutSpec":
        # The last byte of every segment carries the sequence digit.
        for record in self.record_types:
            for field in record.fields:
                if field.end >= self.segment_width:
                    raise ValueError(
                        f"Record {record.name}: {field.name} ends at {field.end}, "
                        f"beyond usable segment width {self.segment_width - 1}"
                    )
        return self

    @property
    def by_type(self) -> dict[int, RecordSpec]:
        return {record.record_type: record for record in self.record_types}
