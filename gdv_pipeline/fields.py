from __future__ import annotations

import logging
import re
from datetime import date, datetime
from enum import Enum
from typing import Any

from .errors import FieldFormatError, OutOfRangeError, SizeMismatchError, UnsupportedLengthError
from .violations import Violation

LOGGER = logging.getLogger(__name__)

_NUMERIC_RE = re.compile(r"^[+-]?\d+$")
_DATE_PATTERNS = {
    2: "%d",
    4: "%m%y",
    6: "%m%Y",
    8: "%d%m%Y",
}


class FieldType(str, Enum):
    ALPHANUMERIC = "AN"
    NUMERIC = "N"
    DATE = "D"


class Align(str, Enum):
    LEFT = "left"
    RIGHT = "right"


_DEFAULT_ALIGN = {
    FieldType.ALPHANUMERIC: Align.LEFT,
    FieldType.NUMERIC: Align.RIGHT,
    FieldType.DATE: Align.RIGHT,
}


def _format_date(value: date, pattern: str) -> str:
    # Zero-padded per directive; strftime drops leading zeros of years below 1000.
    parts = {
        "%d": f"{value.day:02d}",
        "%m": f"{value.month:02d}",
        "%y": f"{value.year % 100:02d}",
        "%Y": f"{value.year:04d}",
    }
    return "".join(parts[pattern[index : index + 2]] for index in range(0, len(pattern), 2))


def _parse_date(content: str, pattern: str) -> date:
    if pattern == "%d":
        # Day-only values are checked against January, which has 31 days.
        return datetime.strptime(f"{content}2000", "%d%Y").date()
    return datetime.strptime(content, pattern).date()


class Field:
    """A named, positioned, fixed-width value cell.

    ``start`` is the 1-based offset inside the record's logical byte stream.
    The kind of field (text, numeric, date) is a tag; padding, emptiness,
    decoding and validation are selected by it.
    """

    __slots__ = ("name", "start", "length", "type", "align", "_content")

    def __init__(
        self,
        name: str,
        length: int,
        start: int = 1,
        type: FieldType = FieldType.ALPHANUMERIC,
        align: Align | None = None,
        value: Any = None,
    ) -> None:
        if length < 1:
            raise ValueError(f"Field {name}: length must be > 0, got {length}")
        if start < 1:
            raise ValueError(f"Field {name}: start must be >= 1, got {start}")
        field_type = FieldType(type)
        if field_type == FieldType.DATE and length not in _DATE_PATTERNS:
            allowed = ", ".join(str(key) for key in sorted(_DATE_PATTERNS))
            raise UnsupportedLengthError(
                f"Date field {name}: length={length} not allowed - only {allowed}"
            )
        self.name = name
        self.start = start
        self.length = length
        self.type = field_type
        self.align = Align(align) if align is not None else _DEFAULT_ALIGN[field_type]
        self._content = self._default_content()
        if value is not None:
            self.set_content(value)

    @classmethod
    def alphanumeric(cls, name: str, length: int, start: int = 1, value: Any = None) -> "Field":
        return cls(name, length, start, FieldType.ALPHANUMERIC, value=value)

    @classmethod
    def numeric(cls, name: str, length: int, start: int = 1, value: Any = None) -> "Field":
        return cls(name, length, start, FieldType.NUMERIC, value=value)

    @classmethod
    def date(cls, name: str, start: int = 1, length: int = 8, value: Any = None) -> "Field":
        return cls(name, length, start, FieldType.DATE, value=value)

    @classmethod
    def today(cls, name: str, start: int = 1) -> "Field":
        return cls.date(name, start, value=date.today())

    @property
    def end(self) -> int:
        return self.start + self.length - 1

    @property
    def content(self) -> str:
        return self._content

    @property
    def _pad_char(self) -> str:
        if self.type == FieldType.NUMERIC and self.align == Align.RIGHT:
            return "0"
        return " "

    @property
    def _date_pattern(self) -> str:
        return _DATE_PATTERNS[self.length]

    def _default_content(self) -> str:
        if self.type == FieldType.NUMERIC:
            return "0" * self.length
        return " " * self.length

    def set_content(self, value: Any) -> None:
        if value is None:
            self._content = self._default_content()
            return

        if self.type == FieldType.NUMERIC and isinstance(value, int) and not isinstance(value, bool):
            formatted = f"{value:0{self.length}d}"
            if len(formatted) > self.length:
                raise OutOfRangeError(
                    f"Field {self.name}: {value} does not fit into {self.length} digit(s)"
                )
            self._content = formatted
            return

        if self.type == FieldType.DATE and isinstance(value, date):
            self._content = _format_date(value, self._date_pattern)
            return

        text = str(value)
        if len(text) > self.length:
            raise SizeMismatchError(
                f"Field {self.name}: '{text}' has {len(text)} characters, max {self.length}"
            )
        if self.align == Align.LEFT:
            self._content = text.ljust(self.length, self._pad_char)
        else:
            self._content = text.rjust(self.length, self._pad_char)

    def is_empty(self) -> bool:
        stripped = self._content.strip()
        if not stripped:
            return True
        if self.type == FieldType.ALPHANUMERIC:
            return False
        return bool(_NUMERIC_RE.match(stripped)) and int(stripped) == 0

    def to_int(self) -> int:
        stripped = self._content.strip()
        if not stripped:
            return 0
        if not _NUMERIC_RE.match(stripped):
            raise FieldFormatError(f"Field {self.name}: '{self._content}' is not numeric")
        return int(stripped)

    def to_date(self) -> date:
        if self.type != FieldType.DATE:
            raise FieldFormatError(f"Field {self.name} is not a date field")
        try:
            return _parse_date(self._content, self._date_pattern)
        except ValueError as error:
            raise FieldFormatError(
                f"Field {self.name} has an invalid date (\"{self._content}\")"
            ) from error

    def _has_valid_date(self) -> bool:
        if self._content.startswith("00"):
            return True
        try:
            parsed = self.to_date()
        except FieldFormatError as error:
            LOGGER.debug("%s -> mapped to invalid", error)
            return False
        return _format_date(parsed, self._date_pattern) == self._content

    def decode(self) -> Any:
        if self.type == FieldType.NUMERIC:
            if not self._content.strip():
                return None
            return self.to_int()
        if self.type == FieldType.DATE:
            if self.is_empty() or self._content.startswith("00"):
                return None
            return self.to_date()
        return self._content.strip()

    def validate(self) -> list[Violation]:
        violations: list[Violation] = []
        if not self._content.isprintable():
            violations.append(
                Violation(self, self._content, f"{self.name} contains non-printable characters")
            )

        if self.type == FieldType.NUMERIC:
            stripped = self._content.strip()
            if stripped and not _NUMERIC_RE.match(stripped):
                violations.append(Violation(self, self._content, f"'{self._content}' is not numeric"))
        elif self.type == FieldType.DATE:
            if not self.is_empty() and not self._has_valid_date():
                violations.append(
                    Violation(self, self._content, f"{self._content} is not a valid date")
                )
        return violations

    def is_valid(self) -> bool:
        return not self.validate()

    def overlaps(self, other: "Field") -> bool:
        return self.start <= other.end and other.start <= self.end

    def moved(self, offset: int) -> "Field":
        copy = Field(self.name, self.length, self.start + offset, self.type, self.align)
        copy._content = self._content
        return copy

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return NotImplemented
        return (
            self.name == other.name
            and self.start == other.start
            and self.length == other.length
            and self.type == other.type
            and self._content == other._content
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Field({self.name!r}, start={self.start}, length={self.length}, "
            f"type={self.type.value}, content={self._content!r})"
        )
