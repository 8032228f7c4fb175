from __future__ import annotations

from typing import Any


class GdvError(RuntimeError):
    pass


class SizeMismatchError(GdvError):
    pass


class OutOfRangeError(GdvError):
    pass


class OutOfBoundsError(GdvError):
    pass


class FieldFormatError(GdvError):
    pass


class UnsupportedLengthError(GdvError):
    pass


class UnknownFieldError(GdvError):
    pass


class IndexOutOfRangeError(GdvError):
    pass


class PackageImportError(GdvError):
    pass


class DuplicateFieldError(GdvError, ValueError):
    pass


class EmptyImportError(GdvError, ValueError):
    pass


class OverlapError(GdvError):
    def __init__(self, field: Any, other: Any) -> None:
        self.field = field
        self.other = other
        super().__init__(
            f"{field.name} ({field.start}-{field.end}) overlaps "
            f"{other.name} ({other.start}-{other.end})"
        )
