"""Field/record packing engine for GDV fixed-width exchange files."""

from .config import PipelineConfig, load_config
from .errors import (
    DuplicateFieldError,
    EmptyImportError,
    FieldFormatError,
    GdvError,
    IndexOutOfRangeError,
    OutOfBoundsError,
    OutOfRangeError,
    OverlapError,
    PackageImportError,
    SizeMismatchError,
    UnknownFieldError,
    UnsupportedLengthError,
)
from .fields import Align, Field, FieldType
from .models import FieldSpec, LayoutSpec, RecordSpec
from .package import Package
from .record import Record
from .registry import RecordRegistry, default_registry, load_layout
from .segment import Segment
from .violations import Violation

__all__ = [
    "Align",
    "DuplicateFieldError",
    "EmptyImportError",
    "Field",
    "FieldFormatError",
    "FieldSpec",
    "FieldType",
    "GdvError",
    "IndexOutOfRangeError",
    "LayoutSpec",
    "OutOfBoundsError",
    "OutOfRangeError",
    "OverlapError",
    "Package",
    "PackageImportError",
    "PipelineConfig",
    "Record",
    "RecordRegistry",
    "RecordSpec",
    "Segment",
    "SizeMismatchError",
    "UnknownFieldError",
    "UnsupportedLengthError",
    "Violation",
    "default_registry",
    "load_config",
    "load_layout",
]
