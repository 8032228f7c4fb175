from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Violation:
    """A semantic rule failure of a field or record.

    Violations are data, not exceptions: a record stays inspectable even when
    it is not valid.
    """

    subject: Any
    value: str
    message: str

    @property
    def subject_name(self) -> str:
        name = getattr(self.subject, "name", None)
        return str(name) if name else type(self.subject).__name__

    def to_dict(self) -> dict[str, str]:
        return {
            "subject": self.subject_name,
            "value": self.value,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"{self.subject_name}: {self.message}"
