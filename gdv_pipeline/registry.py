from __future__ import annotations

import json
import logging
from collections.abc import Callable
from functools import lru_cache
from importlib import resources
from pathlib import Path

from .config import PipelineConfig
from .fields import Field
from .models import LayoutSpec
from .record import Record, format_tag

LOGGER = logging.getLogger(__name__)

RecordFactory = Callable[[], Record]

STANDARD_LAYOUT = "standard.json"
VU_NUMMER = "vu_nummer"


def load_layout(path: Path | None = None) -> LayoutSpec:
    if path is None:
        layout_file = resources.files("gdv_pipeline").joinpath("layouts").joinpath(STANDARD_LAYOUT)
        payload = layout_file.read_text(encoding="utf-8")
    else:
        payload = path.read_text(encoding="utf-8")
    return LayoutSpec.model_validate(json.loads(payload))


class RecordRegistry:
    """Lookup table from record type code to a record factory."""

    def __init__(self, config: PipelineConfig | None = None) -> None:
        self.config = config or PipelineConfig()
        self._factories: dict[int, RecordFactory] = {}

    @classmethod
    def from_layout(cls, layout: LayoutSpec, config: PipelineConfig | None = None) -> "RecordRegistry":
        registry = cls(config)
        if layout.segment_width != registry.config.segment_width:
            raise ValueError(
                f"Layout segment width {layout.segment_width} does not match "
                f"configured width {registry.config.segment_width}"
            )
        for spec in layout.record_types:
            registry.register(spec.record_type, lambda spec=spec: spec.build(registry.config))
        LOGGER.debug("Registered %s record type(s)", len(layout.record_types))
        return registry

    def register(self, record_type: int, factory: RecordFactory) -> None:
        self._factories[record_type] = factory

    def knows(self, record_type: int) -> bool:
        return record_type in self._factories

    def factory_for(self, record_type: int) -> RecordFactory | None:
        return self._factories.get(record_type)

    def codes(self) -> list[int]:
        return sorted(self._factories)

    def create(self, record_type: int | str) -> Record:
        tag = format_tag(record_type)
        factory = self.factory_for(int(tag)) if tag.isdigit() else None
        if factory is not None:
            return factory()
        return self.unknown_record(tag)

    def unknown_record(self, tag: str) -> Record:
        record = Record(
            tag,
            config=self.config,
            name=f"Unknown record type {tag}",
            identifying_field=VU_NUMMER,
        )
        record.add(Field.alphanumeric(VU_NUMMER, 5, 5))
        return record


@lru_cache(maxsize=1)
def default_registry() -> RecordRegistry:
    return RecordRegistry.from_layout(load_layout())
