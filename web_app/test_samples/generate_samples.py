from __future__ import annotations

import json
import sys
from datetime import date
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from gdv_pipeline.config import PipelineConfig
from gdv_pipeline.package import Package
from gdv_pipeline.record import Record

OUT_DIR = Path(__file__).resolve().parent
VU_NUMMER = "12345"


def _address(package: Package, row_index: int) -> Record:
    record = package.registry.create(100)
    record.set("vu_nummer", VU_NUMMER)
    record.set("sparte", 10)
    record.set("versicherungsschein_nummer", f"4711-{row_index:06d}")
    record.set("name1", f"Mustermann {row_index}")
    record.set("postleitzahl", "70173")
    record.set("ort", "Stuttgart")
    record.set("geburtsdatum", date(1970, 1, row_index % 28 + 1))
    return record


def _contract(package: Package, row_index: int) -> Record:
    record = package.registry.create(200)
    record.set("vu_nummer", VU_NUMMER)
    record.set("sparte", 10)
    record.set("versicherungsschein_nummer", f"4711-{row_index:06d}")
    record.set("vertragsbeginn", date(2020, 1, 1))
    record.set("vertragsende", date(2030, 12, 31))
    record.set("gesamtbeitrag", 50_000 + row_index)
    return record


def build_sample(contracts: int = 3, config: PipelineConfig | None = None) -> Package:
    package = Package(config, vu_nummer=VU_NUMMER)
    for row_index in range(1, contracts + 1):
        package.add(_address(package, row_index))
        package.add(_contract(package, row_index))
    return package


def generate() -> None:
    OUT_DIR.mkdir(parents=True, exist_ok=True)
    config = PipelineConfig(end_marker="\r\n")
    package = build_sample(config=config)
    filename = "sample_package.txt"
    package.export_file(OUT_DIR / filename)

    manifest: dict[str, Any] = {
        "samples": [
            {
                "filename": filename,
                "line_length": config.segment_width,
                "end_marker": config.end_marker,
                "record_count": len(package),
                "record_types": sorted({record.tag for record in package}),
                "violations": len(package.validate()),
            }
        ]
    }
    (OUT_DIR / "samples_manifest.json").write_text(
        json.dumps(manifest, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


if __name__ == "__main__":
    generate()
