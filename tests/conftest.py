from __future__ import annotations

from datetime import date

import pytest

from gdv_pipeline.package import Package
from gdv_pipeline.record import Record
from gdv_pipeline.registry import RecordRegistry, default_registry

VU_NUMMER = "12345"


def build_contract(registry: RecordRegistry, policy: str) -> Record:
    record = registry.create(200)
    record.set("vu_nummer", VU_NUMMER)
    record.set("sparte", 10)
    record.set("versicherungsschein_nummer", policy)
    record.set("vertragsbeginn", date(2020, 1, 1))
    record.set("gesamtbeitrag", 50_000)
    return record


def build_address(registry: RecordRegistry, name: str) -> Record:
    record = registry.create(100)
    record.set("vu_nummer", VU_NUMMER)
    record.set("name1", name)
    record.set("ort", "Stuttgart")
    record.set("geburtsdatum", date(1970, 5, 17))
    return record


@pytest.fixture()
def registry() -> RecordRegistry:
    return default_registry()


@pytest.fixture()
def sample_package() -> Package:
    package = Package(vu_nummer=VU_NUMMER)
    package.add(build_address(package.registry, "Mustermann"))
    package.add(build_contract(package.registry, "4711-000001"))
    package.add(build_contract(package.registry, "4711-000002"))
    return package


@pytest.fixture()
def sample_text(sample_package: Package) -> str:
    return sample_package.export()
