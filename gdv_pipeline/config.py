from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GDV_PIPELINE_CONFIG"
_ENV_OVERRIDES = {
    "GDV_SEGMENT_WIDTH": "segment_width",
    "GDV_END_MARKER": "end_marker",
    "GDV_ENCODING": "encoding",
    "GDV_DUMMY_VU_NUMMER": "dummy_vu_nummer",
    "GDV_URL_TIMEOUT": "url_timeout",
}


class PipelineConfig(BaseModel):
    """Settings shared by records and packages.

    ``end_marker`` is appended after every physical line on export; keep it
    empty to get exact ``segment_count * segment_width`` exports.
    """

    segment_width: int = Field(default=256, ge=8)
    end_marker: str = ""
    encoding: str = Field(default="latin-1", min_length=1)
    dummy_vu_nummer: str = Field(default="DUMMY", min_length=1, max_length=5)
    url_timeout: float = Field(default=30.0, gt=0)


def _candidate_config_files(path: Path | None) -> list[Path]:
    if path is not None:
        return [path]
    candidates: list[Path] = []
    explicit_file = os.getenv(CONFIG_ENV_VAR)
    if explicit_file:
        candidates.append(Path(explicit_file).expanduser())
    candidates.append(Path.cwd() / "gdv_pipeline.toml")
    return candidates


def _load_file_values(path: Path | None) -> dict[str, Any]:
    for file_path in _candidate_config_files(path):
        if not file_path.exists():
            if path is not None:
                raise FileNotFoundError(f"Config file not found: {file_path}")
            continue
        with file_path.open("rb") as handle:
            payload = tomllib.load(handle)
        LOGGER.debug("Loaded configuration from %s", file_path)
        section = payload.get("gdv", payload)
        return dict(section) if isinstance(section, dict) else {}
    return {}


def load_config(path: Path | None = None) -> PipelineConfig:
    values = _load_file_values(path)
    for env_name, key in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is not None:
            values[key] = raw
    return PipelineConfig.model_validate(values)
