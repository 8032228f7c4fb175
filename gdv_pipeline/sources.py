from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse

import requests

from .errors import PackageImportError

LOGGER = logging.getLogger(__name__)

_URL_SCHEMES = {"http", "https"}


def is_url(location: str) -> bool:
    return urlparse(location).scheme.lower() in _URL_SCHEMES


def read_url(url: str, encoding: str = "latin-1", timeout: float = 30.0) -> str:
    LOGGER.info("Reading records from %s...", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as error:
        raise PackageImportError(f"Cannot read {url}: {error}") from error
    try:
        content = response.content.decode(encoding)
    except (UnicodeDecodeError, LookupError) as error:
        raise PackageImportError(f"Cannot decode {url} as {encoding}: {error}") from error
    LOGGER.info("Reading records from %s finished with %s bytes.", url, len(response.content))
    return content


def read_file(path: Path, encoding: str = "latin-1") -> str:
    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError, LookupError) as error:
        raise PackageImportError(f"Cannot read {path}: {error}") from error


def read_source(location: str, encoding: str = "latin-1", timeout: float = 30.0) -> str:
    if is_url(location):
        return read_url(location, encoding=encoding, timeout=timeout)
    return read_file(Path(location).expanduser(), encoding=encoding)
