from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel

from gdv_pipeline.config import load_config
from gdv_pipeline.errors import GdvError, PackageImportError
from gdv_pipeline.formatters import FORMATS, render, resolve_format
from gdv_pipeline.package import Package
from gdv_pipeline.sources import read_source

LOGGER = logging.getLogger(__name__)
CONFIG = load_config()
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class ViolationResponse(BaseModel):
    subject: str
    value: str
    message: str


def _new_package() -> Package:
    return Package(CONFIG)


def _import(content: str) -> Package:
    package = _new_package()
    package.import_from(content)
    return package


def _error_entry(error: Exception) -> ViolationResponse:
    return ViolationResponse(subject=type(error).__name__, value="", message=str(error))


async def _request_content(request: Request, text: str | None) -> str:
    if text and text.strip():
        return text
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        value = form.get("text")
        return value if isinstance(value, str) else ""
    body = await request.body()
    try:
        return body.decode(CONFIG.encoding)
    except (UnicodeDecodeError, LookupError) as error:
        raise HTTPException(status_code=400, detail=f"Cannot decode request body: {error}") from error


async def _upload_content(upload: UploadFile) -> str:
    payload = await upload.read()
    try:
        return payload.decode(CONFIG.encoding)
    except (UnicodeDecodeError, LookupError) as error:
        LOGGER.warning("Cannot read upload %s: %s", upload.filename, error)
        raise HTTPException(status_code=400, detail=f"Cannot read {upload.filename}: {error}") from error


def _fetch(uri: str) -> str:
    started = time.perf_counter()
    content = read_source(uri, encoding=CONFIG.encoding, timeout=CONFIG.url_timeout)
    LOGGER.info(
        "Reading records from %s finished after %.3fs with %s bytes.",
        uri,
        time.perf_counter() - started,
        len(content),
    )
    return content


def _validate(content: str) -> list[ViolationResponse]:
    started = time.perf_counter()
    LOGGER.info("Validating records of %s bytes...", len(content))
    try:
        package = _import(content)
    except PackageImportError as error:
        return [_error_entry(error)]
    violations = [ViolationResponse(**violation.to_dict()) for violation in package.validate()]
    LOGGER.info(
        "Validating records finished with %s violation(s) in %.3fs.",
        len(violations),
        time.perf_counter() - started,
    )
    return violations


def _format(content: str, type_: str | None, request: Request) -> Response:
    started = time.perf_counter()
    fmt = resolve_format(type_, request.url.path, request.headers.get("accept", ""))
    LOGGER.info("Formatting records of %s bytes as %s...", len(content), fmt)
    try:
        package = _import(content)
    except PackageImportError as error:
        raise HTTPException(status_code=400, detail=str(error)) from error
    rendered = render(package, fmt)
    LOGGER.info("Formatting records as %s finished in %.3fs.", fmt, time.perf_counter() - started)
    return Response(content=rendered, media_type=FORMATS[fmt])


app = FastAPI(
    title="GDV PIPELINE API",
    version="1.0.0",
    description="Validation and formatting of GDV fixed-width exchange files.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GdvError)
async def handle_gdv_error(request: Request, error: GdvError) -> PlainTextResponse:
    LOGGER.info("Call of '%s' fails: %s", request.url.path, error)
    return PlainTextResponse(str(error), status_code=400)


@app.get("/api/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "segment_width": CONFIG.segment_width,
        "record_types": _new_package().registry.codes(),
    }


@app.get("/api/v1/validate", response_model=list[ViolationResponse])
def validate_uri(uri: str = Query(...)) -> list[ViolationResponse]:
    try:
        content = _fetch(uri)
    except PackageImportError as error:
        LOGGER.warning("Cannot validate '%s': %s", uri, error)
        return [_error_entry(error)]
    return _validate(content)


@app.post("/api/v1/validate", response_model=list[ViolationResponse])
async def validate_text(request: Request, text: str | None = Query(default=None)) -> list[ViolationResponse]:
    return _validate(await _request_content(request, text))


@app.post("/api/v1/validateUploaded", response_model=list[ViolationResponse])
async def validate_uploaded(file: UploadFile = File(...)) -> list[ViolationResponse]:
    return _validate(await _upload_content(file))


@app.get("/api/v1/format")
def format_uri(request: Request, uri: str = Query(...), type: str | None = Query(default=None)) -> Response:
    try:
        content = _fetch(uri)
    except PackageImportError as error:
        raise HTTPException(status_code=400, detail=str(error)) from error
    return _format(content, type, request)


@app.post("/api/v1/format")
async def format_text(
    request: Request,
    text: str | None = Query(default=None),
    type: str | None = Query(default=None),
) -> Response:
    return _format(await _request_content(request, text), type, request)


@app.post("/api/v1/formatUploaded")
async def format_uploaded(
    request: Request,
    file: UploadFile = File(...),
    type: str | None = Query(default=None),
) -> Response:
    return _format(await _upload_content(file), type, request)


@app.post("/api/v1/Datenpaket")
async def datenpaket(request: Request, text: str | None = Query(default=None)) -> dict[str, Any]:
    content = await _request_content(request, text)
    try:
        package = _import(content)
    except PackageImportError as error:
        raise HTTPException(status_code=400, detail=str(error)) from error
    return package.to_dict()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("web_app.backend.main:app", host="0.0.0.0", port=8000, reload=True)
