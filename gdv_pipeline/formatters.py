from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from .package import Package
from .violations import Violation

LOGGER = logging.getLogger(__name__)

FORMATS = {
    "plain": "text/plain",
    "json": "application/json",
    "xml": "text/xml",
    "csv": "text/csv",
    "html": "text/html",
}
_MIME_ALIASES = {
    "application/xml": "xml",
    "text/json": "json",
    "application/csv": "csv",
}
_SHEET_ALL = "ALL"
_SHEET_VIOLATIONS = "VIOLATIONS"
_FIELD_COLUMNS = ["record", "record_type", "record_name", "field", "start", "length", "type", "value"]
_VIOLATION_COLUMNS = ["subject", "value", "message"]


def to_format(value: str) -> str:
    normalized = value.strip().lower().split(";", 1)[0].strip()
    if normalized in FORMATS:
        return normalized
    for name, mime_type in FORMATS.items():
        if normalized == mime_type:
            return name
    if normalized in _MIME_ALIASES:
        return _MIME_ALIASES[normalized]
    LOGGER.info("Will use 'plain' for unknown format '%s'.", value)
    return "plain"


def resolve_format(type_: str | None = None, path: str = "", accept: str = "") -> str:
    """Pick an output format: explicit type, then path suffix, then Accept header."""
    if type_ and type_.strip():
        return to_format(type_)
    suffix = path.rsplit(".", 1)[1] if "." in path.rsplit("/", 1)[-1] else ""
    if suffix:
        return to_format(suffix)
    for accepted in accept.split(","):
        candidate = accepted.split(";", 1)[0].strip().lower()
        if not candidate or candidate.endswith("/*"):
            continue
        if candidate in FORMATS.values() or candidate in _MIME_ALIASES:
            return to_format(candidate)
    return "plain"


def _json_default(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _field_rows(package: Package) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for index, record in enumerate(package, start=1):
        for field in record.fields:
            rows.append(
                {
                    "record": index,
                    "record_type": record.tag,
                    "record_name": record.name,
                    "field": field.name,
                    "start": field.start,
                    "length": field.length,
                    "type": field.type.value,
                    "value": field.content.strip(),
                }
            )
    return rows


def fields_frame(package: Package) -> pd.DataFrame:
    return pd.DataFrame(_field_rows(package), columns=_FIELD_COLUMNS)


def violations_frame(violations: list[Violation]) -> pd.DataFrame:
    return pd.DataFrame([violation.to_dict() for violation in violations], columns=_VIOLATION_COLUMNS)


def _html_document(title: str, table: str) -> str:
    return (
        "<!DOCTYPE html>\n<html>\n<head><meta charset=\"utf-8\"><title>"
        f"{title}</title></head>\n<body>\n<h1>{title}</h1>\n{table}\n</body>\n</html>\n"
    )


def _package_xml(package: Package) -> str:
    root = ET.Element("datenpaket")
    for record in package:
        record_node = ET.SubElement(root, "satz", satzart=record.tag, name=record.name)
        for field in record.fields:
            field_node = ET.SubElement(
                record_node,
                "feld",
                name=field.name,
                start=str(field.start),
                length=str(field.length),
                type=field.type.value,
            )
            field_node.text = field.content.strip()
    ET.indent(root)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8")


def render(package: Package, fmt: str = "plain") -> str:
    fmt = to_format(fmt)
    if fmt == "json":
        return json.dumps(package.to_dict(), ensure_ascii=False, indent=2, default=_json_default)
    if fmt == "xml":
        return _package_xml(package)
    if fmt == "csv":
        return fields_frame(package).to_csv(index=False)
    if fmt == "html":
        return _html_document("Datenpaket", fields_frame(package).to_html(index=False))
    return package.export()


def render_violations(violations: list[Violation], fmt: str = "plain") -> str:
    fmt = to_format(fmt)
    if fmt == "json":
        return json.dumps([violation.to_dict() for violation in violations], ensure_ascii=False, indent=2)
    if fmt == "xml":
        root = ET.Element("violations")
        for violation in violations:
            node = ET.SubElement(root, "violation", subject=violation.subject_name, value=violation.value)
            node.text = violation.message
        ET.indent(root)
        return ET.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8")
    if fmt == "csv":
        return violations_frame(violations).to_csv(index=False)
    if fmt == "html":
        return _html_document("Violations", violations_frame(violations).to_html(index=False))
    return "".join(f"{violation}\n" for violation in violations)


def _safe_sheet_name(base: str, existing: set[str]) -> str:
    cleaned = re.sub(r"[:\\/?*\[\]]", "_", str(base).strip())
    if not cleaned:
        cleaned = "TYPE"
    candidate = cleaned[:31]
    index = 1
    while candidate in existing:
        suffix = f"_{index}"
        candidate = f"{cleaned[: max(1, 31 - len(suffix))]}{suffix}"
        index += 1
    existing.add(candidate)
    return candidate


def _set_column_widths(worksheet) -> None:
    from openpyxl.utils import get_column_letter

    for col_idx in range(1, worksheet.max_column + 1):
        max_len = 0
        for row_idx in range(1, min(worksheet.max_row, 3000) + 1):
            value = worksheet.cell(row_idx, col_idx).value
            if value is not None:
                max_len = max(max_len, len(str(value)))
        worksheet.column_dimensions[get_column_letter(col_idx)].width = min(max(max_len + 2, 10), 54)


def _record_type_frames(package: Package) -> dict[str, pd.DataFrame]:
    rows_by_type: dict[str, list[dict[str, Any]]] = {}
    for index, record in enumerate(package, start=1):
        row: dict[str, Any] = {"record": index}
        row.update({field.name: field.content.strip() for field in record.fields})
        rows_by_type.setdefault(record.tag, []).append(row)
    return {tag: pd.DataFrame(rows) for tag, rows in rows_by_type.items()}


def export_to_excel(
    package: Package,
    output_path: Path,
    violations: list[Violation] | None = None,
) -> None:
    if not len(package):
        raise ValueError("No records to export to Excel.")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    existing_sheet_names = {_SHEET_ALL, _SHEET_VIOLATIONS}
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        fields_frame(package).to_excel(writer, index=False, sheet_name=_SHEET_ALL)
        sheet_names = [_SHEET_ALL]
        for tag, frame in sorted(_record_type_frames(package).items()):
            sheet_name = _safe_sheet_name(tag, existing_sheet_names)
            frame.to_excel(writer, index=False, sheet_name=sheet_name)
            sheet_names.append(sheet_name)
        if violations is not None:
            violations_frame(violations).to_excel(writer, index=False, sheet_name=_SHEET_VIOLATIONS)
            sheet_names.append(_SHEET_VIOLATIONS)

        for sheet_name in sheet_names:
            _set_column_widths(writer.book[sheet_name])

    LOGGER.info("Excel exported to %s", output_path)
