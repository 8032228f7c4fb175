from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .errors import PackageImportError
from .formatters import FORMATS, render, render_violations
from .package import Package

LOGGER = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        stream=sys.stderr,
    )


def _output_format(args: argparse.Namespace) -> str:
    if args.xml or (args.target and args.target.lower().endswith(".xml")):
        return "xml"
    return args.fmt or "plain"


def _import_package(package: Package, source: str | None) -> None:
    if source:
        package.import_location(source)
    else:
        stdin = getattr(sys.stdin, "buffer", sys.stdin)
        package.import_from(stdin.read())


def _write_output(package: Package, fmt: str, target: str | None) -> None:
    if target is None:
        sys.stdout.write(render(package, fmt))
        return
    output_path = Path(target)
    if fmt == "plain":
        package.export_file(output_path)
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render(package, fmt), encoding="utf-8")
    LOGGER.info("%s output written to %s", fmt.upper(), output_path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gdv-pipeline",
        description="Import, validate and export GDV fixed-width exchange files.",
        add_help=False,
    )
    parser.add_argument("-help", "--help", "-h", action="help", help="Show this help and exit.")
    parser.add_argument(
        "-import",
        "--import",
        dest="source",
        default=None,
        help="File path or http(s) URL to import (stdin otherwise).",
    )
    parser.add_argument(
        "-export",
        "--export",
        dest="target",
        default=None,
        help="Export file (a .xml suffix writes XML, stdout otherwise).",
    )
    parser.add_argument("-xml", "--xml", action="store_true", help="Write XML instead of GDV text.")
    parser.add_argument(
        "-format",
        "--format",
        dest="fmt",
        choices=sorted(FORMATS),
        default=None,
        help="Output format (default: plain GDV text).",
    )
    parser.add_argument("-validate", "--validate", action="store_true", help="Print violations to stderr.")
    parser.add_argument("--config", default=None, help="TOML configuration file ([gdv] table).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logs.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(verbose=args.verbose)

    config = load_config(Path(args.config) if args.config else None)
    package = Package(config)
    try:
        _import_package(package, args.source)
    except PackageImportError as error:
        LOGGER.error("Import failed: %s", error)
        return 2

    _write_output(package, _output_format(args), args.target)

    if args.validate:
        violations = package.validate()
        sys.stderr.write(render_violations(violations))
        if violations:
            LOGGER.warning("Validation finished with %s violation(s).", len(violations))
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
