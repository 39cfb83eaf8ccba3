from __future__ import annotations

import argparse
import sys
from pathlib import Path

from flatjson_xlsx import __version__
from flatjson_xlsx.config.loader import ConfigError, FileConfig, load_config, resolve_config
from flatjson_xlsx.excel.store import StoreError
from flatjson_xlsx.logging.init import log_summary, setup_logging
from flatjson_xlsx.records.source import ParseError
from flatjson_xlsx.services.orchestrator import process_run
from flatjson_xlsx.services.summary import render_summary_line

"""CLI entrypoint.

Reads flattened JSON records from stdin and merges them into an .xlsx sheet:

    flatjson-xlsx --out OUT.xlsx [--sheet Sheet1] [--pk col1,col2] < input.json

Exit codes: 0 success, 2 output path without .xlsx extension, 1 any other
failure (config, parse, workbook read/write).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_INVALID_OUT = 2

REQUIRED_EXTENSION = ".xlsx"

EPILOG = """\
notes:
  Existing XLSX is updated in place; formatting is preserved.
  If --ndjson is set but the input starts with '[', it is parsed as an array.
  Inclusion is ACTIVE if any include list is present (exact/regex/substr).
  Column order: (PKs if pk_first) -> ordered groups -> remainder (--order-rest).
  --link / [hyperlink] writes a HYPERLINK formula so the cell shows only the
  value but is clickable.
"""


class ValidationError(Exception):
    """Raised when the output path does not end with .xlsx."""


def validate_out_path(out_path: str) -> None:
    if not out_path.lower().endswith(REQUIRED_EXTENSION):
        raise ValidationError(f"--out must end with {REQUIRED_EXTENSION}: {out_path}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="flatjson-xlsx",
        description="Merge flattened JSON records from stdin into an .xlsx sheet",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-o", "--out", help="Excel output file (.xlsx)")
    p.add_argument("-s", "--sheet", help="Sheet name (default: Sheet1)")
    p.add_argument("-k", "--pk", help="Primary key column(s), comma separated")
    p.add_argument("-c", "--config", help="YAML config file")

    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--array", action="store_true", help="Parse stdin as a JSON array (or single object)")
    mode.add_argument("--ndjson", action="store_true", help="Parse stdin as newline-delimited JSON")

    p.add_argument("--pk-first", action="store_true", help="Place PK columns first (default)")
    p.add_argument("--no-pk-first", action="store_true", help="Do not force PK columns first")

    p.add_argument("-i", "--include", help="Only keep these columns (comma separated)")
    p.add_argument("--include-regex", help="Only keep columns matching these regexes")
    p.add_argument("--include-substr", help="Only keep columns containing these substrings")

    p.add_argument("--order", help="Columns to place first, in this order")
    p.add_argument("--order-regex", help="Regex groups placed next, in this order")
    p.add_argument("--order-substr", help="Columns containing these substrings placed next")
    p.add_argument(
        "--order-rest",
        type=str.lower,
        choices=["existing", "alpha", "none"],
        help="Remaining columns: existing order, natural sort or dropped",
    )
    p.add_argument("--link", help="Hyperlink bases: col=BASE[,col2=BASE2,...]")

    p.add_argument("--dry-run", action="store_true", help="Print a preview instead of writing the workbook")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    # None only: an empty list from tests must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    try:
        file_cfg = load_config(Path(args.config)) if args.config else FileConfig()
        cfg = resolve_config(args, file_cfg)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        validate_out_path(cfg.out_path)
    except ValidationError as e:
        logger.error(str(e))
        return EXIT_INVALID_OUT

    # bytes; the record source decodes them
    payload = sys.stdin.buffer.read()

    try:
        result = process_run(cfg, payload)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except ParseError as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
