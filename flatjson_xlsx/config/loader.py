from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError as SchemaValidationError

from ..models.config_models import DEFAULT_SHEET, IncludeSpec, MergeConfig, OrderRest, OrderSpec

"""Config loader.

Responsibilities:
- Load the optional YAML config file given with --config
- Validate it against config_schema.json (shipped next to this module)
- Overlay command line values on the file values, field by field, and build
  the immutable MergeConfig used by the services
"""

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class FileConfig:
    """Raw values from the YAML file. ``None`` means "not set in the file"."""

    out: str | None = None
    sheet: str | None = None
    ndjson: bool | None = None
    pk: list[str] | None = None
    pk_first: bool | None = None
    include: list[str] | None = None
    include_regex: list[str] | None = None
    include_substr: list[str] | None = None
    order: list[str] | None = None
    order_regex: list[str] | None = None
    order_substr: list[str] | None = None
    order_rest: str | None = None
    hyperlink: dict[str, str] = field(default_factory=dict)


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            data violates the schema (wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except SchemaValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> FileConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    return FileConfig(
        out=data.get("out"),
        sheet=data.get("sheet"),
        ndjson=data.get("ndjson"),
        pk=data.get("pk"),
        pk_first=data.get("pk_first"),
        include=data.get("include"),
        include_regex=data.get("include_regex"),
        include_substr=data.get("include_substr"),
        order=data.get("order"),
        order_regex=data.get("order_regex"),
        order_substr=data.get("order_substr"),
        order_rest=data.get("order_rest"),
        hyperlink=dict(data.get("hyperlink") or {}),
    )


def split_csv(value: str) -> list[str]:
    """Split a comma separated flag value, trimming and dropping blanks."""
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_link_specs(value: str) -> dict[str, str]:
    """Parse ``col=BASE[,col2=BASE2,...]``. Malformed entries are skipped."""
    links: dict[str, str] = {}
    for part in split_csv(value):
        col, sep, base = part.partition("=")
        if not sep:
            logger.warning(f"Ignoring malformed --link mapping: '{part}' (expected col=BASE)")
            continue
        links[col.strip()] = base.strip()
    return links


def parse_order_rest(value: str) -> OrderRest:
    try:
        return OrderRest(value.strip().lower())
    except ValueError as e:
        raise ConfigError(
            f"invalid order_rest '{value}' (expected existing, alpha or none)"
        ) from e


def _pick_list(cli_value: str | None, file_value: list[str] | None) -> tuple[str, ...]:
    # CLI replaces the file value when the flag is given at all
    if cli_value is not None:
        return tuple(split_csv(cli_value))
    return tuple(file_value or ())


def resolve_config(args: Any, file_config: FileConfig | None = None) -> MergeConfig:
    """Overlay command line values on the config file values.

    ``args`` is the argparse namespace; missing attributes count as unset.
    Precedence per field: command line, then file, then defaults.
    """
    fc = file_config or FileConfig()

    def arg(name: str, default: Any = None) -> Any:
        return getattr(args, name, default)

    out_path = arg("out") or fc.out
    if not out_path:
        raise ConfigError("--out <FILE.xlsx> is required (or set 'out' in the config file)")

    # Input mode precedence: --array > --ndjson > config ndjson > array
    if arg("array", False):
        ndjson = False
    elif arg("ndjson", False):
        ndjson = True
    else:
        ndjson = bool(fc.ndjson)

    if arg("no_pk_first", False):
        pk_first = False
    elif arg("pk_first", False):
        pk_first = True
    else:
        pk_first = True if fc.pk_first is None else fc.pk_first

    order_rest_raw = arg("order_rest") or fc.order_rest
    order_rest = parse_order_rest(order_rest_raw) if order_rest_raw else OrderRest.EXISTING

    links = dict(fc.hyperlink)
    if arg("link"):
        links.update(parse_link_specs(arg("link")))

    return MergeConfig(
        out_path=out_path,
        sheet=arg("sheet") or fc.sheet or DEFAULT_SHEET,
        ndjson=ndjson,
        pk=_pick_list(arg("pk"), fc.pk),
        pk_first=pk_first,
        include=IncludeSpec(
            exact=_pick_list(arg("include"), fc.include),
            regex=_pick_list(arg("include_regex"), fc.include_regex),
            substr=_pick_list(arg("include_substr"), fc.include_substr),
        ),
        order=OrderSpec(
            exact=_pick_list(arg("order"), fc.order),
            regex=_pick_list(arg("order_regex"), fc.order_regex),
            substr=_pick_list(arg("order_substr"), fc.order_substr),
            rest=order_rest,
        ),
        links=links,
        dry_run=bool(arg("dry_run", False)),
    )
