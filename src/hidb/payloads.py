"""JSON file helpers shared by adapters, storage and the location db."""

from __future__ import annotations

import json
import lzma
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import FormatChecker
from jsonschema.validators import validator_for

from hidb.errors import InvalidPayload

SCHEMAS_DIR = Path(__file__).resolve().parent / "schemas"


def read_json(path: str | Path) -> Any:
    """Load JSON from ``path``, decompressing ``.xz`` files."""

    path = Path(path)
    if path.suffix == ".xz":
        with lzma.open(path, "rt", encoding="utf-8") as fh:
            return json.load(fh)
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def write_json(path: str | Path, payload: Any, *, indent: int | None = None) -> None:
    """Write ``payload`` to ``path``, compressing when it ends in ``.xz``."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(payload, indent=indent, sort_keys=False)
    if path.suffix == ".xz":
        with lzma.open(path, "wt", encoding="utf-8") as fh:
            fh.write(text)
    else:
        path.write_text(text, encoding="utf-8")


@lru_cache(maxsize=None)
def _compiled_validator(schema_name: str):
    schema = read_json(SCHEMAS_DIR / f"{schema_name}.schema.json")
    Validator = validator_for(schema)
    Validator.check_schema(schema)
    return Validator(schema, format_checker=FormatChecker())


def validate(payload: Any, schema_name: str, *, source: str | Path = "<payload>") -> None:
    """Validate ``payload`` against a bundled schema, reporting every error."""

    validator = _compiled_validator(schema_name)
    errors = sorted(validator.iter_errors(payload), key=lambda err: [str(part) for part in err.path])
    if not errors:
        return

    details = "; ".join(
        f"/{'/'.join(str(part) for part in err.path)}: {err.message}" for err in errors
    )
    raise InvalidPayload(f"{source} does not match {schema_name} schema: {details}")
