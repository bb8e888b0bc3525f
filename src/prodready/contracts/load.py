"""Load and validate JSON instances against the bundled schemas.

Usage::

    from prodready.contracts.load import validate_instance, validate_file

    validate_instance(result.to_dict(), "analysis_result.schema.json")
    validate_file(Path("out/fix.json"), "fix_result.schema.json")
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema

SCHEMA_DIR = "data/schemas"


def _schema_path(name: str) -> Path:
    """Resolve a schema shipped under ``prodready/data/schemas``.

    Priority:
    1. Source tree (relative to this file)
    2. Installed package data via importlib.resources
    """
    canonical = Path(__file__).resolve().parents[1] / SCHEMA_DIR / name
    if canonical.exists():
        return canonical
    with resources.as_file(resources.files("prodready") / SCHEMA_DIR / name) as p:
        return p


def available_schemas() -> list[str]:
    folder = Path(__file__).resolve().parents[1] / SCHEMA_DIR
    return sorted(p.name for p in folder.glob("*.schema.json"))


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema by filename; ``FileNotFoundError`` if unknown."""
    path = _schema_path(name)
    if not path.exists():
        raise FileNotFoundError(f"unknown schema: {name}")
    return json.loads(path.read_text(encoding="utf-8"))


def validate_instance(instance: Any, schema_name: str) -> None:
    """Validate *instance* against the named schema.

    Raises ``jsonschema.ValidationError`` on failure.
    """
    schema = load_schema(schema_name)
    jsonschema.validate(instance=instance, schema=schema)


def validate_file(instance_path: Path, schema_name: str) -> None:
    """Load a JSON file and validate it against the named schema."""
    instance = json.loads(instance_path.read_text(encoding="utf-8"))
    validate_instance(instance, schema_name)
