"""Draft-07 contracts that a model reply must meet to count as structured."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, List

from jsonschema import Draft7Validator

GUARDRAILS_DIR = Path(__file__).resolve().parent.parent / "guardrails"


@lru_cache(maxsize=None)
def _load_schema(name: str) -> Draft7Validator:
    schema = json.loads((GUARDRAILS_DIR / name).read_text(encoding="utf-8"))
    return Draft7Validator(schema)


def contract_errors(name: str, payload: Any) -> List[str]:
    """Return human-readable violations of contract `name`; empty when valid."""
    validator = _load_schema(name)
    errors = sorted(validator.iter_errors(payload), key=lambda e: str(list(e.path)))
    return [f"{list(e.path)}: {e.message}" for e in errors]
