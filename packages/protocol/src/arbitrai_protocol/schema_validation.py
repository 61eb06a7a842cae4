from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"

MODEL_VERDICT_SCHEMA = "model_verdict.schema.json"
EVIDENCE_RESPONSE_SCHEMA = "evidence_response.schema.json"
EVIDENCE_RECEIPT_SCHEMA = "evidence_receipt.schema.json"

_VALIDATORS: dict[str, Draft202012Validator] = {}


def _load_validator(name: str) -> Draft202012Validator:
    if name not in _VALIDATORS:
        schema = json.loads((SCHEMA_DIR / name).read_text(encoding="utf-8"))
        Draft202012Validator.check_schema(schema)
        _VALIDATORS[name] = Draft202012Validator(schema)
    return _VALIDATORS[name]


def validate_schema(name: str, payload: Any) -> list[str]:
    """Human-readable violations of ``payload`` against a bundled schema; empty when valid."""
    validator = _load_validator(name)
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
    return [f"{'/'.join(map(str, err.path)) or '<root>'}: {err.message}" for err in errors]
