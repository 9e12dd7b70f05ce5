"""JSON schema helpers for validating server-proxy replies."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

from .errors import BackendCallFailed

GENERATE_RESPONSE_SCHEMA = "proxy_generate_response.schema.json"
STATUS_SCHEMA = "proxy_status.schema.json"
_SCHEMA_DIR = Path(__file__).resolve().parent / "json_schemas"


def validate_proxy_payload(payload: Any, schema_name: str, *, backend: str = "proxy") -> None:
    """Validate a decoded proxy reply, raising ``BackendCallFailed`` on a contract violation."""

    try:
        jsonschema.validate(instance=payload, schema=load_schema(schema_name))
    except jsonschema.ValidationError as exc:
        raise BackendCallFailed(
            f"{backend} reply failed contract validation: {exc.message}",
            backend=backend,
            error_type="contract_violation",
        ) from exc


@lru_cache(maxsize=8)
def load_schema(schema_name: str) -> dict[str, Any]:
    schema_path = _SCHEMA_DIR / schema_name
    if not schema_path.exists():
        raise FileNotFoundError(f"Contract schema not found at {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))
