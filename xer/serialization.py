from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from xer.errors import SerializationError
from xer.models import ResultBundle


def canonical_json_bytes(value: BaseModel | dict[str, Any] | list[Any]) -> bytes:
    if isinstance(value, BaseModel):
        payload: Any = value.model_dump()
    else:
        payload = value
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True, allow_nan=False)
    return encoded.encode("utf-8")


def encode_bundle(bundle: ResultBundle) -> bytes:
    try:
        return canonical_json_bytes(bundle)
    except (TypeError, ValueError) as exc:
        raise SerializationError(bundle.name, str(exc)) from exc
