"""Load collection sets from a YAML document.

Values of the form ``${VAR}`` in any string are replaced with the value of
the environment variable ``VAR`` (empty when unset) before validation.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import TypeAdapter, ValidationError

from xer.errors import ConfigError
from xer.models import CollectionSet

_ENV_PATTERN = re.compile(r"\$\{(\w+)\}")
_SETS_ADAPTER = TypeAdapter(list[CollectionSet])


def substitute_env_vars(obj: Any) -> Any:
    if isinstance(obj, str):
        return _ENV_PATTERN.sub(lambda m: os.getenv(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: substitute_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [substitute_env_vars(item) for item in obj]
    return obj


def parse_sets(raw: Any) -> list[CollectionSet]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("configuration must be a list of collection sets")
    try:
        sets = _SETS_ADAPTER.validate_python(substitute_env_vars(raw))
    except ValidationError as exc:
        raise ConfigError(f"invalid collection set configuration: {exc}") from exc

    names: set[str] = set()
    for xset in sets:
        if xset.name in names:
            raise ConfigError(f"duplicate collection set name {xset.name!r}")
        names.add(xset.name)
    return sets


def load_sets(config_path: str | Path | None) -> list[CollectionSet]:
    if not config_path:
        return []
    path = Path(config_path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"unable to read configuration {path}: {exc}") from exc
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"malformed YAML in {path}: {exc}") from exc
    return parse_sets(raw)
