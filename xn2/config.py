from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Settings:
    host: str
    port: int
    debug: bool
    config_path: str
    poll_timeout: float
    send_timeout: float
    log_format: str


def parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_positive_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    value = float(raw)
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero")
    return value


def load_settings() -> Settings:
    return Settings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        debug=parse_bool(os.getenv("DEBUG"), False),
        config_path=os.getenv("CONFIG", "").strip(),
        poll_timeout=_parse_positive_float("XN2_POLL_TIMEOUT", 2.0),
        send_timeout=_parse_positive_float("XN2_SEND_TIMEOUT", 1.0),
        log_format=os.getenv("XN2_LOG_FORMAT", "json").strip().lower(),
    )
