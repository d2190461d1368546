"""
Environment value helpers.
"""

from __future__ import annotations

TRUTHY_VALUES = {"1", "true", "yes", "on"}


def sanitize_env_value(raw: str | None, fallback: str = "") -> str:
    value = (raw if raw is not None else fallback).strip()
    if len(value) >= 2 and ((value[0] == '"' and value[-1] == '"') or (value[0] == "'" and value[-1] == "'")):
        value = value[1:-1]
    # Guard against literal escaped control chars leaked by some env providers.
    return value.replace("\\n", "").replace("\\r", "").strip()


def env_flag(raw: str | None) -> bool:
    """Interpret a boolean-like env value ("1", "true", "yes", "on")."""
    return sanitize_env_value(raw).lower() in TRUTHY_VALUES


def env_int(raw: str | None, default: int) -> int:
    value = sanitize_env_value(raw)
    try:
        return int(value)
    except ValueError:
        return default


def env_float(raw: str | None, default: float) -> float:
    value = sanitize_env_value(raw)
    try:
        return float(value)
    except ValueError:
        return default
