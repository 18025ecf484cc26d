"""
webhook_helpers.py

Small helper utilities used across the Flask app, the inbox and the relay.

Key goals:
- Keep environment lookups (storage location, timeouts, queue sizes) in one place
- Provide small, reusable utilities (timestamps, header projection, debug printing)
"""

import os
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))

# Only these inbound headers are kept on a recorded event.
RECORDED_HEADERS = ("content-type", "user-agent")


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a `Z` suffix (2026-01-31T12:00:00.123Z)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def project_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """
    Keep only content-type and user-agent (lowercased keys).
    Headers missing from the request are left out rather than stored as null.
    """
    lowered = {str(k).lower(): v for k, v in headers.items()}
    return {name: lowered[name] for name in RECORDED_HEADERS if name in lowered}


def get_data_dir() -> str:
    """
    Storage directory for the configs document.
    Serverless deployments (VERCEL set) only have a writable /tmp.
    """
    v = (os.getenv("WEBHOOK_DATA_DIR", "") or "").strip()
    if v:
        return v
    if os.getenv("VERCEL"):
        return "/tmp"
    return os.path.join(ROOT_DIR, "data")


def get_configs_path() -> str:
    v = (os.getenv("WEBHOOK_CONFIGS_FILE", "") or "").strip()
    return v or os.path.join(get_data_dir(), "configs.json")


def get_env_float(key: str, default: float) -> float:
    raw = (os.getenv(key, "") or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"Invalid value for {key}: expected a number, got {raw!r}")


def get_env_int(key: str, default: int) -> int:
    raw = (os.getenv(key, "") or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid value for {key}: expected an integer, got {raw!r}")


def debug_dump(obj: Any, enabled_env: str = "WEBHOOK_DEBUG_DUMP_EVENT") -> None:
    """
    Print objects only when explicitly enabled (useful for debugging webhooks without flooding logs).
    Enable with: WEBHOOK_DEBUG_DUMP_EVENT=1
    """
    try:
        if (os.getenv(enabled_env, "0") or "0").strip() == "1":
            print(obj)
    except Exception:
        traceback.print_exc()
