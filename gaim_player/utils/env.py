from __future__ import annotations

import os
from typing import Callable, List, TypeVar

from dotenv import load_dotenv

# Process env wins over .env; loaded once on import.
load_dotenv()

N = TypeVar("N", int, float)

_TRUTHY = {"y", "yes", "t", "true", "on", "1"}


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or "").strip()


def _env_bool(name: str, default: bool = False) -> bool:
    return _env_str(name, str(default)).lower() in _TRUTHY


def _env_number(name: str, default: N, cast: Callable[[str], N]) -> N:
    # Unset or blank falls back; anything else must parse (ValueError otherwise).
    raw = _env_str(name, "")
    return cast(raw) if raw else default


def _env_int(name: str, default: int = 0) -> int:
    return _env_number(name, default, int)


def _env_float(name: str, default: float = 0.0) -> float:
    return _env_number(name, default, float)


def _env_list(name: str, default: str = "") -> List[str]:
    """Comma-separated values, blanks dropped."""
    return [x.strip() for x in _env_str(name, default).split(",") if x.strip()]
