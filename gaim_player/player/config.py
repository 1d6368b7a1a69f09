from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

from gaim_player.errors import ConfigurationError
from gaim_player.utils.env import _env_bool, _env_float, _env_int, _env_list, _env_str


LedgerMode = Literal["gateway", "memory"]


@dataclass(frozen=True)
class PlayerEnvConfig:
    host_public_key: str
    wallet_secret: str
    wallet_public_key: Optional[str]
    ledger_mode: LedgerMode
    ledger_url: str
    ledger_timeout_s: float
    player_url: str
    port: int
    subscription_days: int
    cancel_quality_score: int
    resubscribe_interval_s: int
    allow_unsubscribed: bool
    cors_origins: List[str]
    openai_model: str
    openai_api_key: Optional[str]

    def __repr__(self) -> str:
        # Keep key material out of logs and tracebacks.
        return (
            f"PlayerEnvConfig(host={self.host_public_key!r}, ledger={self.ledger_mode}:{self.ledger_url!r}, "
            f"player_url={self.player_url!r}, port={self.port})"
        )


def _die(msg: str) -> None:
    raise ConfigurationError(f"[gaim-player] {msg}")


def _require(name: str) -> str:
    v = _env_str(name, "")
    if not v:
        _die(f"{name} not provided in .env")
    return v


def _int(name: str, default: int) -> int:
    try:
        return _env_int(name, default)
    except ValueError:
        _die(f"{name} must be an integer. Got: {_env_str(name)!r}")
    return default


def _float(name: str, default: float) -> float:
    try:
        return _env_float(name, default)
    except ValueError:
        _die(f"{name} must be a number. Got: {_env_str(name)!r}")
    return default


def load_player_env() -> PlayerEnvConfig:
    """
    Load player configuration from env/.env with strict validation.

    Called once at startup; nothing downstream re-reads the environment.
    """
    host_public_key = _require("GAIM_HOST_PUBLIC_KEY")
    wallet_secret = _require("WALLET_PRIVATE_KEY")
    wallet_public_key = _env_str("WALLET_PUBLIC_KEY", "") or None

    ledger_raw = (_env_str("GAIM_LEDGER_MODE", "gateway") or "gateway").lower()
    if ledger_raw not in ("gateway", "memory"):
        _die(f"Invalid GAIM_LEDGER_MODE={ledger_raw!r} (expected 'gateway' or 'memory').")
    ledger_mode: LedgerMode = "memory" if ledger_raw == "memory" else "gateway"

    ledger_url = _env_str("RPC_URL", "").rstrip("/")
    if ledger_mode == "gateway":
        if not ledger_url:
            _die("RPC_URL not provided in .env (required when GAIM_LEDGER_MODE=gateway).")
        if not ledger_url.startswith("http"):
            _die(f"RPC_URL must be http(s). Got: {ledger_url!r}")

    player_url = _require("GAIM_PLAYER_URL").rstrip("/")
    if not player_url.startswith("http"):
        _die(f"GAIM_PLAYER_URL must be http(s). Got: {player_url!r}")

    port = _int("SERVER_PORT", 3000)
    if not 0 < port < 65536:
        _die(f"SERVER_PORT out of range: {port}")

    subscription_days = _int("GAIM_SUBSCRIPTION_DAYS", 1)
    if subscription_days < 1:
        _die(f"GAIM_SUBSCRIPTION_DAYS must be >= 1. Got: {subscription_days}")

    cors_origins = _env_list("GAIM_CORS_ORIGINS", "*") or ["*"]
    if "*" in cors_origins:
        cors_origins = ["*"]

    return PlayerEnvConfig(
        host_public_key=host_public_key,
        wallet_secret=wallet_secret,
        wallet_public_key=wallet_public_key,
        ledger_mode=ledger_mode,
        ledger_url=ledger_url,
        ledger_timeout_s=max(0.5, _float("GAIM_LEDGER_TIMEOUT_S", 5.0)),
        player_url=player_url,
        port=port,
        subscription_days=subscription_days,
        cancel_quality_score=_int("GAIM_CANCEL_QUALITY_SCORE", 100),
        resubscribe_interval_s=max(0, _int("GAIM_RESUBSCRIBE_INTERVAL_S", 0)),
        allow_unsubscribed=_env_bool("GAIM_ALLOW_UNSUBSCRIBED", False),
        cors_origins=cors_origins,
        openai_model=_env_str("OPENAI_MODEL", "gpt-4o-mini") or "gpt-4o-mini",
        openai_api_key=_env_str("OPENAI_API_KEY", "") or None,
    )
