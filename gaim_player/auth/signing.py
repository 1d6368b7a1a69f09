from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import bittensor as bt
import rfc8785

from gaim_player.errors import ConfigurationError

SIGNATURE_BYTES = 64


@dataclass(frozen=True)
class VerificationResult:
    is_valid: bool


def canon_json(obj: Dict[str, Any]) -> bytes:
    # RFC 8785 (JCS): sorted keys, no whitespace, ES6 number formatting.
    return rfc8785.dumps(obj)


def sign_payload(payload: Dict[str, Any], *, keypair: bt.Keypair) -> str:
    msg = canon_json(payload)
    sig = keypair.sign(msg)
    return sig.hex()


def _decode_signature(signature_hex: Any) -> bytes:
    if not isinstance(signature_hex, str):
        raise ValueError("signature must be a hex string")
    raw = signature_hex.strip()
    if raw.startswith(("0x", "0X")):
        raw = raw[2:]
    sig = bytes.fromhex(raw)
    if len(sig) != SIGNATURE_BYTES:
        raise ValueError(f"signature must be {SIGNATURE_BYTES} bytes, got {len(sig)}")
    return sig


def _signer(ss58_address: str) -> bt.Keypair | None:
    try:
        return bt.Keypair(ss58_address=ss58_address)
    except (AttributeError, TypeError, NameError, ImportError):
        # Broken install or API drift; not something the caller sent.
        raise
    except Exception as exc:
        bt.logging.warning(f"Trusted signer key {ss58_address!r} is not a valid address: {exc}")
        return None


def verify_payload(payload: Any, *, ss58_address: str, signature_hex: Any) -> bool:
    """Check `signature_hex` over the canonical form of `payload`.

    Never raises for bad input from the wire. A missing trusted key, or a
    keypair library that cannot be used at all, is raised: those are
    deployment faults rather than bad requests.
    """
    if not ss58_address:
        raise ConfigurationError("No trusted signer key configured")
    kp = _signer(ss58_address)
    if kp is None:
        return False
    try:
        sig = _decode_signature(signature_hex)
        msg = canon_json(payload)
    except (ValueError, TypeError, rfc8785.CanonicalizationError):
        return False
    try:
        return bool(kp.verify(msg, sig))
    except Exception:
        # Signature bytes that do not decode to a curve point.
        return False


def verify_message(payload: Any, signature: Any, signer_key: str) -> VerificationResult:
    return VerificationResult(is_valid=verify_payload(payload, ss58_address=signer_key, signature_hex=signature))


def load_keypair(secret: str) -> bt.Keypair:
    """Build a keypair from a mnemonic phrase or a hex seed."""
    secret = (secret or "").strip()
    if not secret:
        raise ConfigurationError("WALLET_PRIVATE_KEY not provided")
    try:
        if len(secret.split()) > 1:
            return bt.Keypair.create_from_mnemonic(secret)
        return bt.Keypair.create_from_seed(secret)
    except Exception as exc:
        raise ConfigurationError(f"WALLET_PRIVATE_KEY is not a valid mnemonic or seed: {type(exc).__name__}") from exc
