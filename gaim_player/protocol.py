"""Broadcast wire protocol shared by the GAIM host and player agents.

The host POSTs a signed envelope to every subscriber:

  {"signature": "<hex>", "payload": {"type": "Ping" | "Query", "content": {...}}}

`signature` covers the canonical JSON of `payload` exactly as sent (see
`gaim_player.auth.signing.canon_json`).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

import bittensor as bt
from pydantic import BaseModel, field_validator

from gaim_player.auth.signing import sign_payload


class BroadcastType(str, Enum):
    PING = "Ping"  # No content, expects a 200 response
    QUERY = "Query"  # Has content, expects a 200 response with the decision filled in


# Hosts built on the numeric enum send the ordinal instead of the name.
_ORDINALS = {0: BroadcastType.PING, 1: BroadcastType.QUERY}


class BroadcastPayload(BaseModel):
    type: BroadcastType
    content: Optional[Dict[str, Any]] = None

    @field_validator("type", mode="before")
    @classmethod
    def _accept_ordinal(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            if v not in _ORDINALS:
                raise ValueError(f"unknown broadcast type ordinal {v}")
            return _ORDINALS[v]
        return v


class SignedEnvelope(BaseModel):
    signature: str
    payload: Dict[str, Any]


def build_signed_envelope(
    broadcast_type: BroadcastType,
    content: Optional[Dict[str, Any]] = None,
    *,
    keypair: bt.Keypair,
) -> Dict[str, Any]:
    """Sign a broadcast the way the host does. Used by host-side tooling and tests."""
    payload = BroadcastPayload(type=broadcast_type, content=content).model_dump(mode="json", exclude_none=True)
    return SignedEnvelope(signature=sign_payload(payload, keypair=keypair), payload=payload).model_dump()
