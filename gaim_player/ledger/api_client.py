from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional, Type, TypeVar

import bittensor as bt
import requests
from pydantic import BaseModel

from gaim_player.auth.signing import sign_payload
from gaim_player.errors import AdapterReadFailure, AdapterWriteFailure
from gaim_player.ledger.adapter import SubscriptionLedgerAdapter
from gaim_player.ledger.schemas import AgentParams, SubscriberRecord, SubscriptionRecord

M = TypeVar("M", bound=BaseModel)


class LedgerApiAdapter(SubscriptionLedgerAdapter):
    """
    Ledger adapter backed by an HTTP ledger gateway (the `RPC_URL`).

    Reads are plain GETs. Writes are signed with the agent's wallet keypair over
    the canonical JSON body so the gateway can submit the transaction on behalf
    of `keypair.ss58_address`. `requests` is blocking, so every call runs in a
    worker thread to keep the event loop free.
    """

    def __init__(
        self,
        base_url: str,
        keypair: bt.Keypair,
        *,
        timeout_s: float = 5.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.keypair = keypair
        self.timeout_s = timeout_s

    def _get(self, path: str, *, allow_missing: bool = False) -> Optional[Any]:
        r = requests.get(f"{self.base_url}{path}", timeout=self.timeout_s)
        if allow_missing and r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {
            **payload,
            "signer": self.keypair.ss58_address,
            "timestamp": int(time.time()),
        }
        sig = sign_payload(body, keypair=self.keypair)
        r = requests.post(
            f"{self.base_url}{path}",
            json={**body, "signature": sig},
            timeout=self.timeout_s,
        )
        r.raise_for_status()
        data = r.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected response body: {data!r}")
        return data

    async def _read(self, path: str, *, allow_missing: bool = False) -> Optional[Any]:
        try:
            return await asyncio.to_thread(self._get, path, allow_missing=allow_missing)
        except Exception as exc:
            raise AdapterReadFailure(f"GET {path} failed: {exc}") from exc

    async def _read_list(self, path: str, model: Type[M]) -> List[M]:
        data = await self._read(path)
        # Only a real empty list means "none"; an error object or a wrapped body is not an answer.
        if not isinstance(data, list):
            raise AdapterReadFailure(f"GET {path} returned {type(data).__name__}, expected a list: {data!r}")
        try:
            return [model(**item) for item in data]
        except Exception as exc:
            raise AdapterReadFailure(f"GET {path} returned malformed rows: {exc}") from exc

    async def _write(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(self._post, path, payload)
        except Exception as exc:
            raise AdapterWriteFailure(f"POST {path} failed: {exc}") from exc

    async def get_agent_params(self, agent_id: str) -> Optional[AgentParams]:
        data = await self._read(f"/agents/{agent_id}", allow_missing=True)
        if data is None:
            return None
        try:
            return AgentParams(**data)
        except Exception as exc:
            raise AdapterReadFailure(f"Malformed agent params for {agent_id}: {exc}") from exc

    async def list_subscriptions_for_user(self, user_id: str) -> List[SubscriptionRecord]:
        return await self._read_list(f"/subscriptions/user/{user_id}", SubscriptionRecord)

    async def list_subscribers_for_provider(self, provider_id: str) -> List[SubscriberRecord]:
        return await self._read_list(f"/subscriptions/provider/{provider_id}", SubscriberRecord)

    async def request_subscription(self, *, data_provider: str) -> str:
        data = await self._write("/subscriptions/request", {"dataProvider": data_provider})
        return _tx_ref(data)

    async def create_subscription(self, *, data_provider: str, recipient: str, duration_in_days: int) -> str:
        data = await self._write(
            "/subscriptions/create",
            {
                "dataProvider": data_provider,
                "recipient": recipient,
                "durationInDays": int(duration_in_days),
            },
        )
        return _tx_ref(data)

    async def cancel_subscription(self, *, data_provider: str, quality_score: int) -> List[str]:
        data = await self._write(
            "/subscriptions/cancel",
            {"dataProvider": data_provider, "qualityScore": int(quality_score)},
        )
        sigs = data.get("signatures")
        if not isinstance(sigs, list):
            raise AdapterWriteFailure(f"Cancel response carries no signatures: {data!r}")
        return [str(s) for s in sigs]


def _tx_ref(data: Dict[str, Any]) -> str:
    sig = data.get("signature")
    if not sig:
        raise AdapterWriteFailure(f"Ledger response carries no transaction signature: {data!r}")
    return str(sig)
