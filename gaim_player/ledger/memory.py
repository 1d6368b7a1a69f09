from __future__ import annotations

import itertools
import time
from typing import Dict, List, Optional, Tuple

from gaim_player.ledger.adapter import SubscriptionLedgerAdapter
from gaim_player.ledger.schemas import AgentParams, SubscriberRecord, SubscriptionRecord


class InMemoryLedger(SubscriptionLedgerAdapter):
    """
    Process-local ledger used for `GAIM_LEDGER_MODE=memory` and in tests.

    Writes act on behalf of `signer_id`, like a wallet-bound chain client.
    Requested subscriptions are listed for the user straight away (status
    "requested") until the provider calls `approve`.
    """

    def __init__(self, signer_id: str):
        self.signer_id = signer_id
        self._agents: Dict[str, AgentParams] = {}
        # (subscriber, provider) -> record
        self._subs: Dict[Tuple[str, str], SubscriptionRecord] = {}
        self._tx_counter = itertools.count(1)
        # Ordered log of write calls, e.g. ("create", {...}).
        self.writes: List[Tuple[str, dict]] = []

    def _next_tx(self) -> str:
        return f"mem-tx-{next(self._tx_counter)}"

    def register_agent(self, agent_id: str, params: AgentParams) -> None:
        self._agents[agent_id] = params

    def approve(self, subscriber_id: str, provider_id: str) -> None:
        rec = self._subs.get((subscriber_id, provider_id))
        if rec is not None:
            self._subs[(subscriber_id, provider_id)] = rec.model_copy(update={"status": "active"})

    async def get_agent_params(self, agent_id: str) -> Optional[AgentParams]:
        return self._agents.get(agent_id)

    async def list_subscriptions_for_user(self, user_id: str) -> List[SubscriptionRecord]:
        return [rec for (sub, _), rec in self._subs.items() if sub == user_id]

    async def list_subscribers_for_provider(self, provider_id: str) -> List[SubscriberRecord]:
        return [
            SubscriberRecord(subscriber=sub, recipient=rec.recipient, end_time=rec.end_time)
            for (sub, prov), rec in self._subs.items()
            if prov == provider_id and rec.status == "active"
        ]

    async def request_subscription(self, *, data_provider: str) -> str:
        self.writes.append(("request", {"data_provider": data_provider}))
        self._subs[(self.signer_id, data_provider)] = SubscriptionRecord(
            data_provider=data_provider,
            status="requested",
        )
        return self._next_tx()

    async def create_subscription(self, *, data_provider: str, recipient: str, duration_in_days: int) -> str:
        self.writes.append(
            (
                "create",
                {"data_provider": data_provider, "recipient": recipient, "duration_in_days": duration_in_days},
            )
        )
        self._subs[(self.signer_id, data_provider)] = SubscriptionRecord(
            data_provider=data_provider,
            recipient=recipient,
            duration_in_days=duration_in_days,
            end_time=int(time.time()) + int(duration_in_days) * 86400,
            status="active",
        )
        return self._next_tx()

    async def cancel_subscription(self, *, data_provider: str, quality_score: int) -> List[str]:
        self.writes.append(("cancel", {"data_provider": data_provider, "quality_score": quality_score}))
        self._subs.pop((self.signer_id, data_provider), None)
        return [self._next_tx()]
