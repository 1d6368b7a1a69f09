"""Subscription lifecycle for the player's single GAIM host.

Per (agent, host) pair the ledger moves through

  Unsubscribed -> Requested -> Active   (host restricts subscriptions)
  Unsubscribed -> Active                (open host)
  Active -> Cancelled                   (explicit cancel)

Nothing is cached here: whether we are subscribed is re-derived from a fresh
"subscriptions for user" listing on every call. A requested-but-unapproved
subscription that the ledger lists counts as subscribed.

`ensure_subscribed` does no locking. Callers must not run it concurrently for
the same host; the app runs it from a single task.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import bittensor as bt

from gaim_player.errors import AdapterReadFailure, HostNotFound, SubscriptionTransactionFailed
from gaim_player.ledger.adapter import SubscriptionLedgerAdapter
from gaim_player.ledger.schemas import AgentParams, SubscriberRecord, SubscriptionRecord


class SubscriptionAction(str, Enum):
    ALREADY_SUBSCRIBED = "already_subscribed"
    REQUESTED = "requested"
    CREATED = "created"


@dataclass(frozen=True)
class SubscriptionOutcome:
    action: SubscriptionAction
    host_id: str
    host_name: str = ""
    tx_ref: Optional[str] = None


class SubscriptionManager:
    def __init__(
        self,
        adapter: SubscriptionLedgerAdapter,
        *,
        agent_id: str,
        callback_url: str,
        duration_days: int = 1,
        cancel_quality_score: int = 100,
    ) -> None:
        self.adapter = adapter
        self.agent_id = agent_id
        self.callback_url = callback_url
        self.duration_days = duration_days
        self.cancel_quality_score = cancel_quality_score

    async def get_host_params(self, host_id: str) -> Optional[AgentParams]:
        try:
            return await self.adapter.get_agent_params(host_id)
        except Exception as exc:
            bt.logging.warning(f"Failed to find host {host_id}: {exc}")
            return None

    async def ensure_subscribed(self, host_id: str) -> SubscriptionOutcome:
        """Subscribe to `host_id` unless the ledger already lists a subscription to it.

        Raises HostNotFound if the ledger has no such host, AdapterReadFailure if
        the host or our own subscriptions cannot be read, and
        SubscriptionTransactionFailed if the request/create transaction fails.
        """
        try:
            host = await self.adapter.get_agent_params(host_id)
        except AdapterReadFailure:
            raise
        except Exception as exc:
            raise AdapterReadFailure(f"Could not look up host {host_id}: {exc}") from exc
        if host is None:
            raise HostNotFound(host_id)
        bt.logging.info(f"Found gamemaster: {host.name}")

        # Strict read: an unknown subscription state must not lead to a write.
        try:
            subscriptions = await self.adapter.list_subscriptions_for_user(self.agent_id)
        except AdapterReadFailure:
            raise
        except Exception as exc:
            raise AdapterReadFailure(f"Could not list subscriptions for {self.agent_id}: {exc}") from exc
        if any(sub.data_provider == host_id for sub in subscriptions):
            bt.logging.info("Already subscribed to host.")
            return SubscriptionOutcome(SubscriptionAction.ALREADY_SUBSCRIBED, host_id, host.name)

        bt.logging.info("Subscribing to host.")
        try:
            if host.restrict_subscriptions:
                tx = await self.adapter.request_subscription(data_provider=host_id)
                bt.logging.info(f"Requested subscription {tx}")
                return SubscriptionOutcome(SubscriptionAction.REQUESTED, host_id, host.name, tx)

            tx = await self.adapter.create_subscription(
                data_provider=host_id,
                recipient=self.callback_url,
                duration_in_days=self.duration_days,
            )
            bt.logging.info(f"Created subscription {tx}")
            return SubscriptionOutcome(SubscriptionAction.CREATED, host_id, host.name, tx)
        except Exception as exc:
            raise SubscriptionTransactionFailed(host_id, exc) from exc

    async def cancel_subscription(self, host_id: str) -> List[str]:
        sigs = await self.adapter.cancel_subscription(
            data_provider=host_id,
            quality_score=self.cancel_quality_score,
        )
        bt.logging.info(f"Unsubscribed from host. {sigs}")
        return sigs

    async def list_host_subscribers(self, host_id: str) -> List[SubscriberRecord]:
        # Informational only; never fail the caller.
        try:
            return await self.adapter.list_subscribers_for_provider(host_id)
        except Exception as exc:
            bt.logging.error(f"Error getting host subscribers: {exc}")
            return []

    async def list_own_subscriptions(self, self_id: Optional[str] = None) -> List[SubscriptionRecord]:
        try:
            return await self.adapter.list_subscriptions_for_user(self_id or self.agent_id)
        except Exception as exc:
            bt.logging.error(f"Error getting subscriptions: {exc}")
            return []

