"""Capability interface over the subscription ledger.

Chain/RPC specifics live behind this contract. `SubscriptionManager` only
depends on these six calls, so tests can drive it with an in-memory fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from gaim_player.ledger.schemas import AgentParams, SubscriberRecord, SubscriptionRecord


class SubscriptionLedgerAdapter(ABC):
    @abstractmethod
    async def get_agent_params(self, agent_id: str) -> Optional[AgentParams]:
        """Return the agent's params, or None if the ledger has no such identity."""

    @abstractmethod
    async def list_subscriptions_for_user(self, user_id: str) -> List[SubscriptionRecord]:
        ...

    @abstractmethod
    async def list_subscribers_for_provider(self, provider_id: str) -> List[SubscriberRecord]:
        ...

    @abstractmethod
    async def request_subscription(self, *, data_provider: str) -> str:
        """Ask a restricted provider for access. Returns the transaction reference."""

    @abstractmethod
    async def create_subscription(self, *, data_provider: str, recipient: str, duration_in_days: int) -> str:
        """Subscribe directly to an open provider. Returns the transaction reference."""

    @abstractmethod
    async def cancel_subscription(self, *, data_provider: str, quality_score: int) -> List[str]:
        ...
