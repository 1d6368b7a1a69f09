"""
GAIM poker player: subscribes to the configured host, then serves its signed
broadcasts over HTTP.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Tuple

import bittensor as bt
import uvicorn
from fastapi import FastAPI

from gaim_player.auth.signing import load_keypair
from gaim_player.errors import ConfigurationError, GaimPlayerError, HostNotFound
from gaim_player.ledger.adapter import SubscriptionLedgerAdapter
from gaim_player.ledger.api_client import LedgerApiAdapter
from gaim_player.ledger.memory import InMemoryLedger
from gaim_player.ledger.schemas import AgentParams
from gaim_player.player.app import create_app
from gaim_player.player.config import PlayerEnvConfig, load_player_env
from gaim_player.player.dispatcher import BroadcastDispatcher, DecisionFn
from gaim_player.player.subscription import SubscriptionManager
from gaim_player.poker.decision import LLMDecisionFunction, fold_decision


def _build_adapter(cfg: PlayerEnvConfig, keypair: bt.Keypair) -> SubscriptionLedgerAdapter:
    if cfg.ledger_mode == "memory":
        bt.logging.warning("GAIM_LEDGER_MODE=memory: subscriptions are local to this process")
        ledger = InMemoryLedger(signer_id=keypair.ss58_address)
        ledger.register_agent(cfg.host_public_key, AgentParams(name="local-host"))
        return ledger
    return LedgerApiAdapter(cfg.ledger_url, keypair, timeout_s=cfg.ledger_timeout_s)


def _build_decision_fn(cfg: PlayerEnvConfig) -> DecisionFn:
    if not cfg.openai_api_key:
        bt.logging.warning("OPENAI_API_KEY not set; the player will fold every hand")
        return fold_decision
    return LLMDecisionFunction(model=cfg.openai_model, api_key=cfg.openai_api_key)


def build_player(cfg: PlayerEnvConfig) -> Tuple[FastAPI, SubscriptionManager]:
    keypair = load_keypair(cfg.wallet_secret)
    if cfg.wallet_public_key and cfg.wallet_public_key != keypair.ss58_address:
        raise ConfigurationError(
            "WALLET_PUBLIC_KEY must match the wallet key. "
            f"Got {cfg.wallet_public_key!r}, expected {keypair.ss58_address!r}."
        )

    manager = SubscriptionManager(
        _build_adapter(cfg, keypair),
        agent_id=keypair.ss58_address,
        callback_url=cfg.player_url,
        duration_days=cfg.subscription_days,
        cancel_quality_score=cfg.cancel_quality_score,
    )
    dispatcher = BroadcastDispatcher(cfg.host_public_key, _build_decision_fn(cfg))
    app = create_app(
        dispatcher,
        agent_id=keypair.ss58_address,
        manager=manager,
        resubscribe_interval_s=cfg.resubscribe_interval_s,
        cors_origins=cfg.cors_origins,
    )
    return app, manager


async def initialize_player(manager: SubscriptionManager, cfg: PlayerEnvConfig) -> bool:
    """Subscribe to the host. Returns False when the player must not serve traffic."""
    try:
        outcome = await manager.ensure_subscribed(cfg.host_public_key)
    except HostNotFound as exc:
        bt.logging.error(str(exc))
        return False
    except GaimPlayerError as exc:
        if cfg.allow_unsubscribed:
            bt.logging.warning(f"Serving without a confirmed subscription: {exc}")
            return True
        bt.logging.error(f"Subscription failed: {exc}")
        return False
    bt.logging.info(f"Subscription status for {outcome.host_name or outcome.host_id}: {outcome.action.value}")
    return True


def main() -> int:
    try:
        cfg = load_player_env()
        app, manager = build_player(cfg)
    except ConfigurationError as exc:
        bt.logging.error(str(exc))
        return 2

    bt.logging.info("Setting up routes for player")
    if not asyncio.run(initialize_player(manager, cfg)):
        return 1

    bt.logging.info(f"Server running on port {cfg.port}")
    uvicorn.run(app, host="0.0.0.0", port=cfg.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
