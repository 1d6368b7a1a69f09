from __future__ import annotations

import json
from typing import Any, Optional

import bittensor as bt
from openai import AsyncOpenAI

from gaim_player.poker.models import PokerAction, PokerDecision, PokerPayload
from gaim_player.poker.prompt import generate_poker_prompt

SYSTEM_PROMPT = (
    "You are a poker agent. Reply with a single JSON object with keys "
    '"action" (one of "fold", "check", "call", "bet", "raise"), '
    '"betSize" (number, 0 if you fold, check or call) and '
    '"explanation" (a short string).'
)


class LLMDecisionFunction:
    """Decide a poker action by asking an OpenAI chat model for structured JSON."""

    def __init__(
        self,
        *,
        client: Optional[Any] = None,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
    ) -> None:
        self.client = client if client is not None else AsyncOpenAI(api_key=api_key)
        self.model = model

    async def __call__(self, payload: PokerPayload) -> PokerDecision:
        legal = payload.playerState.legalActions
        bt.logging.info(f"Legal Actions: {legal.actions}")
        if legal.chipRange:
            bt.logging.info(f"Bet Range: {legal.chipRange.min} -> {legal.chipRange.max}")

        prompt = generate_poker_prompt(payload.tableState, payload.playerState, payload.actionHistory)
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
        raw = completion.choices[0].message.content or "{}"
        decision = PokerDecision(**json.loads(raw))

        bt.logging.info(f"Parsed action: {decision.action}")
        bt.logging.info(f"Parsed betSize: {decision.betSize}")
        bt.logging.debug(f"Explanation: {decision.explanation}")
        return decision


async def fold_decision(payload: PokerPayload) -> PokerAction:
    """Fallback decision function that always folds. Used when no LLM key is configured."""
    bt.logging.info(f"Folding for {payload.playerState.name} (no decision model configured)")
    return PokerAction(action="fold", betSize=0)
