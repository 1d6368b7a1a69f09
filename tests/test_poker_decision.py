from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from gaim_player.poker.decision import LLMDecisionFunction, fold_decision
from gaim_player.poker.models import ActionHistoryEntry, PokerPayload
from gaim_player.poker.prompt import action_history_strings, generate_poker_prompt


def _payload(chip_range: bool = True) -> PokerPayload:
    legal: Dict[str, Any] = {"actions": ["fold", "call", "raise"]}
    if chip_range:
        legal["chipRange"] = {"min": 40, "max": 1000}
    return PokerPayload(
        tableState={
            "forcedBets": {"ante": 0, "bigBlind": 20, "smallBlind": 10},
            "pots": [30],
            "biggestBet": 20,
            "communityCards": [{"rank": "A", "suit": "spades"}, {"rank": "K", "suit": "spades"}, {"rank": "2", "suit": "hearts"}],
        },
        playerState={
            "name": "player-1",
            "holeCards": [{"rank": "Q", "suit": "spades"}, {"rank": "J", "suit": "spades"}],
            "currentBet": 0,
            "stack": 1000,
            "inPots": [0],
            "legalActions": legal,
        },
        actionHistory=[{"roundOfBetting": "flop", "name": "averyverylongname", "action": "bet", "betSize": 20}],
    )


class FakeCompletions:
    def __init__(self, content: str):
        self.content = content
        self.requests: List[Dict[str, Any]] = []

    async def create(self, **kwargs: Any):
        self.requests.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def _fake_client(content: str) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(content)))


def test_prompt_includes_state():
    p = _payload()
    prompt = generate_poker_prompt(p.tableState, p.playerState, p.actionHistory)

    assert "Your name is player-1" in prompt
    assert "- Hand: [Q of spades, J of spades]" in prompt
    assert "- Community Cards: [A of spades, K of spades, 2 of hearts]" in prompt
    assert "- Legal Actions: [fold, call, raise]" in prompt
    assert "minimum of 40 dollars and a maximum of 1000 dollars" in prompt


def test_prompt_without_chip_range_has_no_bet_limits():
    p = _payload(chip_range=False)
    prompt = generate_poker_prompt(p.tableState, p.playerState, p.actionHistory)
    assert "minimum of" not in prompt


def test_action_history_clips_names():
    entries = [
        ActionHistoryEntry(roundOfBetting="flop", name="averyverylongname", action="bet", betSize=20),
        ActionHistoryEntry(roundOfBetting="flop", name="bob", action="check", betSize=0),
    ]
    assert action_history_strings(entries) == [
        "During the flop, averyver bets 20",
        "During the flop, bob checks",
    ]


def test_llm_decision_parses_structured_output():
    client = _fake_client(json.dumps({"action": "raise", "betSize": 120, "explanation": "flush draw"}))
    decide = LLMDecisionFunction(client=client, model="gpt-test")

    decision = asyncio.run(decide(_payload()))

    assert decision.action == "raise"
    assert decision.betSize == 120
    assert decision.explanation == "flush draw"
    req = client.chat.completions.requests[0]
    assert req["model"] == "gpt-test"
    assert req["response_format"] == {"type": "json_object"}
    assert "Your name is player-1" in req["messages"][1]["content"]


def test_llm_decision_rejects_illegal_action_names():
    decide = LLMDecisionFunction(client=_fake_client(json.dumps({"action": "shove", "betSize": 1})))
    with pytest.raises(ValueError):
        asyncio.run(decide(_payload()))


def test_fold_decision():
    decision = asyncio.run(fold_decision(_payload()))
    assert decision.model_dump() == {"action": "fold", "betSize": 0}
