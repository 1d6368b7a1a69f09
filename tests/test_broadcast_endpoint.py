from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import bittensor as bt
import pytest
from fastapi.testclient import TestClient

from gaim_player.auth.signing import sign_payload
from gaim_player.errors import ConfigurationError
from gaim_player.player.app import create_app
from gaim_player.player.dispatcher import BroadcastDispatcher, handle_broadcast
from gaim_player.poker.models import PokerPayload
from gaim_player.protocol import BroadcastType, build_signed_envelope

HOST_KP = bt.Keypair.create_from_seed("01" * 32)
OTHER_KP = bt.Keypair.create_from_seed("02" * 32)


def _poker_content() -> Dict[str, Any]:
    return {
        "tableState": {
            "forcedBets": {"ante": 0, "bigBlind": 20, "smallBlind": 10},
            "pots": [30],
            "biggestBet": 20,
            "communityCards": [],
        },
        "playerState": {
            "name": "player-1",
            "holeCards": [{"rank": "7", "suit": "clubs"}, {"rank": "2", "suit": "hearts"}],
            "currentBet": 0,
            "stack": 1000,
            "inPots": [0],
            "legalActions": {"actions": ["fold", "call", "raise"], "chipRange": {"min": 40, "max": 1000}},
        },
        "actionHistory": [{"roundOfBetting": "preflop", "name": "player-2", "action": "bet", "betSize": 20}],
    }


class RecordingDecision:
    def __init__(self, result: Any = None, error: Exception | None = None):
        self.calls: List[Any] = []
        self.result = result if result is not None else {"action": "fold", "betSize": 0}
        self.error = error

    async def __call__(self, content: Any) -> Any:
        self.calls.append(content)
        if self.error is not None:
            raise self.error
        return self.result


def _client(decision: RecordingDecision) -> TestClient:
    return TestClient(create_app(BroadcastDispatcher(HOST_KP.ss58_address, decision), agent_id="agent"))


def test_invalid_signature_returns_401():
    decision = RecordingDecision()
    envelope = build_signed_envelope(BroadcastType.QUERY, _poker_content(), keypair=OTHER_KP)

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 401
    assert r.json()["error"] == "Invalid signature"
    assert isinstance(r.json()["details"], str)
    assert decision.calls == []


def test_tampered_payload_returns_401():
    decision = RecordingDecision()
    envelope = build_signed_envelope(BroadcastType.QUERY, _poker_content(), keypair=HOST_KP)
    envelope["payload"]["content"]["playerState"]["stack"] = 999999

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 401
    assert decision.calls == []


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"payload": {"type": "Ping"}},
        {"signature": "00", "payload": "Ping"},
        [1, 2, 3],
    ],
)
def test_envelopes_without_verifiable_payload_return_401(body):
    r = _client(RecordingDecision()).post("/", json=body)
    assert r.status_code == 401


def test_non_json_body_returns_401():
    r = _client(RecordingDecision()).post("/", content=b"not json", headers={"content-type": "application/json"})
    assert r.status_code == 401


def test_ping_is_acknowledged_without_decision():
    decision = RecordingDecision()
    envelope = build_signed_envelope(BroadcastType.PING, keypair=HOST_KP)

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 200
    assert r.text == "Got ping"
    assert decision.calls == []


def test_ping_content_is_ignored():
    decision = RecordingDecision()
    payload = {"type": "Ping", "content": {"garbage": ["not", "a", "table"]}}
    envelope = {"signature": sign_payload(payload, keypair=HOST_KP), "payload": payload}

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 200
    assert decision.calls == []


def test_query_returns_decision():
    decision = RecordingDecision({"action": "fold", "betSize": 0})
    envelope = build_signed_envelope(BroadcastType.QUERY, _poker_content(), keypair=HOST_KP)

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 200
    assert r.json() == {"action": "fold", "betSize": 0}
    assert len(decision.calls) == 1
    assert isinstance(decision.calls[0], PokerPayload)
    assert decision.calls[0].playerState.name == "player-1"


def test_query_response_drops_extra_fields():
    decision = RecordingDecision({"action": "raise", "betSize": 80, "explanation": "strong hand", "debug": 1})
    envelope = build_signed_envelope(BroadcastType.QUERY, _poker_content(), keypair=HOST_KP)

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 200
    assert r.json() == {"action": "raise", "betSize": 80}


def test_numeric_broadcast_type_is_accepted():
    decision = RecordingDecision()
    payload = {"type": 1, "content": _poker_content()}
    envelope = {"signature": sign_payload(payload, keypair=HOST_KP), "payload": payload}

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 200
    assert len(decision.calls) == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "Query"},
        {"type": "Query", "content": None},
        {"type": "Query", "content": {"tableState": {}}},
        {"type": "Shout", "content": {}},
        {"type": 7},
    ],
)
def test_bad_query_returns_client_error(payload):
    decision = RecordingDecision()
    envelope = {"signature": sign_payload(payload, keypair=HOST_KP), "payload": payload}

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 400
    assert r.json()["error"] == "Malformed payload"
    assert decision.calls == []


def test_decision_failure_returns_500():
    decision = RecordingDecision(error=RuntimeError("model timed out"))
    envelope = build_signed_envelope(BroadcastType.QUERY, _poker_content(), keypair=HOST_KP)

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error", "details": "model timed out"}


def test_decision_output_outside_schema_returns_500():
    decision = RecordingDecision({"action": "all-in", "betSize": 1000})
    envelope = build_signed_envelope(BroadcastType.QUERY, _poker_content(), keypair=HOST_KP)

    r = _client(decision).post("/", json=envelope)

    assert r.status_code == 500
    assert r.json()["error"] == "Internal server error"


def test_missing_host_key_is_a_configuration_error():
    envelope = build_signed_envelope(BroadcastType.PING, keypair=HOST_KP)
    with pytest.raises(ConfigurationError):
        asyncio.run(handle_broadcast(envelope, "", RecordingDecision()))


def test_handle_broadcast_function_contract():
    envelope = build_signed_envelope(BroadcastType.PING, keypair=HOST_KP)
    resp = asyncio.run(handle_broadcast(envelope, HOST_KP.ss58_address, RecordingDecision()))
    assert resp.status_code == 200
    assert resp.body == "Got ping"


def test_healthz():
    r = _client(RecordingDecision()).get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "host": HOST_KP.ss58_address, "agent": "agent"}


def test_raw_body_signed_by_another_serializer_is_accepted():
    decision = RecordingDecision()
    sig = HOST_KP.sign(b'{"content":{"v":1e-7},"type":"Ping"}').hex()
    body = '{"signature":"%s","payload":{"type":"Ping","content":{"v":1e-7}}}' % sig

    r = _client(decision).post("/", content=body.encode(), headers={"content-type": "application/json"})

    assert r.status_code == 200
    assert r.text == "Got ping"
