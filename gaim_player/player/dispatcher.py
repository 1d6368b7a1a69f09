"""Turn one inbound signed broadcast into exactly one response.

Order of checks:
  1. host key configured            -> ConfigurationError (deployment fault, raised)
  2. signature by the host          -> 401
  3. Ping                           -> 200 ack, content never read
  4. Query content parses           -> 400 otherwise
  5. decision function + schema     -> 200 with only the schema's fields
Anything failing in 3-5 collapses to a 500 with a message string.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Type, Union

import bittensor as bt
from pydantic import BaseModel, ValidationError

from gaim_player.auth.signing import verify_message
from gaim_player.errors import (
    AuthenticationFailure,
    ConfigurationError,
    DecisionFunctionFailure,
    MalformedPayload,
)
from gaim_player.poker.models import PokerAction, PokerPayload
from gaim_player.protocol import BroadcastPayload, BroadcastType

PING_ACK = "Got ping"

DecisionFn = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class DispatchResponse:
    status_code: int
    # str -> plain text, dict -> JSON
    body: Union[str, Dict[str, Any]]


def _error(status_code: int, error: str, details: str) -> DispatchResponse:
    return DispatchResponse(status_code, {"error": error, "details": details})


def _normalize(output: Any, response_model: Type[BaseModel]) -> Dict[str, Any]:
    if isinstance(output, BaseModel):
        output = output.model_dump()
    if not isinstance(output, Mapping):
        raise DecisionFunctionFailure(f"decision function returned {type(output).__name__}, expected a mapping")
    try:
        # Unknown keys are dropped by the model, so extras never reach the host.
        return response_model.model_validate(dict(output)).model_dump(mode="json")
    except ValidationError as exc:
        raise DecisionFunctionFailure(f"decision output does not match {response_model.__name__}: {exc}") from exc


def _authenticate(envelope: Any, host_id: str) -> Dict[str, Any]:
    if not isinstance(envelope, Mapping):
        raise AuthenticationFailure("Envelope is not an object")
    payload = envelope.get("payload")
    signature = envelope.get("signature")
    if not isinstance(payload, Mapping):
        raise AuthenticationFailure("Envelope carries no payload object")
    if not verify_message(dict(payload), signature, host_id).is_valid:
        raise AuthenticationFailure("Message signature verification failed")
    return dict(payload)


class BroadcastDispatcher:
    def __init__(
        self,
        host_id: str,
        decision_fn: DecisionFn,
        *,
        content_model: Type[BaseModel] = PokerPayload,
        response_model: Type[BaseModel] = PokerAction,
    ) -> None:
        self.host_id = host_id
        self.decision_fn = decision_fn
        self.content_model = content_model
        self.response_model = response_model

    async def handle(self, envelope: Any) -> DispatchResponse:
        if not self.host_id:
            raise ConfigurationError("GAIM_HOST_PUBLIC_KEY not provided")

        try:
            raw_payload = _authenticate(envelope, self.host_id)
        except AuthenticationFailure as exc:
            bt.logging.debug(f"Rejected broadcast: {exc}")
            return _error(401, "Invalid signature", str(exc))

        try:
            return await self._dispatch(raw_payload)
        except MalformedPayload as exc:
            bt.logging.warning(f"Malformed broadcast payload: {exc}")
            return _error(400, "Malformed payload", str(exc))
        except Exception as exc:
            bt.logging.error(f"Error processing request: {exc}")
            return _error(500, "Internal server error", str(exc))

    async def _dispatch(self, raw_payload: Dict[str, Any]) -> DispatchResponse:
        # Only the discriminant is parsed up front; a Ping's content is never touched.
        try:
            kind = BroadcastPayload.model_validate({"type": raw_payload.get("type")}).type
        except ValidationError as exc:
            raise MalformedPayload(f"Unknown broadcast type {raw_payload.get('type')!r}") from exc

        if kind == BroadcastType.PING:
            return DispatchResponse(200, PING_ACK)

        raw_content = raw_payload.get("content")
        if raw_content is None:
            raise MalformedPayload("Query broadcast without content")
        try:
            content = self.content_model.model_validate(raw_content)
        except ValidationError as exc:
            raise MalformedPayload(f"Query content does not match {self.content_model.__name__}: {exc}") from exc

        try:
            output = await self.decision_fn(content)
        except Exception as exc:
            raise DecisionFunctionFailure(str(exc)) from exc
        return DispatchResponse(200, _normalize(output, self.response_model))


async def handle_broadcast(envelope: Any, host_id: str, decision_fn: DecisionFn) -> DispatchResponse:
    return await BroadcastDispatcher(host_id, decision_fn).handle(envelope)
