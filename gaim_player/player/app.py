from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Any, List, Optional

import bittensor as bt
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from gaim_player.player.dispatcher import BroadcastDispatcher, DispatchResponse
from gaim_player.player.subscription import SubscriptionManager


def _to_http(resp: DispatchResponse) -> Response:
    if isinstance(resp.body, str):
        return PlainTextResponse(resp.body, status_code=resp.status_code)
    return JSONResponse(resp.body, status_code=resp.status_code)


async def _resubscribe_loop(manager: SubscriptionManager, host_id: str, interval_s: float) -> None:
    # One task per app, so calls for the host never overlap.
    while True:
        await asyncio.sleep(interval_s)
        try:
            outcome = await manager.ensure_subscribed(host_id)
            bt.logging.debug(f"Subscription check: {outcome.action.value}")
        except Exception as exc:
            bt.logging.error(f"Periodic subscription check failed: {exc}")


def create_app(
    dispatcher: BroadcastDispatcher,
    *,
    agent_id: str = "",
    manager: Optional[SubscriptionManager] = None,
    resubscribe_interval_s: float = 0,
    cors_origins: Optional[List[str]] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        task: Optional[asyncio.Task] = None
        if manager is not None and resubscribe_interval_s > 0:
            task = asyncio.create_task(_resubscribe_loop(manager, dispatcher.host_id, resubscribe_interval_s))
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    app = FastAPI(title="GAIM Player", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "host": dispatcher.host_id, "agent": agent_id}

    # An empty request path is served as "/" by the HTTP layer.
    @app.post("/")
    async def broadcast(request: Request):
        try:
            envelope: Any = await request.json()
        except ValueError:
            # Unparseable bodies cannot carry a valid signature.
            envelope = None
        return _to_http(await dispatcher.handle(envelope))

    return app
