"""Error taxonomy for the player service.

Startup-fatal errors (configuration, unresolvable host, failed subscribe
transaction) propagate to the entrypoint. Request-level errors are turned into
HTTP bodies by the broadcast dispatcher.
"""

from __future__ import annotations

from typing import Optional


class GaimPlayerError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(GaimPlayerError):
    """Required identity/config missing or invalid. Never recovered."""


class AuthenticationFailure(GaimPlayerError):
    """Envelope signature invalid or not produced by the trusted host."""


class MalformedPayload(GaimPlayerError):
    """Verified envelope whose payload cannot be processed."""


class AdapterReadFailure(GaimPlayerError):
    """Ledger read failed (agent params, subscription listings)."""


class AdapterWriteFailure(GaimPlayerError):
    """Ledger transaction failed (request/create/cancel subscription)."""


class HostNotFound(GaimPlayerError):
    def __init__(self, host_id: str):
        super().__init__(f"Failed to find GAIM host with key {host_id}")
        self.host_id = host_id


class SubscriptionTransactionFailed(AdapterWriteFailure):
    def __init__(self, host_id: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Subscription transaction to host {host_id} failed{detail}")
        self.host_id = host_id
        self.cause = cause


class DecisionFunctionFailure(GaimPlayerError):
    """Decision function raised or returned output outside the response schema."""
