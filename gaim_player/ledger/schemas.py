from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


SubscriptionStatus = Literal["requested", "active", "cancelled"]


class AgentParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    description: str = ""
    # Selects the acquisition policy: request-and-approve vs. direct create.
    restrict_subscriptions: bool = Field(False, alias="restrictSubscriptions")
    fee_per_day: Optional[float] = Field(None, alias="feePerDay")


class SubscriptionRecord(BaseModel):
    """One row of the "subscriptions for user" listing."""

    model_config = ConfigDict(populate_by_name=True)

    data_provider: str = Field(alias="dataProvider")
    recipient: str = ""
    duration_in_days: Optional[int] = Field(None, alias="durationInDays")
    end_time: Optional[int] = Field(None, alias="endTime")
    # The ledger only lists live rows; presence is what counts, not this field.
    status: SubscriptionStatus = "active"


class SubscriberRecord(BaseModel):
    """One row of the "subscribers for provider" listing."""

    model_config = ConfigDict(populate_by_name=True)

    subscriber: str
    recipient: str = ""
    end_time: Optional[int] = Field(None, alias="endTime")
