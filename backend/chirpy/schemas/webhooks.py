from __future__ import annotations

from pydantic import BaseModel, Field


class PolkaWebhookData(BaseModel):
    # Parsed as a UUID only for events we act on.
    user_id: str = Field(min_length=1)


class PolkaWebhookIn(BaseModel):
    event: str = Field(min_length=1)
    data: PolkaWebhookData
