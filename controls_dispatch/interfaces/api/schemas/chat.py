"""Schemas for chat messages and chat templates."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .delivery import NotificationPayload


class ChatMessageRequest(BaseModel):
    webhook_id: int
    message: NotificationPayload


class BulkChatMessageRequest(BaseModel):
    webhook_ids: list[int] = Field(..., min_length=1)
    message: NotificationPayload


class TemplateAction(BaseModel):
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class ChatTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    channel: str
    message_template: str = Field(..., min_length=1)
    title_template: str = ""
    notification_type: str | None = None
    theme_color: str | None = None
    use_rich_card: bool = False
    facts: dict[str, str] = Field(default_factory=dict)
    actions: list[TemplateAction] = Field(default_factory=list)


class ChatTemplateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    channel: str
    message_template: str
    title_template: str
    notification_type: str | None = None
    theme_color: str | None = None
    use_rich_card: bool
    facts: dict[str, str]
    actions: list[dict[str, str]]
    is_active: bool
    created_by: int | None = None
    created_at: datetime | None = None


class ChatTemplateSendRequest(BaseModel):
    webhook_id: int
    variables: dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "BulkChatMessageRequest",
    "ChatMessageRequest",
    "ChatTemplateCreate",
    "ChatTemplateRead",
    "ChatTemplateSendRequest",
    "TemplateAction",
]
