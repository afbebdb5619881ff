"""Domain entity for reusable chat message templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ChatTemplate:
    id: int | None
    name: str
    channel: str
    message_template: str
    title_template: str = ""
    notification_type: str | None = None
    theme_color: str | None = None
    use_rich_card: bool = False
    facts: dict[str, str] = field(default_factory=dict)
    actions: list[dict[str, str]] = field(default_factory=list)
    is_active: bool = True
    created_by: int | None = None
    created_at: datetime | None = None


__all__ = ["ChatTemplate"]
