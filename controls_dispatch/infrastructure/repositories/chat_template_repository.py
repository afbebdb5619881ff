"""Persistence helpers for chat message templates."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import ChatTemplate
from controls_dispatch.infrastructure.models import ChatTemplateModel
from controls_dispatch.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class ChatTemplateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, template_id: int) -> ChatTemplate | None:
        model = self.session.get(ChatTemplateModel, template_id)
        return self._to_entity(model) if model else None

    def list(self, *, channel: str | None = None, active_only: bool = True) -> Sequence[ChatTemplate]:
        query = self.session.query(ChatTemplateModel)
        if channel:
            query = query.filter(ChatTemplateModel.channel == channel)
        if active_only:
            query = query.filter(ChatTemplateModel.is_active.is_(True))
        query = query.order_by(ChatTemplateModel.name, ChatTemplateModel.id)
        return [self._to_entity(model) for model in query.all()]

    def create(self, template: ChatTemplate) -> ChatTemplate:
        model = ChatTemplateModel()
        self._apply_entity_to_model(model, template)
        model.created_at = ensure_app_naive_datetime(template.created_at or now_in_app_timezone())
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, template_id: int) -> bool:
        model = self.session.get(ChatTemplateModel, template_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    @staticmethod
    def _apply_entity_to_model(model: ChatTemplateModel, template: ChatTemplate) -> None:
        model.name = template.name
        model.channel = template.channel
        model.notification_type = template.notification_type
        model.title_template = template.title_template
        model.message_template = template.message_template
        model.theme_color = template.theme_color
        model.use_rich_card = template.use_rich_card
        model.facts = dict(template.facts)
        model.actions = list(template.actions)
        model.is_active = template.is_active
        model.created_by = template.created_by

    @staticmethod
    def _to_entity(model: ChatTemplateModel) -> ChatTemplate:
        return ChatTemplate(
            id=model.id,
            name=model.name,
            channel=model.channel,
            message_template=model.message_template,
            title_template=model.title_template or "",
            notification_type=model.notification_type,
            theme_color=model.theme_color,
            use_rich_card=bool(model.use_rich_card),
            facts=dict(model.facts or {}),
            actions=list(model.actions or []),
            is_active=bool(model.is_active),
            created_by=model.created_by,
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["ChatTemplateRepository"]
