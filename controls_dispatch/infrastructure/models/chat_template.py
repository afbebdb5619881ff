"""SQLAlchemy model for chat message templates."""

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

from controls_dispatch.infrastructure.database import Base
from controls_dispatch.utils import now_in_app_naive_datetime


class ChatTemplateModel(Base):
    __tablename__ = "chat_template"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    channel = Column(String(20), nullable=False, index=True)
    notification_type = Column(String(50), nullable=True)
    title_template = Column(String(500), nullable=False, default="")
    message_template = Column(Text, nullable=False)
    theme_color = Column(String(6), nullable=True)
    use_rich_card = Column(Boolean, nullable=False, default=False)
    facts = Column(JSON, nullable=False, default=dict)
    actions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["ChatTemplateModel"]
