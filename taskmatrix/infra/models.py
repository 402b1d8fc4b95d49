from __future__ import annotations

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from .db import Base


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="BACKLOG", index=True)
    importance = Column(Boolean, nullable=False, default=False)
    urgency = Column(Boolean, nullable=False, default=False)
    ai_suggested_importance = Column(Boolean, nullable=False, default=False)
    ai_suggested_urgency = Column(Boolean, nullable=False, default=False)
    ai_explanation = Column(Text, nullable=False, default="")
    effort = Column(String(1), nullable=True)
    # free-form ISO-8601 text, stored as given
    due_date = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, index=True)


class BoardSettingsModel(Base):
    __tablename__ = "board_settings"

    id = Column(Integer, primary_key=True)
    wip_limit = Column(Integer, nullable=False)
    backlog_warn_threshold = Column(Integer, nullable=False)
