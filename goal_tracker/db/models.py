from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


class KVState(Base):
    __tablename__ = "kv_state"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class SheetRow(Base):
    __tablename__ = "sheet_rows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    goal_id: Mapped[str] = mapped_column(String(64), nullable=False, default="", server_default="")
    goal_title: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    goal_impact: Mapped[str] = mapped_column(String(16), nullable=False, default="", server_default="")
    goal_target_date: Mapped[str] = mapped_column(String(32), nullable=False, default="", server_default="")
    task_id: Mapped[str] = mapped_column(String(96), nullable=False, default="", server_default="")
    task_title: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    task_due_date: Mapped[str] = mapped_column(String(32), nullable=False, default="", server_default="")
    task_impact: Mapped[str] = mapped_column(String(16), nullable=False, default="", server_default="")
    frequency: Mapped[str] = mapped_column(String(16), nullable=False, default="", server_default="")
    completed: Mapped[str] = mapped_column(String(8), nullable=False, default="FALSE", server_default="FALSE")
