"""Notification model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, String, Text
from datetime import date, datetime
from typing import Optional
import uuid


NOTIFICATION_TYPES = ["due_date", "expiry", "payment", "renewal", "urgent", "overdue"]


class Notification(SQLModel, table=True):
    """Reminder derived from a date found on one of the owner's documents."""

    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint(
            "type IN (" + ", ".join(f"'{t}'" for t in NOTIFICATION_TYPES) + ")",
            name="ck_notifications_type"
        ),
    )

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        max_length=36
    )
    owner_id: str = Field(sa_column=Column(String(100), index=True, nullable=False))
    document_id: str = Field(
        sa_column=Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    message: str = Field(sa_column=Column(Text, nullable=False))
    type: str = Field(default="due_date", max_length=20)  # due_date, expiry, payment, renewal, urgent, overdue
    priority: int = Field(default=1)  # 1-10, taken from the urgency tier
    due_on: Optional[date] = Field(default=None, sa_column=Column(Date, index=True))  # dedupe key component
    read: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False, index=True)
    )
