"""Subscription model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, String
from datetime import datetime
from typing import Optional
import uuid


class Subscription(SQLModel, table=True):
    """Billing state of a user, written by the payment integration and read for quota checks."""

    __tablename__ = "subscriptions"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        max_length=36
    )
    user_id: str = Field(sa_column=Column(String(100), unique=True, index=True, nullable=False))
    plan_id: str = Field(default="free", max_length=32)  # free, pro_monthly, pro_yearly
    status: str = Field(default="active", max_length=20)  # active, canceled, past_due, incomplete
    customer_id: Optional[str] = Field(default=None, max_length=255)
    current_period_end: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
