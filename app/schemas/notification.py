"""Notification schemas for the DocVault API."""
from pydantic import BaseModel
from datetime import date, datetime
from typing import Any, Dict, List, Optional


class NotificationDocument(BaseModel):
    """Snapshot of the associated document, read at request time."""
    title: str
    category: str
    due_date: Optional[str] = None


class NotificationResponse(BaseModel):
    """Schema for notification API responses."""
    id: str
    owner_id: str
    document_id: str
    message: str
    type: str
    priority: int
    due_on: Optional[date] = None
    read: bool
    created_at: datetime
    document: Optional[NotificationDocument] = None


class NotificationFeed(BaseModel):
    """Notification list plus its derived unread count."""
    notifications: List[NotificationResponse]
    count: int
    unread_count: int


class DerivationResponse(BaseModel):
    """Outcome of a derivation run."""
    status: str  # ok or partial
    created: List[NotificationResponse]
    created_count: int
    skipped_duplicates: int
    documents_scanned: int
    errors: List[Dict[str, Any]] = []


class UnreadCount(BaseModel):
    count: int
