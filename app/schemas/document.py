"""Document schemas for the DocVault API."""
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union


class DocumentCreate(BaseModel):
    """Schema for registering an uploaded document and its AI classification."""
    filename: str = Field(..., min_length=1, max_length=255)
    title: Optional[str] = Field(None, max_length=500)  # Defaults to the classifier summary
    file_path: Optional[str] = Field(None, max_length=500)  # Storage path returned by the upload
    mime_type: Optional[str] = Field(None, max_length=100)
    file_size: Optional[int] = Field(None, ge=0)
    classification: Union[Dict[str, Any], str, None] = Field(None)  # Classifier result or raw response text


class DocumentResponse(BaseModel):
    """Schema for document API responses."""
    id: str
    owner_id: str
    title: str
    filename: str
    file_path: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    category: str
    summary: Optional[str] = None
    extracted_data: Dict[str, List[str]] = {}
    due_date: Optional[str] = None
    amount: Optional[float] = None
    reference_id: Optional[str] = None
    urgency_score: int
    confidence_score: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UpcomingDate(BaseModel):
    """A future deadline found on one of the user's documents."""
    due_on: date
    document_id: str
    title: str
    category: str


class SubscriptionUsage(BaseModel):
    """Current plan and document quota usage."""
    plan_id: str
    plan_name: str
    documents_limit: int  # -1 means unlimited
    documents_count: int
    can_upload: bool
