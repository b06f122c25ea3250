"""Document model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, String, Text
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid


DOCUMENT_CATEGORIES = [
    "Real Estate",
    "Banking",
    "Tax",
    "Healthcare",
    "Legal",
    "Employment",
    "Insurance",
    "Education",
    "Utilities",
    "Travel",
    "Other",
]

# Keys of the classifier's extracted_data record
EXTRACTED_DATE_FIELDS = ["due_dates", "expiry_dates", "payment_dates", "renewal_dates", "dates"]
EXTRACTED_FIELDS = ["dates", "amounts", "reference_ids", "keywords"] + EXTRACTED_DATE_FIELDS[:4]


class Document(SQLModel, table=True):
    """Uploaded document with the metadata extracted by the AI classifier."""

    __tablename__ = "documents"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        max_length=36
    )
    owner_id: str = Field(sa_column=Column(String(100), index=True, nullable=False))
    title: str = Field(max_length=500)
    filename: str = Field(max_length=255)
    file_path: Optional[str] = Field(default=None, max_length=500)  # storage path, set by the upload client
    mime_type: Optional[str] = Field(default=None, max_length=100)
    file_size: Optional[int] = Field(default=None)
    category: str = Field(default="Other", max_length=50)
    summary: Optional[str] = Field(default=None, sa_column=Column(Text))
    extracted_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    # Primary fields pulled out of extracted_data for quick access
    due_date: Optional[str] = Field(default=None, max_length=32)  # ISO date string, may be malformed
    amount: Optional[float] = Field(default=None)
    reference_id: Optional[str] = Field(default=None, max_length=255)

    urgency_score: int = Field(default=1)  # 1-10
    confidence_score: float = Field(default=0.5)  # 0.0-1.0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def date_candidates(self) -> List[Any]:
        """All date strings attached to the document, in collection order.

        The five extracted date arrays come first, followed by the primary
        due date. Duplicates are kept; absent or non-list fields count as empty.
        """
        data = self.extracted_data or {}
        candidates: List[Any] = []
        for field in EXTRACTED_DATE_FIELDS:
            values = data.get(field)
            if isinstance(values, list):
                candidates.extend(values)
        if self.due_date:
            candidates.append(self.due_date)
        return candidates

    @property
    def keywords(self) -> List[str]:
        values = (self.extracted_data or {}).get("keywords")
        if not isinstance(values, list):
            return []
        return [k for k in values if isinstance(k, str)]
