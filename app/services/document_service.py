"""Document service for uploads, search and filtering."""
from sqlmodel import Session, select
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from app.models.document import DOCUMENT_CATEGORIES, Document
from app.models.notification import Notification
from app.services.extraction_normalizer import ExtractionNormalizer
from app.services.plan_service import PlanService
from app.services.urgency import REMINDER_TIMEZONE, local_today, parse_candidate_date

logger = logging.getLogger(__name__)

SORT_FIELDS = ["created_at", "title", "due_date", "urgency"]

# Generic `dates` are not deadlines, so they stay out of the upcoming list
UPCOMING_DATE_FIELDS = ["due_dates", "expiry_dates", "payment_dates", "renewal_dates"]


class DocumentService:
    """Service class for document CRUD scoped to the owning user."""

    def __init__(self, session: Session, timezone: str = REMINDER_TIMEZONE):
        self.session = session
        self.timezone = timezone

    def create_document(
        self,
        owner_id: str,
        filename: str,
        classification: Any,
        title: Optional[str] = None,
        file_path: Optional[str] = None,
        mime_type: Optional[str] = None,
        file_size: Optional[int] = None
    ) -> Document:
        """
        Store an uploaded document together with its normalized classification.

        Raises:
            DocumentQuotaExceeded: If the owner's plan has no room left
        """
        PlanService(self.session).ensure_can_upload(owner_id)

        result = ExtractionNormalizer.normalize(classification, filename=filename)
        primary = ExtractionNormalizer.primary_fields(result["extracted_data"])

        document = Document(
            owner_id=owner_id,
            title=title or result["summary"] or filename,
            filename=filename,
            file_path=file_path,
            mime_type=mime_type,
            file_size=file_size,
            category=result["category"],
            summary=result["content"],
            extracted_data=result["extracted_data"],
            due_date=primary["due_date"],
            amount=primary["amount"],
            reference_id=primary["reference_id"],
            urgency_score=result["urgency_score"],
            confidence_score=result["confidence_score"],
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow()
        )

        self.session.add(document)
        self.session.commit()
        self.session.refresh(document)
        logger.info(f"Stored document {document.id} for user {owner_id} as {document.category}")
        return document

    def list_documents(
        self,
        owner_id: str,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at"
    ) -> List[Document]:
        """Get all documents for a user with category filter, search and sorting."""
        statement = select(Document).where(Document.owner_id == owner_id)

        if category and category != "all":
            statement = statement.where(Document.category == category)

        if sort_by == "title":
            statement = statement.order_by(Document.title.asc())
        elif sort_by == "due_date":
            statement = statement.order_by(Document.due_date.asc().nullslast(), Document.created_at.desc())
        elif sort_by == "urgency":
            statement = statement.order_by(Document.urgency_score.desc(), Document.created_at.desc())
        else:  # Default to created_at
            statement = statement.order_by(Document.created_at.desc())

        documents = list(self.session.exec(statement).all())

        # Keywords live inside the JSON column, so search runs after the query
        if search:
            term = search.lower()
            documents = [d for d in documents if _matches(d, term)]

        return documents

    def get_document(self, document_id: str, owner_id: str) -> Optional[Document]:
        """Get a specific document by ID, ensuring user ownership."""
        statement = (
            select(Document)
            .where(Document.id == document_id)
            .where(Document.owner_id == owner_id)
        )
        return self.session.exec(statement).first()

    def delete_document(self, document_id: str, owner_id: str) -> bool:
        """Delete a document and its notifications, ensuring user ownership."""
        document = self.get_document(document_id, owner_id)
        if not document:
            return False

        notifications = self.session.exec(
            select(Notification).where(Notification.document_id == document.id)
        ).all()
        for notification in notifications:
            self.session.delete(notification)
        self.session.delete(document)
        self.session.commit()
        return True

    def category_counts(self, owner_id: str) -> Dict[str, int]:
        """Number of documents per category, every category included."""
        counts = {category: 0 for category in DOCUMENT_CATEGORIES}
        statement = select(Document.category).where(Document.owner_id == owner_id)
        for category in self.session.exec(statement).all():
            counts[category] = counts.get(category, 0) + 1
        return counts

    def upcoming_dates(self, owner_id: str, now: Optional[datetime] = None, limit: int = 5) -> List[Dict[str, Any]]:
        """Nearest future deadlines across the owner's documents, relative to today in the reminder timezone."""
        today = local_today(now or datetime.utcnow(), self.timezone)
        items = []
        for document in self.list_documents(owner_id):
            data = document.extracted_data or {}
            candidates = []
            for field_name in UPCOMING_DATE_FIELDS:
                values = data.get(field_name)
                if isinstance(values, list):
                    candidates.extend(values)
            if document.due_date:
                candidates.append(document.due_date)

            seen = set()
            for candidate in candidates:
                due = parse_candidate_date(candidate)
                if due is None or due <= today or due in seen:
                    continue
                seen.add(due)
                items.append({
                    "due_on": due,
                    "document_id": document.id,
                    "title": document.title,
                    "category": document.category,
                })

        items.sort(key=lambda item: item["due_on"])
        return items[:limit]


def _matches(document: Document, term: str) -> bool:
    if term in (document.title or "").lower():
        return True
    if term in (document.summary or "").lower():
        return True
    return any(term in keyword.lower() for keyword in document.keywords)
