"""
Notification Service

Derives reminder notifications from the dates extracted from a user's
documents and manages the read state of the resulting feed.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import pytz
from sqlalchemy import func
from sqlmodel import Session, select

from app.dapr.client import DaprEventPublisher, dapr_publisher
from app.models.document import Document
from app.models.notification import Notification
from app.services.urgency import (
    REMINDER_HORIZON_DAYS,
    REMINDER_TIMEZONE,
    classify,
    days_until,
    local_today,
    parse_candidate_date,
)
from app.utils.logger import get_logger
from app.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)
run_logger = get_logger("app.services.notification_service.runs")

# A document/date pair is announced at most once per window
DEDUPE_WINDOW = timedelta(hours=12)
DEFAULT_FEED_LIMIT = 100


class DerivationError(Exception):
    """The owner's documents could not be fetched; nothing was derived."""


@dataclass
class DerivationResult:
    """Outcome of one derivation run."""
    created: List[Notification] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    skipped_duplicates: int = 0
    documents_scanned: int = 0

    @property
    def status(self) -> str:
        return "partial" if self.errors else "ok"


def unread_count(notifications: Iterable[Any]) -> int:
    """Count unread entries in a feed of Notification rows or serialized dicts."""
    count = 0
    for notification in notifications:
        read = notification.get("read") if isinstance(notification, dict) else notification.read
        if not read:
            count += 1
    return count


class NotificationService:
    """Service for deriving reminders and mutating the notification feed."""

    def __init__(
        self,
        session: Session,
        publisher: DaprEventPublisher = dapr_publisher,
        timezone: str = REMINDER_TIMEZONE
    ):
        self.session = session
        self.publisher = publisher
        self.timezone = pytz.timezone(timezone)

    def _today(self, now: datetime) -> date:
        return local_today(now, self.timezone)

    @staticmethod
    def _as_utc_naive(now: datetime) -> datetime:
        if now.tzinfo is None:
            return now
        return now.astimezone(pytz.utc).replace(tzinfo=None)

    def derive_notifications(self, owner_id: str, now: Optional[datetime] = None) -> DerivationResult:
        """
        Run one derivation pass over every document of the owner.

        Args:
            owner_id: Owner whose documents are scanned; nothing crosses owners
            now: Current time of the run, defaults to utcnow()

        Returns:
            DerivationResult with the created notifications and per-document errors

        Raises:
            DerivationError: If the document list itself could not be fetched
        """
        now = now or datetime.utcnow()
        created_at = self._as_utc_naive(now)
        today = self._today(now)
        since = created_at - DEDUPE_WINDOW

        metrics_collector.increment_counter("derivation_runs_total")
        with metrics_collector.time_operation("derivation_seconds"):
            try:
                statement = select(Document).where(Document.owner_id == owner_id)
                documents = list(self.session.exec(statement).all())
            except Exception as e:
                metrics_collector.increment_counter("derivation_failures_total")
                logger.error(f"Failed to fetch documents for user {owner_id}: {str(e)}")
                raise DerivationError(f"Could not load documents for user {owner_id}") from e

            result = DerivationResult(documents_scanned=len(documents))
            staged: List[Notification] = []
            staged_keys: Set[Tuple[str, date]] = set()

            for document in documents:
                document_id = document.id
                try:
                    document_staged = self._stage_document(document, owner_id, today, created_at, since,
                                                           staged_keys, result)
                except Exception as e:
                    # Staged rows are not in the session yet
                    self.session.rollback()
                    logger.error(f"Skipping document {document_id} during derivation: {str(e)}")
                    result.errors.append({"document_id": document_id, "error": str(e)})
                    continue
                staged.extend(document_staged)
                staged_keys.update((n.document_id, n.due_on) for n in document_staged)

            if staged:
                self._insert(owner_id, staged, result)

        metrics_collector.increment_counter("duplicates_skipped_total", result.skipped_duplicates)
        run_logger.info(
            "derivation run finished",
            user_id=owner_id,
            documents=result.documents_scanned,
            created=len(result.created),
            skipped_duplicates=result.skipped_duplicates,
            errors=len(result.errors),
            status=result.status
        )
        return result

    def _stage_document(
        self,
        document: Document,
        owner_id: str,
        today: date,
        created_at: datetime,
        since: datetime,
        staged_keys: Set[Tuple[str, date]],
        result: DerivationResult
    ) -> List[Notification]:
        """Build the new notifications for one document without touching the session."""
        document_staged: List[Notification] = []
        document_keys: Set[Tuple[str, date]] = set()

        for candidate in document.date_candidates():
            due = parse_candidate_date(candidate)
            if due is None:
                metrics_collector.increment_counter("malformed_dates_total")
                logger.debug(f"Ignoring unparseable date {candidate!r} on document {document.id}")
                continue

            days_until_due = days_until(due, today)
            if days_until_due > REMINDER_HORIZON_DAYS:
                continue

            key = (document.id, due)
            if key in staged_keys or key in document_keys:
                result.skipped_duplicates += 1
                continue
            if self._recently_notified(owner_id, document.id, due, since):
                result.skipped_duplicates += 1
                continue

            tier = classify(days_until_due, document.title, due)
            if tier is None:
                continue

            document_keys.add(key)
            document_staged.append(Notification(
                owner_id=owner_id,
                document_id=document.id,
                message=tier.message,
                type=tier.type,
                priority=tier.priority,
                due_on=due,
                read=False,
                created_at=created_at
            ))

        return document_staged

    def _recently_notified(self, owner_id: str, document_id: str, due: date, since: datetime) -> bool:
        statement = (
            select(Notification.id)
            .where(Notification.owner_id == owner_id)
            .where(Notification.document_id == document_id)
            .where(Notification.due_on == due)
            .where(Notification.created_at >= since)
            .limit(1)
        )
        return self.session.exec(statement).first() is not None

    def _insert(self, owner_id: str, staged: List[Notification], result: DerivationResult):
        """Write all staged notifications in one commit. Failures are logged, never retried."""
        try:
            self.session.add_all(staged)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            metrics_collector.increment_counter("derivation_failures_total")
            logger.error(f"Failed to insert {len(staged)} notifications for user {owner_id}: {str(e)}")
            result.errors.append({"document_id": None, "error": f"insert failed: {str(e)}"})
            return

        result.created = staged
        metrics_collector.increment_counter("notifications_created_total", len(staged))

        try:
            self.publisher.publish_notifications_created(owner_id, [n.id for n in staged])
        except Exception as e:
            logger.warning(f"notification.created event not published for user {owner_id}: {str(e)}")

    def list_notifications(self, owner_id: str, limit: int = DEFAULT_FEED_LIMIT) -> List[Dict[str, Any]]:
        """Newest-first feed with the current title, category and due date of each document."""
        statement = (
            select(Notification, Document)
            .join(Document, Notification.document_id == Document.id)
            .where(Notification.owner_id == owner_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        rows = self.session.exec(statement).all()
        return [serialize_notification(notification, document) for notification, document in rows]

    def count_unread(self, owner_id: str) -> int:
        statement = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.owner_id == owner_id)
            .where(Notification.read == False)  # noqa: E712
        )
        return int(self.session.exec(statement).one())

    def mark_read(self, notification_id: str, owner_id: str) -> bool:
        """Mark one notification read. Returns False, without raising, if the owner has no such notification."""
        statement = (
            select(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.owner_id == owner_id)
        )
        notification = self.session.exec(statement).first()
        if not notification:
            return False

        if not notification.read:
            notification.read = True
            self.session.add(notification)
            self.session.commit()
            self._announce_read(owner_id, 1)
        return True

    def mark_all_read(self, owner_id: str) -> int:
        """Mark every unread notification of the owner read. Returns how many changed."""
        statement = (
            select(Notification)
            .where(Notification.owner_id == owner_id)
            .where(Notification.read == False)  # noqa: E712
        )
        notifications = list(self.session.exec(statement).all())
        if not notifications:
            return 0

        for notification in notifications:
            notification.read = True
            self.session.add(notification)
        self.session.commit()
        self._announce_read(owner_id, len(notifications))
        return len(notifications)

    def _announce_read(self, owner_id: str, count: int):
        try:
            self.publisher.publish_notifications_read(owner_id, count)
        except Exception as e:
            logger.warning(f"notification.read event not published for user {owner_id}: {str(e)}")

    def delete_notification(self, notification_id: str, owner_id: str) -> bool:
        """Delete a notification, ensuring user ownership."""
        statement = (
            select(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.owner_id == owner_id)
        )
        notification = self.session.exec(statement).first()
        if not notification:
            return False

        self.session.delete(notification)
        self.session.commit()
        return True


def serialize_notification(notification: Notification, document: Optional[Document] = None) -> Dict[str, Any]:
    data = {
        "id": notification.id,
        "owner_id": notification.owner_id,
        "document_id": notification.document_id,
        "message": notification.message,
        "type": notification.type,
        "priority": notification.priority,
        "due_on": notification.due_on,
        "read": notification.read,
        "created_at": notification.created_at,
        "document": None,
    }
    if document is not None:
        data["document"] = {
            "title": document.title,
            "category": document.category,
            "due_date": document.due_date,
        }
    return data
