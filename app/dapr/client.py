"""Dapr client for publishing document and notification events."""
import json
import logging
import os
import uuid
from datetime import datetime
from typing import Any, Dict

from dapr.clients import DaprClient

logger = logging.getLogger(__name__)

DAPR_ENABLED = os.environ.get("DAPR_ENABLED", "false").lower() == "true"
DAPR_PUBSUB_NAME = os.environ.get("DAPR_PUBSUB_NAME", "docvault-pubsub")

NOTIFICATION_TOPIC = "notification-events"
DOCUMENT_TOPIC = "document-events"


class DaprEventPublisher:
    """Publishes events to the message broker via Dapr pub/sub."""

    def __init__(self, enabled: bool = DAPR_ENABLED, pubsub_name: str = DAPR_PUBSUB_NAME):
        """Initialize Dapr event publisher."""
        self.enabled = enabled
        self.pubsub_name = pubsub_name
        if not self.enabled:
            logger.warning("Dapr disabled. Events are logged instead of published.")

    def publish_event(self, topic: str, event_type: str, data: Dict[str, Any], source: str = "docvault-api"):
        """Publish an event envelope to a topic via Dapr pub/sub."""
        event_envelope = {
            "event_id": str(uuid.uuid4()),
            "type": event_type,
            "timestamp": datetime.utcnow().isoformat(),
            "source": source,
            "data": data
        }

        if not self.enabled:
            # Development mode: log the event instead of publishing
            logger.info(f"[DEV MODE] Would publish to topic '{topic}': {event_type} with data {data}")
            return {"success": True, "event_id": event_envelope["event_id"]}

        try:
            with DaprClient() as client:
                client.publish_event(
                    pubsub_name=self.pubsub_name,
                    topic_name=topic,
                    data=json.dumps(event_envelope, default=str),
                    data_content_type="application/json"
                )

            logger.info(f"Published event {event_type} to topic {topic}")
            return {"success": True, "event_id": event_envelope["event_id"]}

        except Exception as e:
            logger.error(f"Failed to publish event to topic {topic}: {str(e)}")
            raise

    def publish_notifications_created(self, owner_id: str, notification_ids: list):
        """Publish notification.created event."""
        return self.publish_event(
            topic=NOTIFICATION_TOPIC,
            event_type="notification.created",
            data={"user_id": owner_id, "notification_ids": notification_ids, "count": len(notification_ids)}
        )

    def publish_notifications_read(self, owner_id: str, count: int):
        """Publish notification.read event."""
        return self.publish_event(
            topic=NOTIFICATION_TOPIC,
            event_type="notification.read",
            data={"user_id": owner_id, "count": count}
        )

    def publish_document_created(self, document_data: Dict[str, Any]):
        """Publish document.created event."""
        return self.publish_event(
            topic=DOCUMENT_TOPIC,
            event_type="document.created",
            data=document_data
        )

    def publish_document_deleted(self, document_data: Dict[str, Any]):
        """Publish document.deleted event."""
        return self.publish_event(
            topic=DOCUMENT_TOPIC,
            event_type="document.deleted",
            data=document_data
        )


# Global instance
dapr_publisher = DaprEventPublisher()
