"""Subscription plans and the document quota."""
from typing import Any, Dict

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.document import Document
from app.models.subscription import Subscription

DEFAULT_PLAN_ID = "free"
UNLIMITED = -1

PLAN_DEFINITIONS: Dict[str, Dict[str, Any]] = {
    "free": {
        "id": "free",
        "name": "Free",
        "price": 0,
        "currency": "EUR",
        "interval": "lifetime",
        "limits": {"documents": 10},
    },
    "pro_monthly": {
        "id": "pro_monthly",
        "name": "Pro Monthly",
        "price": 3.49,
        "currency": "EUR",
        "interval": "month",
        "limits": {"documents": UNLIMITED},
    },
    "pro_yearly": {
        "id": "pro_yearly",
        "name": "Pro Yearly",
        "price": 29,
        "currency": "EUR",
        "interval": "year",
        "limits": {"documents": UNLIMITED},
    },
}


class DocumentQuotaExceeded(Exception):
    """The user's plan does not allow another document."""

    def __init__(self, plan_id: str, limit: int):
        self.plan_id = plan_id
        self.limit = limit
        super().__init__(f"Plan '{plan_id}' allows at most {limit} documents")


def get_plan_definition(plan_id: str) -> Dict[str, Any]:
    key = str(plan_id or "").strip().lower()
    return PLAN_DEFINITIONS.get(key, PLAN_DEFINITIONS[DEFAULT_PLAN_ID])


class PlanService:
    """Resolves a user's plan and checks the document quota against it."""

    def __init__(self, session: Session):
        self.session = session

    def current_plan(self, user_id: str) -> Dict[str, Any]:
        """Plan of the user's active subscription, or the free plan."""
        statement = select(Subscription).where(Subscription.user_id == user_id)
        subscription = self.session.exec(statement).first()
        if not subscription or subscription.status != "active":
            return PLAN_DEFINITIONS[DEFAULT_PLAN_ID]
        return get_plan_definition(subscription.plan_id)

    def documents_count(self, user_id: str) -> int:
        statement = select(func.count()).select_from(Document).where(Document.owner_id == user_id)
        return int(self.session.exec(statement).one())

    def usage(self, user_id: str) -> Dict[str, Any]:
        plan = self.current_plan(user_id)
        limit = plan["limits"]["documents"]
        count = self.documents_count(user_id)
        return {
            "plan_id": plan["id"],
            "plan_name": plan["name"],
            "documents_limit": limit,
            "documents_count": count,
            "can_upload": limit == UNLIMITED or count < limit,
        }

    def ensure_can_upload(self, user_id: str):
        """
        Raises:
            DocumentQuotaExceeded: If the plan's document limit is reached
        """
        usage = self.usage(user_id)
        if not usage["can_upload"]:
            raise DocumentQuotaExceeded(usage["plan_id"], usage["documents_limit"])
