"""Document router for uploads, search and the subscription quota."""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Any, Dict, List, Optional
from sqlmodel import Session

from app.schemas.document import DocumentCreate, DocumentResponse, SubscriptionUsage, UpcomingDate
from app.services.document_service import SORT_FIELDS, DocumentService
from app.services.plan_service import DocumentQuotaExceeded, PlanService
from app.middleware.auth import get_current_user, verify_user_access, CurrentUser
from app.dapr.client import dapr_publisher
from app.db.config import get_session
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])  # No prefix since main.py adds /api prefix


def get_document_service(session: Session = Depends(get_session)) -> DocumentService:
    """Dependency for getting DocumentService instance."""
    return DocumentService(session)


def get_plan_service(session: Session = Depends(get_session)) -> PlanService:
    """Dependency for getting PlanService instance."""
    return PlanService(session)


@router.post("/{user_id}/documents", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    user_id: str,
    document_data: DocumentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    """Register an uploaded document with its AI classification."""
    verify_user_access(user_id, current_user)

    try:
        document = service.create_document(
            owner_id=user_id,
            filename=document_data.filename,
            classification=document_data.classification,
            title=document_data.title,
            file_path=document_data.file_path,
            mime_type=document_data.mime_type,
            file_size=document_data.file_size
        )
    except DocumentQuotaExceeded as e:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail=f"Document limit of {e.limit} reached for the {e.plan_id} plan"
        )

    try:
        dapr_publisher.publish_document_created({
            "document_id": document.id,
            "user_id": user_id,
            "category": document.category
        })
    except Exception as e:
        logger.warning(f"document.created event not published: {str(e)}")

    return document


@router.get("/{user_id}/documents", response_model=Dict[str, Any])
async def list_documents(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
    category: Optional[str] = Query(None, description="Filter by category, or 'all'"),
    search: Optional[str] = Query(None, description="Search keyword for title, summary and keywords"),
    sort_by: str = Query("created_at", description="Sort by field: created_at, title, due_date, urgency"),
):
    """List documents for the authenticated user with filtering and sorting."""
    verify_user_access(user_id, current_user)

    if sort_by not in SORT_FIELDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"sort_by must be one of: {', '.join(SORT_FIELDS)}"
        )

    documents = service.list_documents(user_id, category=category, search=search, sort_by=sort_by)
    return {
        "documents": [DocumentResponse.model_validate(d) for d in documents],
        "count": len(documents)
    }


@router.get("/{user_id}/documents/categories", response_model=Dict[str, int])
async def get_category_counts(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    """Number of documents in every category."""
    verify_user_access(user_id, current_user)
    return service.category_counts(user_id)


@router.get("/{user_id}/documents/upcoming", response_model=List[UpcomingDate])
async def get_upcoming_dates(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
    limit: int = Query(5, ge=1, le=50),
):
    """Nearest future deadlines across the user's documents."""
    verify_user_access(user_id, current_user)
    return service.upcoming_dates(user_id, limit=limit)


@router.get("/{user_id}/documents/{document_id}", response_model=DocumentResponse)
async def get_document(
    user_id: str,
    document_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    """Get a specific document by ID."""
    verify_user_access(user_id, current_user)

    document = service.get_document(document_id, user_id)
    if not document:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found"
        )
    return document


@router.delete("/{user_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    user_id: str,
    document_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    """Delete a document together with its notifications."""
    verify_user_access(user_id, current_user)

    if not service.delete_document(document_id, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found"
        )

    try:
        dapr_publisher.publish_document_deleted({"document_id": document_id, "user_id": user_id})
    except Exception as e:
        logger.warning(f"document.deleted event not published: {str(e)}")


@router.get("/{user_id}/subscription", response_model=SubscriptionUsage)
async def get_subscription_usage(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    plans: PlanService = Depends(get_plan_service),
):
    """Current plan and how much of the document quota is used."""
    verify_user_access(user_id, current_user)
    return plans.usage(user_id)
