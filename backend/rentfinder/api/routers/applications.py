from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from rentfinder.core.auth import get_current_user, get_current_user_id
from rentfinder.core.database import get_db
from rentfinder.core.exceptions import (
    ApplicationNotFoundError, InvalidApplicationError, NotAuthorizedError, PropertyNotFoundError
)
from rentfinder.db.models import User as DBUser
from rentfinder.models.application import (
    ApplicationCreate, ApplicationListResponse, ApplicationResponse, ApplicationStatus,
    ApplicationStatusUpdate, ViewingCreate, ViewingResponse
)
from rentfinder.models.property import MessageResponse
from rentfinder.modules.applications.service import ApplicationService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_application_service(db: Session = Depends(get_db)) -> ApplicationService:
    return ApplicationService(db)


def _parse_status(value: Optional[str]) -> Optional[ApplicationStatus]:
    try:
        return ApplicationStatus(value) if value else None
    except ValueError:
        return None


@router.get("", response_model=ApplicationListResponse)
async def get_my_applications(
    status_filter: Optional[str] = Query(None, alias="status", description="Only applications in this status"),
    current_user_id: str = Depends(get_current_user_id),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Applications the current user has submitted, newest first."""
    try:
        applications = await application_service.list_applications(
            current_user_id, _parse_status(status_filter)
        )
        return ApplicationListResponse(applications=applications)

    except Exception as e:
        logger.exception(f"Failed to get applications: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get applications"
        )


@router.get("/received", response_model=ApplicationListResponse)
async def get_received_applications(
    status_filter: Optional[str] = Query(None, alias="status", description="Only applications in this status"),
    property_id: Optional[str] = Query(None, alias="propertyId", description="Only applications for this listing"),
    current_user_id: str = Depends(get_current_user_id),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Applications for listings the current user owns."""
    try:
        applications = await application_service.list_received(
            current_user_id, _parse_status(status_filter), property_id
        )
        return ApplicationListResponse(applications=applications)

    except Exception as e:
        logger.exception(f"Failed to get received applications: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get received applications"
        )


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    application_data: ApplicationCreate,
    current_user_id: str = Depends(get_current_user_id),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Apply for an active listing. One application per user and listing."""
    try:
        application = await application_service.submit_application(current_user_id, application_data)
        return ApplicationResponse(application=application)

    except PropertyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidApplicationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except Exception as e:
        logger.exception(f"Failed to submit application: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit application"
        )


@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: str,
    update: ApplicationStatusUpdate,
    current_user: DBUser = Depends(get_current_user),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Move an application to REVIEWING, APPROVED or REJECTED. Listing owner or admin only."""
    try:
        application = await application_service.update_status(application_id, current_user, update.status)
        return ApplicationResponse(application=application)

    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except Exception as e:
        logger.exception(f"Failed to update application {application_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update application"
        )


@router.delete("/{application_id}", response_model=MessageResponse)
async def withdraw_application(
    application_id: str,
    current_user_id: str = Depends(get_current_user_id),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Withdraw one of the current user's pending or in-review applications."""
    try:
        await application_service.withdraw_application(application_id, current_user_id)
        return MessageResponse(message="Application withdrawn")

    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except InvalidApplicationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except Exception as e:
        logger.exception(f"Failed to withdraw application {application_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to withdraw application"
        )


@router.post("/{property_id}/schedule-viewing", response_model=ViewingResponse,
             status_code=status.HTTP_201_CREATED)
async def schedule_viewing(
    property_id: str,
    viewing_data: ViewingCreate,
    current_user_id: str = Depends(get_current_user_id),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Request a viewing of a listing."""
    try:
        viewing = await application_service.schedule_viewing(property_id, current_user_id, viewing_data)
        return ViewingResponse(viewing=viewing)

    except PropertyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.exception(f"Failed to schedule viewing for {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to schedule viewing"
        )
