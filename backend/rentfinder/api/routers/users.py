from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
from rentfinder.core.auth import get_current_user_id
from rentfinder.core.database import get_db
from rentfinder.core.exceptions import (
    AlreadySavedError, PropertyNotFoundError, SavedPropertyNotFoundError
)
from rentfinder.models.property import MessageResponse
from rentfinder.models.user import (
    SavePropertyRequest, SavedPropertyResponse, SavedPropertyListResponse
)
from rentfinder.modules.users.service import SavedPropertyService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_saved_property_service(db: Session = Depends(get_db)) -> SavedPropertyService:
    return SavedPropertyService(db)


@router.get("/saved", response_model=SavedPropertyListResponse)
async def get_saved_properties(
    current_user_id: str = Depends(get_current_user_id),
    saved_service: SavedPropertyService = Depends(get_saved_property_service)
):
    """Get current user's saved properties, newest first."""
    try:
        saved = await saved_service.get_saved_properties(current_user_id)
        return SavedPropertyListResponse(saved=saved)

    except Exception as e:
        logger.exception(f"Failed to get saved properties: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get saved properties"
        )


@router.post("/saved/{property_id}", response_model=SavedPropertyResponse, status_code=status.HTTP_201_CREATED)
async def save_property(
    property_id: str,
    payload: Optional[SavePropertyRequest] = Body(None),
    current_user_id: str = Depends(get_current_user_id),
    saved_service: SavedPropertyService = Depends(get_saved_property_service)
):
    """Save a property for the current user."""
    try:
        saved = await saved_service.save_property(
            user_id=current_user_id,
            property_id=property_id,
            notes=payload.notes if payload else None
        )
        return SavedPropertyResponse(saved=saved)

    except PropertyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except AlreadySavedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except Exception as e:
        logger.exception(f"Failed to save property: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save property"
        )


@router.delete("/saved/{property_id}", response_model=MessageResponse)
async def unsave_property(
    property_id: str,
    current_user_id: str = Depends(get_current_user_id),
    saved_service: SavedPropertyService = Depends(get_saved_property_service)
):
    """Remove a property from the current user's saved list."""
    try:
        await saved_service.unsave_property(current_user_id, property_id)
        return MessageResponse(message="Property unsaved")

    except SavedPropertyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.exception(f"Failed to unsave property: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to unsave property"
        )
