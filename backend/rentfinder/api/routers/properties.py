from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from rentfinder.core.auth import get_current_user, get_optional_user_id
from rentfinder.core.config import settings
from rentfinder.core.database import get_db
from rentfinder.core.exceptions import NotAuthorizedError, PropertyNotFoundError
from rentfinder.db.models import User as DBUser
from rentfinder.models.property import (
    ListingType, PropertyCreate, PropertyUpdate, PropertyResponse,
    PropertyListSummary, SimilarPropertiesResponse, MessageResponse
)
from rentfinder.models.search import ListingQuery, PropertyListResponse, parse_page_size
from rentfinder.modules.properties.service import PropertyService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_property_service(db: Session = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")


def _forbidden(e: NotAuthorizedError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)


@router.get("", response_model=PropertyListResponse)
async def get_properties(
    page: Optional[str] = Query(None, description="1-based page index (default 1)"),
    limit: Optional[str] = Query(None, description="Page size (default 12)"),
    type: Optional[str] = Query(None, description="Property category, e.g. APARTMENT"),
    listing_type: Optional[str] = Query(None, alias="listingType", description="RENT, SALE or BOTH"),
    min_price: Optional[str] = Query(None, alias="minPrice", description="Inclusive lower price bound"),
    max_price: Optional[str] = Query(None, alias="maxPrice", description="Inclusive upper price bound"),
    bedrooms: Optional[str] = Query(None, description='Exact count, "0" for studios or "4+"'),
    bathrooms: Optional[str] = Query(None, description="Minimum number of bathrooms"),
    city: Optional[str] = Query(None, description="Case-insensitive city substring"),
    features: Optional[str] = Query(None, description="Comma-separated feature names (any of)"),
    pet_friendly: Optional[str] = Query(None, alias="petFriendly", description='"true" to require pets allowed'),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="price, auraScore or createdAt"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc or desc"),
    search: Optional[str] = Query(None, description="Free text matched against title, description, address and city"),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    List active properties with filtering, sorting and pagination.

    Filters are parsed permissively: a value that cannot be understood is
    ignored rather than rejected. When the request carries a valid bearer
    token each property reports whether that viewer has saved it.
    """
    raw_params = {
        "page": page, "limit": limit, "type": type, "listingType": listing_type,
        "minPrice": min_price, "maxPrice": max_price, "bedrooms": bedrooms,
        "bathrooms": bathrooms, "city": city, "features": features,
        "petFriendly": pet_friendly, "sortBy": sort_by, "sortOrder": sort_order,
        "search": search,
    }
    query = ListingQuery.from_query_params({k: v for k, v in raw_params.items() if v is not None})

    try:
        return await property_service.list_properties(query, viewer_id)

    except Exception as e:
        logger.exception(f"Failed to get properties: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get properties"
        )


@router.get("/featured", response_model=PropertyListSummary)
async def get_featured_properties(
    listing_type: Optional[str] = Query(None, alias="listingType"),
    limit: Optional[str] = Query(None, description="Number of listings (default 8, at most 100)"),
    property_service: PropertyService = Depends(get_property_service)
):
    """Active listings with the highest advisory score."""
    try:
        parsed_type = ListingType(listing_type) if listing_type else None
    except ValueError:
        parsed_type = None

    try:
        properties = await property_service.get_featured(
            parsed_type, parse_page_size(limit, settings.FEATURED_DEFAULT_LIMIT)
        )
        return PropertyListSummary(properties=properties)

    except Exception as e:
        logger.exception(f"Failed to get featured properties: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get featured properties"
        )


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    Get a single property by id.

    Not restricted to active listings. Each successful read increments the
    property's view count.
    """
    try:
        prop = await property_service.get_property(property_id, viewer_id)
        return PropertyResponse(property=prop)

    except PropertyNotFoundError:
        raise _not_found()
    except Exception as e:
        logger.exception(f"Failed to get property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get property"
        )


@router.get("/{property_id}/similar", response_model=SimilarPropertiesResponse)
async def get_similar_properties(
    property_id: str,
    property_service: PropertyService = Depends(get_property_service)
):
    """Up to four active listings of the same listing type, city and price band."""
    try:
        similar = await property_service.get_similar(property_id)
        return SimilarPropertiesResponse(similar=similar)

    except PropertyNotFoundError:
        raise _not_found()
    except Exception as e:
        logger.exception(f"Failed to get similar properties for {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get similar properties"
        )


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    property_data: PropertyCreate,
    current_user: DBUser = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """Create a listing. Restricted to landlords, sellers, agents and admins."""
    try:
        prop = await property_service.create_property(current_user, property_data)
        return PropertyResponse(property=prop)

    except NotAuthorizedError as e:
        raise _forbidden(e)
    except Exception as e:
        logger.exception(f"Failed to create property: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create property"
        )


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    current_user: DBUser = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """Update a listing. Only its owner or an admin may do so."""
    try:
        prop = await property_service.update_property(property_id, current_user, property_data)
        return PropertyResponse(property=prop)

    except PropertyNotFoundError:
        raise _not_found()
    except NotAuthorizedError as e:
        raise _forbidden(e)
    except Exception as e:
        logger.exception(f"Failed to update property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update property"
        )


@router.delete("/{property_id}", response_model=MessageResponse)
async def delete_property(
    property_id: str,
    current_user: DBUser = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """Delete a listing together with its images, features and bookmarks."""
    try:
        await property_service.delete_property(property_id, current_user)
        return MessageResponse(message="Property deleted")

    except PropertyNotFoundError:
        raise _not_found()
    except NotAuthorizedError as e:
        raise _forbidden(e)
    except Exception as e:
        logger.exception(f"Failed to delete property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete property"
        )
