from typing import Optional, List
from datetime import datetime
from enum import Enum
from rentfinder.models.property import ApiModel, Property


class UserRole(str, Enum):
    RENTER = "RENTER"
    BUYER = "BUYER"
    LANDLORD = "LANDLORD"
    SELLER = "SELLER"
    AGENT = "AGENT"
    ADMIN = "ADMIN"


# Roles allowed to publish listings
LISTING_ROLES = {UserRole.LANDLORD, UserRole.SELLER, UserRole.AGENT, UserRole.ADMIN}


class SavePropertyRequest(ApiModel):
    notes: Optional[str] = None


class SavedProperty(ApiModel):
    id: str
    user_id: str
    property_id: str
    notes: Optional[str] = None
    saved_at: Optional[datetime] = None
    property: Optional[Property] = None


class SavedPropertyResponse(ApiModel):
    saved: SavedProperty


class SavedPropertyListResponse(ApiModel):
    saved: List[SavedProperty]
