# Pydantic models for API contracts

from .property import (
    PropertyType, ListingType, PropertyStatus, PriceType, FeatureCategory,
    PropertyImage, PropertyFeature, OwnerSummary, PropertySummary, Property,
    PropertyCreate, PropertyUpdate, PropertyResponse, PropertyListSummary,
    SimilarPropertiesResponse, MessageResponse
)
from .search import (
    SortField, SortOrder, BedroomFilter, ListingQuery, Pagination, PropertyListResponse
)
from .user import (
    UserRole, LISTING_ROLES, SavePropertyRequest, SavedProperty,
    SavedPropertyResponse, SavedPropertyListResponse
)
from .application import (
    ApplicationStatus, ViewingType, ApplicantSummary, ApplicationCreate, ApplicationStatusUpdate,
    Application, ApplicationResponse, ApplicationListResponse, ViewingCreate, Viewing, ViewingResponse
)
from .message import (
    Participant, MessageCreate, Message, Conversation, ConversationListResponse,
    MessageThreadResponse, MessageDetailResponse, UnreadCountResponse
)

__all__ = [
    # Property models
    "PropertyType", "ListingType", "PropertyStatus", "PriceType", "FeatureCategory",
    "PropertyImage", "PropertyFeature", "OwnerSummary", "PropertySummary", "Property",
    "PropertyCreate", "PropertyUpdate", "PropertyResponse", "PropertyListSummary",
    "SimilarPropertiesResponse", "MessageResponse",

    # Search models
    "SortField", "SortOrder", "BedroomFilter", "ListingQuery", "Pagination",
    "PropertyListResponse",

    # User models
    "UserRole", "LISTING_ROLES", "SavePropertyRequest", "SavedProperty",
    "SavedPropertyResponse", "SavedPropertyListResponse",

    # Application models
    "ApplicationStatus", "ViewingType", "ApplicantSummary", "ApplicationCreate",
    "ApplicationStatusUpdate", "Application", "ApplicationResponse", "ApplicationListResponse",
    "ViewingCreate", "Viewing", "ViewingResponse",

    # Message models
    "Participant", "MessageCreate", "Message", "Conversation", "ConversationListResponse",
    "MessageThreadResponse", "MessageDetailResponse", "UnreadCountResponse",
]
