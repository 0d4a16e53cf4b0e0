from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from enum import Enum


class CaseInsensitiveEnum(str, Enum):
    """String enum that also accepts any casing of its values ("apartment", "Apartment")."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            wanted = value.strip().upper()
            for member in cls:
                if member.value == wanted:
                    return member
        return None


class PropertyType(CaseInsensitiveEnum):
    APARTMENT = "APARTMENT"
    HOUSE = "HOUSE"
    CONDO = "CONDO"
    TOWNHOUSE = "TOWNHOUSE"
    STUDIO = "STUDIO"
    LOFT = "LOFT"
    PENTHOUSE = "PENTHOUSE"
    VILLA = "VILLA"
    DUPLEX = "DUPLEX"
    OTHER = "OTHER"


class ListingType(CaseInsensitiveEnum):
    RENT = "RENT"
    SALE = "SALE"
    BOTH = "BOTH"


class PropertyStatus(CaseInsensitiveEnum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    RENTED = "RENTED"
    SOLD = "SOLD"
    INACTIVE = "INACTIVE"


class PriceType(CaseInsensitiveEnum):
    MONTHLY = "MONTHLY"
    TOTAL = "TOTAL"

    @classmethod
    def default_for(cls, listing_type: ListingType) -> "PriceType":
        return cls.MONTHLY if listing_type == ListingType.RENT else cls.TOTAL


class FeatureCategory(CaseInsensitiveEnum):
    AMENITY = "AMENITY"
    APPLIANCE = "APPLIANCE"
    UTILITY = "UTILITY"
    OUTDOOR = "OUTDOOR"
    SECURITY = "SECURITY"
    ACCESSIBILITY = "ACCESSIBILITY"
    OTHER = "OTHER"


class ApiModel(BaseModel):
    """Base for API contracts: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PropertyImage(ApiModel):
    id: Optional[str] = None
    url: str
    caption: Optional[str] = None
    is_primary: bool = False
    order: int = 0


class PropertyFeature(ApiModel):
    id: Optional[str] = None
    name: str
    category: FeatureCategory = FeatureCategory.AMENITY


class OwnerSummary(ApiModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class PropertySummary(ApiModel):
    """Listing reference embedded in applications and messages"""
    id: str
    title: str
    address: Optional[str] = None
    city: Optional[str] = None
    status: Optional[PropertyStatus] = None


class Property(ApiModel):
    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    type: PropertyType
    listing_type: ListingType
    status: PropertyStatus

    price: float
    price_type: PriceType
    deposit: Optional[float] = None
    pet_deposit: Optional[float] = None

    address: str
    unit: Optional[str] = None
    city: str
    state: str
    zip_code: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    bedrooms: int
    bathrooms: float
    sqft: int
    year_built: Optional[int] = None
    lot_size: Optional[float] = None
    parking: Optional[str] = None

    aura_score_overall: Optional[float] = None
    aura_score_lifestyle: Optional[float] = None
    aura_score_connectivity: Optional[float] = None
    aura_score_environment: Optional[float] = None

    available_from: Optional[datetime] = None
    lease_term: Optional[int] = None

    view_count: int = 0
    save_count: int = 0
    inquiry_count: int = 0

    pet_friendly: bool = False
    smoking_allowed: bool = False

    images: List[PropertyImage] = []
    features: List[PropertyFeature] = []
    owner: Optional[OwnerSummary] = None

    is_saved: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def primary_image(self) -> Optional[PropertyImage]:
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None


class ImageInput(ApiModel):
    url: str = Field(..., min_length=1)
    caption: Optional[str] = None


class FeatureInput(ApiModel):
    name: str = Field(..., min_length=1)
    category: FeatureCategory = FeatureCategory.AMENITY


def _normalize_features(value):
    if value is None:
        return value
    return [{"name": item} if isinstance(item, str) else item for item in value]


def _normalize_images(value):
    if value is None:
        return value
    return [{"url": item} if isinstance(item, str) else item for item in value]


class PropertyCreate(ApiModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    type: PropertyType
    listing_type: ListingType
    status: PropertyStatus = PropertyStatus.ACTIVE

    price: float = Field(..., ge=0)
    price_type: Optional[PriceType] = None
    deposit: Optional[float] = Field(None, ge=0)
    pet_deposit: Optional[float] = Field(None, ge=0)

    address: str = Field(..., min_length=1)
    unit: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    bedrooms: int = Field(..., ge=0)
    bathrooms: float = Field(..., ge=0)
    sqft: int = Field(..., ge=0)
    year_built: Optional[int] = None
    lot_size: Optional[float] = Field(None, ge=0)
    parking: Optional[str] = None

    aura_score_overall: Optional[float] = Field(None, ge=0, le=100)
    aura_score_lifestyle: Optional[float] = Field(None, ge=0, le=100)
    aura_score_connectivity: Optional[float] = Field(None, ge=0, le=100)
    aura_score_environment: Optional[float] = Field(None, ge=0, le=100)

    available_from: Optional[datetime] = None
    lease_term: Optional[int] = Field(None, ge=0)

    pet_friendly: bool = False
    smoking_allowed: bool = False

    features: List[FeatureInput] = []
    images: List[ImageInput] = []

    @field_validator('title', 'description', 'address', 'city', 'state', 'zip_code', mode='before')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('features', mode='before')
    @classmethod
    def accept_feature_names(cls, v):
        return _normalize_features(v)

    @field_validator('images', mode='before')
    @classmethod
    def accept_image_urls(cls, v):
        return _normalize_images(v)

    def resolved_price_type(self) -> PriceType:
        return self.price_type or PriceType.default_for(self.listing_type)


class PropertyUpdate(ApiModel):
    """Partial update; only fields present in the request body are applied."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    status: Optional[PropertyStatus] = None

    price: Optional[float] = Field(None, ge=0)
    price_type: Optional[PriceType] = None
    deposit: Optional[float] = Field(None, ge=0)
    pet_deposit: Optional[float] = Field(None, ge=0)

    address: Optional[str] = Field(None, min_length=1)
    unit: Optional[str] = None
    city: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = Field(None, min_length=1)
    zip_code: Optional[str] = Field(None, min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    sqft: Optional[int] = Field(None, ge=0)
    year_built: Optional[int] = None
    lot_size: Optional[float] = Field(None, ge=0)
    parking: Optional[str] = None

    aura_score_overall: Optional[float] = Field(None, ge=0, le=100)
    aura_score_lifestyle: Optional[float] = Field(None, ge=0, le=100)
    aura_score_connectivity: Optional[float] = Field(None, ge=0, le=100)
    aura_score_environment: Optional[float] = Field(None, ge=0, le=100)

    available_from: Optional[datetime] = None
    lease_term: Optional[int] = Field(None, ge=0)

    pet_friendly: Optional[bool] = None
    smoking_allowed: Optional[bool] = None

    features: Optional[List[FeatureInput]] = None
    images: Optional[List[ImageInput]] = None

    @field_validator('features', mode='before')
    @classmethod
    def accept_feature_names(cls, v):
        return _normalize_features(v)

    @field_validator('images', mode='before')
    @classmethod
    def accept_image_urls(cls, v):
        return _normalize_images(v)


class PropertyResponse(ApiModel):
    property: Property


class PropertyListSummary(ApiModel):
    properties: List[Property]


class SimilarPropertiesResponse(ApiModel):
    similar: List[Property]


class MessageResponse(ApiModel):
    message: str
