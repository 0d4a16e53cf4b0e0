from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Mapping, Any
from enum import Enum
import math
import re

from rentfinder.core.config import settings
from rentfinder.models.property import ApiModel, ListingType, Property, PropertyType


class SortField(str, Enum):
    PRICE = "price"
    AURA_SCORE = "auraScore"
    CREATED_AT = "createdAt"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


_AT_LEAST_TOKEN = re.compile(r"^(\d+)\+$")


class BedroomFilter(BaseModel):
    """Decoded ``bedrooms`` token: exact count or a lower bound."""
    exact: Optional[int] = None
    at_least: Optional[int] = None

    @classmethod
    def parse(cls, token: Any) -> Optional["BedroomFilter"]:
        """
        "0"  -> bedrooms == 0 (studio)
        "4+" -> bedrooms >= 4
        "2"  -> bedrooms == 2
        Anything else is not a bedroom constraint.
        """
        if token is None:
            return None
        if isinstance(token, BedroomFilter):
            return token
        text = str(token).strip()
        if not text:
            return None

        match = _AT_LEAST_TOKEN.match(text)
        if match:
            return cls(at_least=int(match.group(1)))

        try:
            count = int(text)
        except ValueError:
            return None
        if count < 0:
            return None
        return cls(exact=count)


def _parse_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


# Largest page whose offset still fits a signed 64-bit OFFSET at the maximum page size
MAX_PAGE = (2 ** 63 - 1) // settings.MAX_PAGE_SIZE


def parse_page_number(value: Any) -> int:
    """1-based page index; unparseable or out-of-range values mean the first page"""
    page = _parse_int(value)
    if page is None or page < 1 or page > MAX_PAGE:
        return 1
    return page


def parse_page_size(value: Any, default: int) -> int:
    """Page size; unparseable values fall back to ``default``, large ones are capped"""
    limit = _parse_int(value)
    if limit is None or limit < 1:
        return default
    return min(limit, settings.MAX_PAGE_SIZE)


def _parse_enum(enum_cls, value: Any):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


class ListingQuery(ApiModel):
    """
    Filters accepted by ``GET /api/properties``.

    Parsing is permissive: a value that cannot be interpreted is treated as
    if the parameter had not been sent, so a malformed filter never turns a
    search into a 4xx.
    """
    page: int = 1
    limit: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_SIZE)

    type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    bedrooms: Optional[BedroomFilter] = None
    bathrooms: Optional[float] = None
    city: Optional[str] = None
    pet_friendly: bool = False
    features: List[str] = []
    search: Optional[str] = None

    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @field_validator('page', mode='before')
    @classmethod
    def parse_page(cls, v):
        return parse_page_number(v)

    @field_validator('limit', mode='before')
    @classmethod
    def parse_limit(cls, v):
        return parse_page_size(v, settings.DEFAULT_PAGE_SIZE)

    @field_validator('type', mode='before')
    @classmethod
    def parse_type(cls, v):
        return _parse_enum(PropertyType, v)

    @field_validator('listing_type', mode='before')
    @classmethod
    def parse_listing_type(cls, v):
        return _parse_enum(ListingType, v)

    @field_validator('min_price', 'max_price', 'bathrooms', mode='before')
    @classmethod
    def parse_number(cls, v):
        return _parse_float(v)

    @field_validator('bedrooms', mode='before')
    @classmethod
    def parse_bedrooms(cls, v):
        return BedroomFilter.parse(v)

    @field_validator('city', 'search', mode='before')
    @classmethod
    def parse_text(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator('pet_friendly', mode='before')
    @classmethod
    def parse_pet_friendly(cls, v):
        # Only the literal "true" restricts the result set
        return v is True or v == "true"

    @field_validator('features', mode='before')
    @classmethod
    def parse_features(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [name.strip() for name in v if isinstance(name, str) and name.strip()]

    @field_validator('sort_by', mode='before')
    @classmethod
    def parse_sort_by(cls, v):
        return _parse_enum(SortField, v) or SortField.CREATED_AT

    @field_validator('sort_order', mode='before')
    @classmethod
    def parse_sort_order(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
        return _parse_enum(SortOrder, v) or SortOrder.DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> "ListingQuery":
        return cls.model_validate(dict(params))


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class PropertyListResponse(ApiModel):
    properties: List[Property]
    pagination: Pagination
