from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict, Any
from enum import Enum


class Mode(str, Enum):
    """Buy-vs-rent presentation mode; selects copy and price presets, never filters data"""
    RENT = "rent"
    BUY = "buy"


class ListingFilter(str, Enum):
    RENT = "rent"
    SALE = "sale"

    @property
    def listing_type(self) -> str:
        return "RENT" if self == ListingFilter.RENT else "SALE"


class ViewMode(str, Enum):
    GRID = "grid"
    LIST = "list"


class PriceRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    min: float = 0
    max: Optional[float] = None  # None means unbounded


_PRICE_RANGES = {
    Mode.BUY: [
        PriceRange(label="Under NPR 1Cr", min=0, max=10_000_000),
        PriceRange(label="NPR 1Cr - 2Cr", min=10_000_000, max=20_000_000),
        PriceRange(label="NPR 2Cr - 5Cr", min=20_000_000, max=50_000_000),
        PriceRange(label="NPR 5Cr+", min=50_000_000),
    ],
    Mode.RENT: [
        PriceRange(label="Under NPR 20,000", min=0, max=20_000),
        PriceRange(label="NPR 20,000 - 35,000", min=20_000, max=35_000),
        PriceRange(label="NPR 35,000 - 50,000", min=35_000, max=50_000),
        PriceRange(label="NPR 50,000+", min=50_000),
    ],
}

BEDROOM_OPTIONS = ["Studio", "1", "2", "3", "4+"]


def price_ranges_for(mode: Mode) -> List[PriceRange]:
    return list(_PRICE_RANGES[Mode(mode)])


def bedrooms_param(token: Optional[str]) -> Optional[str]:
    """Translate a bedroom chip into the ``bedrooms`` query value"""
    if token is None:
        return None
    token = token.strip()
    if token.lower() == "studio":
        return "0"
    return token or None


class FilterState(BaseModel):
    """
    Current filter-bar selection.

    Instances are immutable; every operation returns the next state so a
    caller can apply several changes and publish them as a single update.
    """
    model_config = ConfigDict(frozen=True)

    price_range: Optional[PriceRange] = None
    bedrooms: Optional[str] = None
    features: List[str] = []
    type: Optional[ListingFilter] = None

    def toggle_price_range(self, price_range: PriceRange) -> "FilterState":
        if self.price_range is not None and self.price_range.label == price_range.label:
            return self.model_copy(update={"price_range": None})
        return self.model_copy(update={"price_range": price_range})

    def toggle_bedrooms(self, token: str) -> "FilterState":
        return self.model_copy(update={"bedrooms": None if self.bedrooms == token else token})

    def toggle_feature(self, feature: str) -> "FilterState":
        if feature in self.features:
            features = [f for f in self.features if f != feature]
        else:
            features = [*self.features, feature]
        return self.model_copy(update={"features": features})

    def toggle_type(self, listing_filter: ListingFilter) -> "FilterState":
        listing_filter = ListingFilter(listing_filter)
        return self.model_copy(update={"type": None if self.type == listing_filter else listing_filter})

    def cleared(self) -> "FilterState":
        return FilterState()

    @property
    def active_filter_count(self) -> int:
        scalars = [self.price_range, self.bedrooms, self.type]
        return sum(1 for value in scalars if value) + len(self.features)

    @property
    def is_empty(self) -> bool:
        return self.active_filter_count == 0

    def to_query_params(self, search_query: str = "") -> Dict[str, Any]:
        """Listing query parameters equivalent to this selection"""
        params: Dict[str, Any] = {}

        if self.type is not None:
            params["listingType"] = self.type.listing_type

        if self.price_range is not None:
            if self.price_range.min:
                params["minPrice"] = self.price_range.min
            if self.price_range.max is not None:
                params["maxPrice"] = self.price_range.max

        bedrooms = bedrooms_param(self.bedrooms)
        if bedrooms is not None:
            params["bedrooms"] = bedrooms

        # Any-of match, the same semantics as the server predicate
        if self.features:
            params["features"] = ",".join(self.features)

        if search_query and search_query.strip():
            params["search"] = search_query.strip()

        return params
