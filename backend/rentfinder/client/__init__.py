"""Client-side search pipeline: API transport, filter state, debounced search and comparison."""

from .api import ApiError, ListingsClient
from .comparison import BestValues, ComparisonSelector
from .filters import FilterState, ListingFilter, Mode, PriceRange, ViewMode, price_ranges_for
from .formatting import format_price
from .search import ResultState, SearchController

__all__ = [
    "ApiError", "ListingsClient",
    "BestValues", "ComparisonSelector",
    "FilterState", "ListingFilter", "Mode", "PriceRange", "ViewMode", "price_ranges_for",
    "format_price",
    "ResultState", "SearchController",
]
