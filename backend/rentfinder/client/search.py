from typing import Any, Callable, Dict, List, Optional
from enum import Enum
import asyncio
import httpx
from pydantic import ValidationError
from rentfinder.core.config import settings
from rentfinder.models.property import Property
from rentfinder.models.search import Pagination
from rentfinder.client.api import ApiError, ListingsClient
from rentfinder.client.filters import FilterState, ListingFilter, PriceRange, ViewMode
import logging

logger = logging.getLogger(__name__)


class ResultState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    EMPTY = "empty"  # request succeeded, nothing matched
    ERROR = "error"  # request failed, retry is possible


class SearchController:
    """
    Owns the search page state and keeps the visible results in sync with it.

    Filtering happens on the server: every change to the filters or the
    free-text query schedules one debounced fetch. A change that arrives
    while a fetch is pending cancels it, so results for a superseded state
    are never applied.
    """

    def __init__(self, client: ListingsClient, debounce_seconds: Optional[float] = None,
                 page_size: Optional[int] = None, base_params: Optional[Dict[str, Any]] = None):
        self.client = client
        self.debounce_seconds = settings.SEARCH_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self.page_size = page_size or settings.DEFAULT_PAGE_SIZE
        self.base_params = dict(base_params or {})

        self.filters = FilterState()
        self.search_query = ""
        self.view_mode = ViewMode.GRID

        self.state = ResultState.IDLE
        self.properties: List[Property] = []
        self.pagination: Optional[Pagination] = None
        self.error: Optional[str] = None

        self._pending: Optional[asyncio.Task] = None
        self._generation = 0
        self._listeners: List[Callable[["SearchController"], None]] = []

    # State mutations

    def set_filters(self, filters: FilterState):
        self.filters = filters
        self._schedule_refresh()

    def select_price_range(self, price_range: PriceRange):
        self.set_filters(self.filters.toggle_price_range(price_range))

    def select_bedrooms(self, token: str):
        self.set_filters(self.filters.toggle_bedrooms(token))

    def toggle_feature(self, feature: str):
        self.set_filters(self.filters.toggle_feature(feature))

    def toggle_type(self, listing_filter: ListingFilter):
        self.set_filters(self.filters.toggle_type(listing_filter))

    def clear_filters(self):
        """Reset every filter field at once; triggers a single refresh"""
        self.set_filters(self.filters.cleared())

    def set_search_query(self, query: str):
        self.search_query = query or ""
        self._schedule_refresh()

    def set_view_mode(self, view_mode: ViewMode):
        # Presentation only, the result set does not change
        self.view_mode = ViewMode(view_mode)
        self._notify()

    def subscribe(self, listener: Callable[["SearchController"], None]):
        self._listeners.append(listener)

    # Fetching

    def query_params(self) -> Dict[str, Any]:
        params = {"limit": self.page_size, **self.base_params}
        params.update(self.filters.to_query_params(self.search_query))
        return params

    def _schedule_refresh(self, delay: Optional[float] = None):
        self._cancel_pending()
        self._generation += 1
        delay = self.debounce_seconds if delay is None else delay
        self._pending = asyncio.get_running_loop().create_task(self._run(self._generation, delay))

    async def refresh(self):
        """Fetch immediately, superseding any pending debounced fetch"""
        self._schedule_refresh(delay=0)
        await self.wait()

    async def retry(self):
        await self.refresh()

    async def wait(self):
        """Wait for the most recently scheduled fetch to settle"""
        while self._pending is not None and not self._pending.done():
            task = self._pending
            try:
                await task
            except asyncio.CancelledError:
                # Superseded or closed; anything else is our own cancellation
                if not task.cancelled():
                    raise

    async def close(self):
        """Cancel any pending fetch, wait for it to unwind, then release the HTTP client"""
        pending = self._pending
        self._cancel_pending()
        if pending is not None:
            try:
                await pending
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
            self._pending = None
        await self.client.aclose()

    def _cancel_pending(self):
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

    async def _run(self, generation: int, delay: float):
        if delay > 0:
            await asyncio.sleep(delay)

        self.state = ResultState.LOADING
        self.error = None
        self._notify()

        try:
            page = await self.client.get_properties(self.query_params())
        except (ApiError, httpx.HTTPError, ValidationError) as e:
            if generation != self._generation:
                return
            logger.error(f"Failed to load properties: {e}")
            self.state = ResultState.ERROR
            self.error = "Failed to load properties"
            self._notify()
            return

        if generation != self._generation:
            return

        self.properties = page.properties
        self.pagination = page.pagination
        self.state = ResultState.LOADED if page.properties else ResultState.EMPTY
        self._notify()

    def _notify(self):
        for listener in self._listeners:
            listener(self)
