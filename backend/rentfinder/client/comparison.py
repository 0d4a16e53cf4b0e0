from typing import Callable, Dict, Iterable, List, Optional
from pydantic import BaseModel
from rentfinder.models.property import Property

MAX_COMPARE = 3


class BestValues(BaseModel):
    """Winning property id per compared attribute (None when no candidate has a value)"""
    price: Optional[str] = None
    sqft: Optional[str] = None
    aura_score: Optional[str] = None

    def is_best(self, attribute: str, property_id: str) -> bool:
        return getattr(self, attribute) == property_id


def _winner(properties: List[Property], key: Callable[[Property], Optional[float]],
            lower_is_better: bool) -> Optional[str]:
    values = [key(p) for p in properties if key(p) is not None]
    if not values:
        return None
    target = min(values) if lower_is_better else max(values)
    # First match in selection order wins ties
    for prop in properties:
        if key(prop) == target:
            return prop.id
    return None


class ComparisonSelector:
    """Up to three selected properties for side-by-side comparison"""

    def __init__(self, max_size: int = MAX_COMPARE):
        self.max_size = max_size
        self._selected: List[str] = []

    @property
    def selected_ids(self) -> List[str]:
        return list(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, property_id: str) -> bool:
        return property_id in self._selected

    @property
    def is_full(self) -> bool:
        return len(self._selected) >= self.max_size

    def toggle(self, property_id: str) -> bool:
        """
        Add or remove ``property_id``.

        Adding to a full selection is silently ignored. Returns whether the id
        is selected afterwards.
        """
        if property_id in self._selected:
            self._selected.remove(property_id)
            return False
        if self.is_full:
            return False
        self._selected.append(property_id)
        return True

    def remove(self, property_id: str):
        if property_id in self._selected:
            self._selected.remove(property_id)

    def clear(self):
        self._selected = []

    def resolve(self, properties: Iterable[Property]) -> List[Property]:
        """Selected records in selection order; ids no longer present are skipped"""
        by_id: Dict[str, Property] = {p.id: p for p in properties}
        return [by_id[property_id] for property_id in self._selected if property_id in by_id]

    def best_values(self, properties: Iterable[Property]) -> Optional[BestValues]:
        """Per-attribute winners, or None when fewer than two properties are selected"""
        selected = self.resolve(properties)
        if len(selected) < 2:
            return None

        return BestValues(
            price=_winner(selected, lambda p: p.price, lower_is_better=True),
            sqft=_winner(selected, lambda p: p.sqft, lower_is_better=False),
            aura_score=_winner(selected, lambda p: p.aura_score_overall, lower_is_better=False),
        )
