from typing import List
from sqlalchemy import or_, asc, desc
from sqlalchemy.sql.elements import ColumnElement
from rentfinder.db.models import Property as DBProperty, PropertyFeature as DBPropertyFeature
from rentfinder.models.property import PropertyStatus
from rentfinder.models.search import ListingQuery, SortField, SortOrder
import logging

logger = logging.getLogger(__name__)


class ListingQueryBuilder:
    """Builds SQLAlchemy filter predicates and ordering from listing query parameters"""

    SORT_COLUMNS = {
        SortField.PRICE: DBProperty.price,
        SortField.AURA_SCORE: DBProperty.aura_score_overall,
        SortField.CREATED_AT: DBProperty.created_at,
    }

    def build_conditions(self, query: ListingQuery) -> List[ColumnElement]:
        """Build the WHERE predicate shared by the page query and the count query"""

        # Only active listings are ever eligible, whatever the filters say
        conditions = [DBProperty.status == PropertyStatus.ACTIVE.value]

        self._add_basic_filters(conditions, query)
        self._add_location_filters(conditions, query)
        self._add_feature_filters(conditions, query)
        self._add_text_search(conditions, query)

        logger.debug(f"Built listing predicate with {len(conditions)} conditions")
        return conditions

    def _add_basic_filters(self, conditions: List[ColumnElement], query: ListingQuery):
        """Add category, price, room and flag filters"""

        if query.type is not None:
            conditions.append(DBProperty.type == query.type.value)

        if query.listing_type is not None:
            conditions.append(DBProperty.listing_type == query.listing_type.value)

        # Price bounds are inclusive and independent of each other
        if query.min_price is not None:
            conditions.append(DBProperty.price >= query.min_price)
        if query.max_price is not None:
            conditions.append(DBProperty.price <= query.max_price)

        if query.bedrooms is not None:
            if query.bedrooms.at_least is not None:
                conditions.append(DBProperty.bedrooms >= query.bedrooms.at_least)
            elif query.bedrooms.exact is not None:
                conditions.append(DBProperty.bedrooms == query.bedrooms.exact)

        if query.bathrooms is not None:
            conditions.append(DBProperty.bathrooms >= query.bathrooms)

        if query.pet_friendly:
            conditions.append(DBProperty.pet_friendly.is_(True))

    def _add_location_filters(self, conditions: List[ColumnElement], query: ListingQuery):
        if query.city:
            conditions.append(DBProperty.city.icontains(query.city, autoescape=True))

    def _add_feature_filters(self, conditions: List[ColumnElement], query: ListingQuery):
        """At least one of the requested features must be present (OR semantics)"""
        if query.features:
            conditions.append(
                DBProperty.features.any(DBPropertyFeature.name.in_(query.features))
            )

    def _add_text_search(self, conditions: List[ColumnElement], query: ListingQuery):
        """Plain substring match over the descriptive columns"""
        if not query.search:
            return

        term = query.search
        conditions.append(or_(
            DBProperty.title.icontains(term, autoescape=True),
            DBProperty.description.icontains(term, autoescape=True),
            DBProperty.address.icontains(term, autoescape=True),
            DBProperty.city.icontains(term, autoescape=True),
        ))

    def build_order_by(self, query: ListingQuery) -> List[ColumnElement]:
        """Requested sort key plus the id as a stable tie-break for pagination"""
        column = self.SORT_COLUMNS.get(query.sort_by, DBProperty.created_at)
        direction = asc if query.sort_order == SortOrder.ASC else desc
        return [direction(column), asc(DBProperty.id)]
