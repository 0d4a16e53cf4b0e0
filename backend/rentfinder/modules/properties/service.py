from typing import List, Optional, Set, Iterable, Any
from enum import Enum
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload, joinedload
from rentfinder.core.config import settings
from rentfinder.core.exceptions import NotAuthorizedError, PropertyNotFoundError
from rentfinder.db.models import (
    Property as DBProperty, PropertyImage as DBPropertyImage,
    PropertyFeature as DBPropertyFeature, SavedProperty as DBSavedProperty,
    User as DBUser
)
from rentfinder.models.property import (
    Property, PropertyCreate, PropertyUpdate, PropertyStatus, ListingType,
    FeatureInput, ImageInput
)
from rentfinder.models.search import ListingQuery, Pagination, PropertyListResponse
from rentfinder.models.user import UserRole, LISTING_ROLES
from rentfinder.modules.properties.query_builder import ListingQueryBuilder
import logging

logger = logging.getLogger(__name__)


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


# Columns a partial update may change but never clear
_NON_NULLABLE = {
    "title", "description", "type", "listing_type", "status", "price", "price_type",
    "address", "city", "state", "zip_code", "bedrooms", "bathrooms", "sqft",
    "pet_friendly", "smoking_allowed",
}


class PropertyService:
    """Service for listing queries and property lifecycle operations"""

    def __init__(self, db: Session):
        self.db = db
        self.query_builder = ListingQueryBuilder()

    def _base_query(self):
        return self.db.query(DBProperty).options(
            selectinload(DBProperty.images),
            selectinload(DBProperty.features),
            joinedload(DBProperty.owner),
        )

    async def list_properties(self, query: ListingQuery, viewer_id: Optional[str] = None) -> PropertyListResponse:
        """Return one page of active listings matching the query"""
        conditions = self.query_builder.build_conditions(query)

        db_properties = (
            self._base_query()
            .filter(*conditions)
            .order_by(*self.query_builder.build_order_by(query))
            .offset(query.offset)
            .limit(query.limit)
            .all()
        )

        # Count under the same predicate, not the paginated slice
        total = self.db.query(func.count(DBProperty.id)).filter(*conditions).scalar() or 0

        saved_ids = self._saved_ids(viewer_id, [p.id for p in db_properties])

        return PropertyListResponse(
            properties=[self.to_model(p, p.id in saved_ids) for p in db_properties],
            pagination=Pagination.build(query.page, query.limit, total),
        )

    async def get_property(self, property_id: str, viewer_id: Optional[str] = None) -> Property:
        """
        Fetch a single property regardless of status.

        Every read counts as a view; the counter is bumped with a single
        UPDATE statement so concurrent reads never lose increments.
        """
        updated = (
            self.db.query(DBProperty)
            .filter(DBProperty.id == property_id)
            .update({DBProperty.view_count: DBProperty.view_count + 1}, synchronize_session=False)
        )
        if not updated:
            self.db.rollback()
            raise PropertyNotFoundError(property_id)
        self.db.commit()

        db_property = self._base_query().filter(DBProperty.id == property_id).first()
        if db_property is None:
            # Deleted between the increment and the read
            raise PropertyNotFoundError(property_id)

        is_saved = bool(self._saved_ids(viewer_id, [db_property.id]))
        return self.to_model(db_property, is_saved)

    async def get_featured(self, listing_type: Optional[ListingType] = None,
                           limit: Optional[int] = None) -> List[Property]:
        """Highest-scoring active listings"""
        limit = limit or settings.FEATURED_DEFAULT_LIMIT
        db_query = self._base_query().filter(
            DBProperty.status == PropertyStatus.ACTIVE.value,
            DBProperty.aura_score_overall >= settings.FEATURED_MIN_AURA_SCORE,
        )
        if listing_type is not None:
            db_query = db_query.filter(DBProperty.listing_type == listing_type.value)

        db_properties = (
            db_query
            .order_by(DBProperty.aura_score_overall.desc(), DBProperty.id.asc())
            .limit(min(limit, settings.MAX_PAGE_SIZE))
            .all()
        )
        return [self.to_model(p) for p in db_properties]

    async def get_similar(self, property_id: str) -> List[Property]:
        """Active listings of the same kind, in the same city, at a comparable price"""
        reference = self.db.get(DBProperty, property_id)
        if reference is None:
            raise PropertyNotFoundError(property_id)

        tolerance = settings.SIMILAR_PRICE_TOLERANCE
        db_properties = (
            self._base_query()
            .filter(
                DBProperty.id != reference.id,
                DBProperty.status == PropertyStatus.ACTIVE.value,
                DBProperty.listing_type == reference.listing_type,
                DBProperty.city == reference.city,
                DBProperty.price >= reference.price * (1 - tolerance),
                DBProperty.price <= reference.price * (1 + tolerance),
            )
            .order_by(DBProperty.id.asc())
            .limit(settings.SIMILAR_LIMIT)
            .all()
        )
        return [self.to_model(p) for p in db_properties]

    async def create_property(self, owner: DBUser, data: PropertyCreate) -> Property:
        """Create a listing owned by ``owner``"""
        if UserRole(owner.role) not in LISTING_ROLES:
            raise NotAuthorizedError("Only landlords, sellers and agents can list properties")

        try:
            fields = data.model_dump(exclude={"features", "images", "price_type"})
            db_property = DBProperty(
                owner_id=owner.id,
                price_type=data.resolved_price_type().value,
                **{key: _column_value(value) for key, value in fields.items()},
            )
            db_property.features = self._build_features(data.features)
            db_property.images = self._build_images(data.images)

            self.db.add(db_property)
            self.db.commit()
            logger.info(f"Property {db_property.id} created by {owner.id}")

            return self.to_model(self._reload(db_property.id))

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create property: {e}")
            raise

    async def update_property(self, property_id: str, user: DBUser, data: PropertyUpdate) -> Property:
        """Apply a partial update; features and images are replaced when supplied"""
        db_property = self._get_owned(property_id, user)

        try:
            changes = data.model_dump(exclude_unset=True, exclude={"features", "images"})
            for key, value in changes.items():
                if value is None and key in _NON_NULLABLE:
                    continue
                setattr(db_property, key, _column_value(value))

            if data.features is not None:
                db_property.features = self._build_features(data.features)
            if data.images is not None:
                db_property.images = self._build_images(data.images)

            self.db.commit()
            return self.to_model(self._reload(property_id))

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update property {property_id}: {e}")
            raise

    async def delete_property(self, property_id: str, user: DBUser) -> None:
        """Hard delete; images, features and bookmarks go with it"""
        db_property = self._get_owned(property_id, user)

        try:
            self.db.delete(db_property)
            self.db.commit()
            logger.info(f"Property {property_id} deleted by {user.id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise

    def _get_owned(self, property_id: str, user: DBUser) -> DBProperty:
        db_property = self.db.get(DBProperty, property_id)
        if db_property is None:
            raise PropertyNotFoundError(property_id)
        if db_property.owner_id != user.id and user.role != UserRole.ADMIN.value:
            raise NotAuthorizedError()
        return db_property

    def _reload(self, property_id: str) -> DBProperty:
        self.db.expire_all()
        return self._base_query().filter(DBProperty.id == property_id).one()

    def _saved_ids(self, viewer_id: Optional[str], property_ids: Iterable[str]) -> Set[str]:
        """Targeted lookup of which of ``property_ids`` the viewer has saved"""
        property_ids = list(property_ids)
        if not viewer_id or not property_ids:
            return set()

        rows = (
            self.db.query(DBSavedProperty.property_id)
            .filter(
                DBSavedProperty.user_id == viewer_id,
                DBSavedProperty.property_id.in_(property_ids),
            )
            .all()
        )
        return {row.property_id for row in rows}

    @staticmethod
    def _build_features(features: List[FeatureInput]) -> List[DBPropertyFeature]:
        return [
            DBPropertyFeature(name=feature.name, category=feature.category.value)
            for feature in features
        ]

    @staticmethod
    def _build_images(images: List[ImageInput]) -> List[DBPropertyImage]:
        # The first image is the primary one
        return [
            DBPropertyImage(url=image.url, caption=image.caption, is_primary=index == 0, order=index)
            for index, image in enumerate(images)
        ]

    @staticmethod
    def to_model(db_property: DBProperty, is_saved: bool = False) -> Property:
        return Property.model_validate(db_property).model_copy(update={"is_saved": is_saved})
