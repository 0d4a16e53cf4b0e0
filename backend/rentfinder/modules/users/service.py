from typing import List, Optional
from sqlalchemy import and_, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, joinedload
from rentfinder.core.exceptions import (
    AlreadySavedError, PropertyNotFoundError, SavedPropertyNotFoundError
)
from rentfinder.db.models import Property as DBProperty, SavedProperty as DBSavedProperty
from rentfinder.models.user import SavedProperty
from rentfinder.modules.properties.service import PropertyService
import logging

logger = logging.getLogger(__name__)


class SavedPropertyService:
    """Service for a user's saved (bookmarked) properties"""

    def __init__(self, db: Session = None):
        self.db = db

    async def save_property(self, user_id: str, property_id: str, notes: Optional[str] = None) -> SavedProperty:
        """Bookmark a property; saving the same property twice is a conflict"""
        if self.db.get(DBProperty, property_id) is None:
            raise PropertyNotFoundError(property_id)

        existing = self._find(user_id, property_id)
        if existing:
            raise AlreadySavedError(property_id)

        try:
            db_saved = DBSavedProperty(user_id=user_id, property_id=property_id, notes=notes)
            self.db.add(db_saved)
            self._bump_save_count(property_id, 1)
            self.db.commit()

        except IntegrityError:
            # A concurrent request inserted the same pair first
            self.db.rollback()
            raise AlreadySavedError(property_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save property {property_id} for user {user_id}: {e}")
            raise

        return self._to_model(self._load(db_saved.id))

    async def unsave_property(self, user_id: str, property_id: str) -> None:
        """Remove a bookmark; removing one that does not exist is not-found"""
        try:
            deleted = (
                self.db.query(DBSavedProperty)
                .filter(
                    and_(
                        DBSavedProperty.user_id == user_id,
                        DBSavedProperty.property_id == property_id,
                    )
                )
                .delete(synchronize_session=False)
            )
            if not deleted:
                self.db.rollback()
                raise SavedPropertyNotFoundError(property_id)

            self._bump_save_count(property_id, -1)
            self.db.commit()

        except SavedPropertyNotFoundError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to unsave property {property_id} for user {user_id}: {e}")
            raise

    async def get_saved_properties(self, user_id: str) -> List[SavedProperty]:
        """User's bookmarks, newest first"""
        db_saved = (
            self.db.query(DBSavedProperty)
            .options(
                joinedload(DBSavedProperty.property).selectinload(DBProperty.images),
                joinedload(DBSavedProperty.property).selectinload(DBProperty.features),
                joinedload(DBSavedProperty.property).joinedload(DBProperty.owner),
            )
            .filter(DBSavedProperty.user_id == user_id)
            .order_by(desc(DBSavedProperty.saved_at), desc(DBSavedProperty.id))
            .all()
        )
        return [self._to_model(saved) for saved in db_saved]

    def _find(self, user_id: str, property_id: str) -> Optional[DBSavedProperty]:
        return self.db.query(DBSavedProperty).filter(
            and_(
                DBSavedProperty.user_id == user_id,
                DBSavedProperty.property_id == property_id,
            )
        ).first()

    def _load(self, saved_id: str) -> DBSavedProperty:
        return (
            self.db.query(DBSavedProperty)
            .options(joinedload(DBSavedProperty.property).selectinload(DBProperty.images))
            .filter(DBSavedProperty.id == saved_id)
            .one()
        )

    def _bump_save_count(self, property_id: str, delta: int) -> None:
        self.db.query(DBProperty).filter(DBProperty.id == property_id).update(
            {DBProperty.save_count: DBProperty.save_count + delta},
            synchronize_session=False,
        )

    @staticmethod
    def _to_model(db_saved: DBSavedProperty) -> SavedProperty:
        return SavedProperty(
            id=db_saved.id,
            user_id=db_saved.user_id,
            property_id=db_saved.property_id,
            notes=db_saved.notes,
            saved_at=db_saved.saved_at,
            property=PropertyService.to_model(db_saved.property, is_saved=True) if db_saved.property else None,
        )
