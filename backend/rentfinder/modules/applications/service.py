from typing import List, Optional
from datetime import datetime, timezone
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from rentfinder.core.exceptions import (
    ApplicationNotFoundError, DuplicateApplicationError, InvalidApplicationError,
    NotAuthorizedError, PropertyNotFoundError
)
from rentfinder.db.models import (
    Application as DBApplication, Property as DBProperty,
    ViewingSchedule as DBViewingSchedule, User as DBUser
)
from rentfinder.models.application import (
    Application, ApplicationCreate, ApplicationStatus, Viewing, ViewingCreate,
    WITHDRAWABLE_STATUSES
)
from rentfinder.models.property import PropertyStatus
from rentfinder.models.user import UserRole
import logging

logger = logging.getLogger(__name__)


class ApplicationService:
    """Service for rental/purchase applications and viewing requests"""

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(DBApplication).options(
            joinedload(DBApplication.property),
            joinedload(DBApplication.user),
        )

    async def list_applications(self, user_id: str, status: Optional[ApplicationStatus] = None) -> List[Application]:
        """Applications submitted by the user, newest first"""
        query = self._base_query().filter(DBApplication.user_id == user_id)
        if status is not None:
            query = query.filter(DBApplication.status == status.value)
        return [self._to_model(a) for a in self._ordered(query)]

    async def list_received(self, owner_id: str, status: Optional[ApplicationStatus] = None,
                            property_id: Optional[str] = None) -> List[Application]:
        """Applications for listings owned by ``owner_id``, newest first"""
        query = (
            self._base_query()
            .join(DBProperty, DBApplication.property_id == DBProperty.id)
            .filter(DBProperty.owner_id == owner_id)
        )
        if status is not None:
            query = query.filter(DBApplication.status == status.value)
        if property_id:
            query = query.filter(DBApplication.property_id == property_id)
        return [self._to_model(a) for a in self._ordered(query)]

    async def submit_application(self, user_id: str, data: ApplicationCreate) -> Application:
        """
        Apply for an active listing.

        A user applies at most once per listing; a successful application bumps
        the listing's inquiry counter in the same transaction.
        """
        db_property = self.db.get(DBProperty, data.property_id)
        if db_property is None:
            raise PropertyNotFoundError(data.property_id)
        if db_property.status != PropertyStatus.ACTIVE.value:
            raise InvalidApplicationError("Property is not available")
        if db_property.owner_id == user_id:
            raise InvalidApplicationError("Cannot apply to your own property")

        existing = self.db.query(DBApplication).filter(
            DBApplication.user_id == user_id,
            DBApplication.property_id == data.property_id,
        ).first()
        if existing:
            raise DuplicateApplicationError(data.property_id)

        try:
            db_application = DBApplication(user_id=user_id, **data.model_dump())
            self.db.add(db_application)
            self.db.query(DBProperty).filter(DBProperty.id == data.property_id).update(
                {DBProperty.inquiry_count: DBProperty.inquiry_count + 1},
                synchronize_session=False,
            )
            self.db.commit()
            logger.info(f"Application {db_application.id} submitted for property {data.property_id}")

        except IntegrityError:
            # A concurrent request inserted the same pair first
            self.db.rollback()
            raise DuplicateApplicationError(data.property_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to submit application for property {data.property_id}: {e}")
            raise

        return self._to_model(self._load(db_application.id))

    async def update_status(self, application_id: str, user: DBUser, status: ApplicationStatus) -> Application:
        """Owner (or admin) decision on an application"""
        db_application = self._load(application_id)
        if db_application is None:
            raise ApplicationNotFoundError(application_id)
        if db_application.property.owner_id != user.id and user.role != UserRole.ADMIN.value:
            raise NotAuthorizedError()

        now = datetime.now(timezone.utc)
        try:
            db_application.status = status.value
            if status == ApplicationStatus.REVIEWING:
                db_application.reviewed_at = now
            elif status in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
                db_application.responded_at = now
            self.db.commit()

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update application {application_id}: {e}")
            raise

        return self._to_model(self._load(application_id))

    async def withdraw_application(self, application_id: str, user_id: str) -> None:
        """Applicant withdraws a pending or in-review application"""
        db_application = self.db.get(DBApplication, application_id)
        if db_application is None:
            raise ApplicationNotFoundError(application_id)
        if db_application.user_id != user_id:
            raise NotAuthorizedError()
        if ApplicationStatus(db_application.status) not in WITHDRAWABLE_STATUSES:
            raise InvalidApplicationError("Cannot withdraw this application")

        try:
            db_application.status = ApplicationStatus.WITHDRAWN.value
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to withdraw application {application_id}: {e}")
            raise

    async def schedule_viewing(self, property_id: str, user_id: str, data: ViewingCreate) -> Viewing:
        if self.db.get(DBProperty, property_id) is None:
            raise PropertyNotFoundError(property_id)

        try:
            db_viewing = DBViewingSchedule(
                user_id=user_id,
                property_id=property_id,
                scheduled_at=data.scheduled_at,
                type=data.type.value,
                notes=data.notes,
            )
            self.db.add(db_viewing)
            self.db.commit()
            return Viewing.model_validate(db_viewing)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to schedule viewing for property {property_id}: {e}")
            raise

    def _load(self, application_id: str) -> Optional[DBApplication]:
        return self._base_query().filter(DBApplication.id == application_id).first()

    @staticmethod
    def _ordered(query):
        return query.order_by(desc(DBApplication.submitted_at), desc(DBApplication.id)).all()

    @staticmethod
    def _to_model(db_application: DBApplication) -> Application:
        return Application.model_validate(db_application)
