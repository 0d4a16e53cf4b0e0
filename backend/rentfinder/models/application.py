from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime
from rentfinder.models.property import ApiModel, OwnerSummary, PropertySummary, CaseInsensitiveEnum


class ApplicationStatus(CaseInsensitiveEnum):
    PENDING = "PENDING"
    REVIEWING = "REVIEWING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


# Statuses an owner may move an application to
REVIEW_STATUSES = {ApplicationStatus.REVIEWING, ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}

# Statuses an applicant may still withdraw from
WITHDRAWABLE_STATUSES = {ApplicationStatus.PENDING, ApplicationStatus.REVIEWING}


class ViewingType(CaseInsensitiveEnum):
    IN_PERSON = "IN_PERSON"
    VIDEO_CALL = "VIDEO_CALL"
    SELF_GUIDED = "SELF_GUIDED"


class ApplicantSummary(OwnerSummary):
    email: Optional[str] = None


class ApplicationCreate(ApiModel):
    property_id: str = Field(..., min_length=1)
    message: Optional[str] = None
    move_in_date: Optional[datetime] = None
    lease_term: Optional[int] = Field(None, ge=1)
    offered_price: Optional[float] = Field(None, ge=0)
    is_pre_approved: bool = False
    financing_type: Optional[str] = None

    @field_validator('message', mode='before')
    @classmethod
    def strip_message(cls, v):
        return v.strip() if isinstance(v, str) else v


class ApplicationStatusUpdate(ApiModel):
    status: ApplicationStatus

    @field_validator('status')
    @classmethod
    def validate_review_status(cls, v):
        if v not in REVIEW_STATUSES:
            raise ValueError("Status must be one of REVIEWING, APPROVED, REJECTED")
        return v


class Application(ApiModel):
    id: str
    user_id: str
    property_id: str
    status: ApplicationStatus
    message: Optional[str] = None
    move_in_date: Optional[datetime] = None
    lease_term: Optional[int] = None
    offered_price: Optional[float] = None
    is_pre_approved: bool = False
    financing_type: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    property: Optional[PropertySummary] = None
    user: Optional[ApplicantSummary] = None


class ApplicationResponse(ApiModel):
    application: Application


class ApplicationListResponse(ApiModel):
    applications: List[Application]


class ViewingCreate(ApiModel):
    scheduled_at: datetime
    type: ViewingType = ViewingType.IN_PERSON
    notes: Optional[str] = None


class Viewing(ApiModel):
    id: str
    user_id: str
    property_id: str
    scheduled_at: datetime
    type: ViewingType
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class ViewingResponse(ApiModel):
    viewing: Viewing
