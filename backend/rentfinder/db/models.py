from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rentfinder.core.database import Base
from datetime import datetime, timezone
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Account referenced by listings and bookmarks"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)

    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(String(20), nullable=False, default="RENTER")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    properties = relationship("Property", back_populates="owner")
    saved_properties = relationship("SavedProperty", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_users_email', 'email'),
    )


class Property(Base):
    """Listing record for rental and for-sale properties"""
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(36), ForeignKey('users.id'), nullable=False)

    # Basic information
    title = Column(String(500), nullable=False)
    description = Column(Text)
    type = Column(String(20), nullable=False)  # APARTMENT, HOUSE, ...
    listing_type = Column(String(10), nullable=False)  # RENT, SALE, BOTH
    status = Column(String(20), nullable=False, default="ACTIVE")

    # Commercial
    price = Column(Float, nullable=False)
    price_type = Column(String(10), nullable=False, default="MONTHLY")
    deposit = Column(Float)
    pet_deposit = Column(Float)

    # Address and location
    address = Column(String(500), nullable=False)
    unit = Column(String(50))
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    latitude = Column(Float)
    longitude = Column(Float)

    # Physical attributes
    bedrooms = Column(Integer, nullable=False, default=0)  # 0 = studio
    bathrooms = Column(Float, nullable=False, default=0)
    sqft = Column(Integer, nullable=False, default=0)
    year_built = Column(Integer)
    lot_size = Column(Float)
    parking = Column(String(200))

    # Advisory scores, supplied externally (0-100)
    aura_score_overall = Column(Float)
    aura_score_lifestyle = Column(Float)
    aura_score_connectivity = Column(Float)
    aura_score_environment = Column(Float)

    # Availability
    available_from = Column(DateTime(timezone=True))
    lease_term = Column(Integer)  # months

    # Counters, only ever changed with single-statement increments
    view_count = Column(Integer, nullable=False, default=0)
    save_count = Column(Integer, nullable=False, default=0)
    inquiry_count = Column(Integer, nullable=False, default=0)

    # Flags
    pet_friendly = Column(Boolean, nullable=False, default=False)
    smoking_allowed = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="properties")
    images = relationship(
        "PropertyImage",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="PropertyImage.order",
    )
    features = relationship("PropertyFeature", back_populates="property", cascade="all, delete-orphan")
    saved_by = relationship("SavedProperty", back_populates="property", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="property", cascade="all, delete-orphan")
    viewings = relationship("ViewingSchedule", back_populates="property", cascade="all, delete-orphan")
    # Conversations outlive the listing; deleting it only clears the reference
    messages = relationship("Message", back_populates="property")

    # Indexes for the listing query
    __table_args__ = (
        Index('idx_properties_status', 'status'),
        Index('idx_properties_price', 'price'),
        Index('idx_properties_bedrooms', 'bedrooms'),
        Index('idx_properties_city', 'city'),
        Index('idx_properties_listing_type', 'listing_type'),
        Index('idx_properties_created_at', 'created_at'),
        Index('idx_properties_owner_id', 'owner_id'),
    )


class PropertyImage(Base):
    __tablename__ = "property_images"

    id = Column(String(36), primary_key=True, default=_new_id)
    property_id = Column(String(36), ForeignKey('properties.id', ondelete="CASCADE"), nullable=False)

    url = Column(String(1000), nullable=False)
    caption = Column(String(500))
    is_primary = Column(Boolean, nullable=False, default=False)  # one per property, by convention
    order = Column(Integer, nullable=False, default=0)

    property = relationship("Property", back_populates="images")

    __table_args__ = (
        Index('idx_property_images_property_id', 'property_id'),
    )


class PropertyFeature(Base):
    __tablename__ = "property_features"

    id = Column(String(36), primary_key=True, default=_new_id)
    property_id = Column(String(36), ForeignKey('properties.id', ondelete="CASCADE"), nullable=False)

    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False, default="AMENITY")

    property = relationship("Property", back_populates="features")

    __table_args__ = (
        Index('idx_property_features_property_id', 'property_id'),
        Index('idx_property_features_name', 'name'),
    )


class SavedProperty(Base):
    """User's saved/bookmarked properties"""
    __tablename__ = "saved_properties"

    id = Column(String(36), primary_key=True, default=_new_id)

    user_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    property_id = Column(String(36), ForeignKey('properties.id', ondelete="CASCADE"), nullable=False)

    notes = Column(Text)
    saved_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="saved_properties")
    property = relationship("Property", back_populates="saved_by")

    __table_args__ = (
        Index('idx_saved_properties_user_id', 'user_id'),
        Index('idx_saved_properties_property_id', 'property_id'),
        # Unique constraint to prevent duplicate saves
        Index('idx_saved_properties_unique', 'user_id', 'property_id', unique=True),
    )


class Application(Base):
    """Rental or purchase application for a listing"""
    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=_new_id)

    user_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    property_id = Column(String(36), ForeignKey('properties.id', ondelete="CASCADE"), nullable=False)

    status = Column(String(20), nullable=False, default="PENDING")  # PENDING, REVIEWING, APPROVED, REJECTED, WITHDRAWN
    message = Column(Text)
    move_in_date = Column(DateTime(timezone=True))
    lease_term = Column(Integer)  # months
    offered_price = Column(Float)
    is_pre_approved = Column(Boolean, nullable=False, default=False)
    financing_type = Column(String(50))

    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    reviewed_at = Column(DateTime(timezone=True))
    responded_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User")
    property = relationship("Property", back_populates="applications")

    __table_args__ = (
        Index('idx_applications_user_id', 'user_id'),
        Index('idx_applications_property_id', 'property_id'),
        # One application per user and property
        Index('idx_applications_unique', 'user_id', 'property_id', unique=True),
    )


class ViewingSchedule(Base):
    """Requested viewing of a listing"""
    __tablename__ = "viewing_schedules"

    id = Column(String(36), primary_key=True, default=_new_id)

    user_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    property_id = Column(String(36), ForeignKey('properties.id', ondelete="CASCADE"), nullable=False)

    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    type = Column(String(20), nullable=False, default="IN_PERSON")  # IN_PERSON, VIDEO_CALL, SELF_GUIDED
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    property = relationship("Property", back_populates="viewings")

    __table_args__ = (
        Index('idx_viewing_schedules_property_id', 'property_id'),
    )


class Message(Base):
    """Direct message between two users, optionally about a listing"""
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=_new_id)

    sender_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    receiver_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    property_id = Column(String(36), ForeignKey('properties.id', ondelete="SET NULL"))

    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True))

    # Set in Python for sub-second ordering within a thread
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])
    property = relationship("Property", back_populates="messages")

    __table_args__ = (
        Index('idx_messages_sender_id', 'sender_id'),
        Index('idx_messages_receiver_id', 'receiver_id'),
        Index('idx_messages_receiver_unread', 'receiver_id', 'is_read'),
    )
