import json
import logging

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime,
    Enum, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from aircargo.database import Base
from aircargo.models.enums import BookingStatus, TimelineEventType
from aircargo.models.timestamps import utcnow

logger = logging.getLogger(__name__)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("pieces > 0", name="ck_booking_pieces_positive"),
        CheckConstraint("weight_kg > 0", name="ck_booking_weight_positive"),
        Index("idx_bookings_route", "origin", "destination"),
    )

    id          = Column(Integer, primary_key=True, index=True)
    ref_id      = Column(String(20), unique=True, nullable=False, index=True)  # AC-YYYYMMDD-NNNN
    user_id     = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    origin      = Column(String(10), nullable=False)
    destination = Column(String(10), nullable=False)
    pieces      = Column(Integer, nullable=False)
    weight_kg   = Column(Integer, nullable=False)
    status      = Column(
        Enum(BookingStatus, native_enum=False, length=20, validate_strings=True),
        nullable=False,
        default=BookingStatus.BOOKED,
        index=True,
    )
    flight_ids  = Column(Text)  # llista JSON d'ids de vol, en ordre d'itinerari
    created_at  = Column(DateTime, nullable=False, default=utcnow)
    updated_at  = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    events = relationship(
        "TimelineEvent",
        back_populates="booking",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def itinerary(self):
        """Flight ids of the stored itinerary; an unreadable value counts as empty."""
        if not self.flight_ids:
            return []
        try:
            ids = json.loads(self.flight_ids)
        except ValueError:
            logger.warning("Unparseable itinerary on booking %s: %r", self.ref_id, self.flight_ids)
            return []
        if not isinstance(ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
            logger.warning("Malformed itinerary on booking %s: %r", self.ref_id, self.flight_ids)
            return []
        return ids


class TimelineEvent(Base):
    __tablename__ = "timeline_events"
    __table_args__ = (
        Index("idx_timeline_booking", "booking_id", "created_at"),
    )

    id          = Column(Integer, primary_key=True, index=True)
    booking_id  = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    event_type  = Column(
        Enum(TimelineEventType, native_enum=False, length=20, validate_strings=True),
        nullable=False,
    )
    location    = Column(String(100))
    flight_info = Column(Text)  # JSON
    notes       = Column(Text)
    created_at  = Column(DateTime, nullable=False, default=utcnow)

    booking = relationship("Booking", back_populates="events")

    @property
    def flight_info_data(self):
        if not self.flight_info:
            return None
        try:
            return json.loads(self.flight_info)
        except ValueError:
            logger.warning("Unparseable flight_info on timeline event %s", self.id)
            return None


class BookingCounter(Base):
    __tablename__ = "booking_counters"

    date_key = Column(Date, primary_key=True)
    counter  = Column(Integer, nullable=False, default=0)
