from sqlalchemy import (
    Column, Integer, String, DateTime,
    ForeignKey, UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from aircargo.database import Base
from aircargo.models.timestamps import utcnow


class Flight(Base):
    __tablename__ = "flights"
    __table_args__ = (
        UniqueConstraint("flight_number", "departure_datetime", name="uq_flight_number_departure"),
        CheckConstraint("departure_datetime < arrival_datetime", name="ck_flight_departs_before_arrival"),
        Index("idx_flights_route_departure", "origin", "destination", "departure_datetime"),
    )

    id                 = Column(Integer, primary_key=True, index=True)
    flight_number      = Column(String(20), nullable=False)
    airline_id         = Column(Integer, ForeignKey("airlines.id"), nullable=False, index=True)
    origin             = Column(String(10), nullable=False)
    destination        = Column(String(10), nullable=False)
    departure_datetime = Column(DateTime, nullable=False, index=True)
    arrival_datetime   = Column(DateTime, nullable=False, index=True)
    created_at         = Column(DateTime, nullable=False, default=utcnow)
    updated_at         = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relacions
    airline = relationship("Airline", back_populates="flights", lazy="joined")

    @property
    def airline_name(self):
        return self.airline.name if self.airline else None

    @property
    def airline_code(self):
        return self.airline.code if self.airline else None

    @property
    def duration_minutes(self) -> int:
        return round((self.arrival_datetime - self.departure_datetime).total_seconds() / 60)
