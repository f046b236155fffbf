from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from aircargo.database import Base
from aircargo.models.timestamps import utcnow


class Airline(Base):
    __tablename__ = "airlines"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(10), unique=True, nullable=False, index=True)  # "AI", "6E", ...
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    flights = relationship("Flight", back_populates="airline")
