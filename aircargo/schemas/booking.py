from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, conint, constr, field_validator

from aircargo.models.enums import BookingStatus


class CreateBookingRequest(BaseModel):
    origin: constr(min_length=3, max_length=3)
    destination: constr(min_length=3, max_length=3)
    pieces: int = Field(..., ge=1, le=1000)
    weight_kg: int = Field(..., ge=1, le=50000)
    flight_ids: List[conint(gt=0)] = Field(..., min_length=1, max_length=2)

    @field_validator("origin", "destination", mode="before")
    @classmethod
    def upper_code(cls, v):
        return v.upper() if isinstance(v, str) else v

    class Config:
        json_schema_extra = {
            "example": {
                "origin": "DEL",
                "destination": "BLR",
                "pieces": 4,
                "weight_kg": 120,
                "flight_ids": [101, 245]
            }
        }


class TransitionRequest(BaseModel):
    location: constr(min_length=1, max_length=100)
    flight_info: Optional[Dict[str, Any]] = None


class BookingSchema(BaseModel):
    ref_id: str
    origin: str
    destination: str
    pieces: int
    weight_kg: int
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
