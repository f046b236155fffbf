from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, conint


class FlightSchema(BaseModel):
    id: int
    flight_number: str
    airline_id: int
    airline_name: Optional[str]
    airline_code: Optional[str]
    origin: str
    destination: str
    departure_datetime: datetime
    arrival_datetime: datetime
    duration_minutes: int

    class Config:
        from_attributes = True


class TransitRouteSchema(BaseModel):
    first_flight: FlightSchema
    second_flight: FlightSchema
    total_duration_minutes: int
    connection_time_minutes: int
    transit_hub: str

    class Config:
        from_attributes = True


class AirlineSchema(BaseModel):
    id: int
    code: str
    name: str

    class Config:
        from_attributes = True


class ValidateSequenceRequest(BaseModel):
    flight_ids: List[conint(gt=0)] = Field(..., min_length=1)
