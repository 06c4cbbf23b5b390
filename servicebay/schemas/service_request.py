from __future__ import annotations
from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field, field_validator


class Yard(BaseModel):
    name: str
    longitude: float = Field(ge=-180, le=180)
    latitude: float = Field(ge=-90, le=90)


class CarDetails(BaseModel):
    make: str = ""
    model: str = ""
    year: int | None = None
    registration: str = ""
    vehicle_type: str  # skill tag a technician must carry, e.g. sedan | suv | heavy


class ServiceRequestCreate(BaseModel):
    customer_id: str
    yard: Yard
    car_details: CarDetails
    description: str = ""
    service_type: str | None = None
    preferred_start: datetime | None = None
    preferred_end: datetime | None = None
    estimated_duration_mins: int = Field(default=0, ge=0)
    travel_buffer_mins: int = Field(default=0, ge=0)


class HistoryEntry(BaseModel):
    action: str
    by: str | None = None
    timestamp: str


class PartUsage(BaseModel):
    part_id: str
    quantity: float = Field(default=1, gt=0)


class QuoteRead(BaseModel):
    amount: float
    currency: str
    details: str
    approved: bool = False
    approved_at: str | None = None


class ServiceRequestRead(BaseModel):
    id: str
    customer_id: str
    yard: dict[str, Any]
    car_details: dict[str, Any]
    description: str
    service_type: str | None = None
    preferred_start: datetime | None = None
    preferred_end: datetime | None = None
    estimated_duration_mins: int = 0
    travel_buffer_mins: int = 0
    priority: int
    assigned_technician_id: str | None = None
    scheduled_start: datetime | None = None
    scheduled_end: datetime | None = None
    parts_used: list[PartUsage] = []
    labor_hours: float = 0.0
    inspection_notes: str = ""
    quote: QuoteRead | None = None
    status: str
    history: list[HistoryEntry] = []
    version: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ReportSubmit(BaseModel):
    user_id: str | None = None
    parts_used: list[PartUsage] = []
    labor_hours: float = Field(default=0.0, ge=0)
    inspection_notes: str = ""


class QuoteApproval(BaseModel):
    approved: bool
    user_id: str | None = None


class AutomationRequest(BaseModel):
    request_id: str
    user_id: str | None = None
    approved: bool | None = None

    @field_validator("request_id")
    @classmethod
    def validate_request_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("request_id is required")
        return v.strip()
