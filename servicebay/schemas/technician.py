from __future__ import annotations
from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field

# 00:00 .. 23:59
HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class AvailabilityWindow(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    start: str = Field(pattern=HHMM)
    end: str = Field(pattern=HHMM)


class WorkHours(BaseModel):
    start: str = Field(default="08:00", pattern=HHMM)
    end: str = Field(default="17:00", pattern=HHMM)
    days: list[str] = ["Mon", "Tue", "Wed", "Thu", "Fri"]


class TechnicianRead(BaseModel):
    id: str
    user_id: str
    name: str
    longitude: float | None = None
    latitude: float | None = None
    skills: list[str] = []
    current_jobs: int
    max_daily_jobs: int
    rating: float
    active: bool
    work_hours: dict[str, Any]
    weekly_availability: list[dict[str, Any]] = []
    assigned_jobs: list[dict[str, Any]] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class TechnicianUpdate(BaseModel):
    name: str | None = None
    longitude: float | None = Field(default=None, ge=-180, le=180)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    skills: list[str] | None = None
    max_daily_jobs: int | None = Field(default=None, ge=0)
    rating: float | None = Field(default=None, ge=0, le=5)
    active: bool | None = None
    work_hours: WorkHours | None = None
    weekly_availability: list[AvailabilityWindow] | None = None
