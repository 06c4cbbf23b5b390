"""Technician model: field worker matched to service requests."""

from __future__ import annotations

from sqlalchemy import String, Boolean, Integer, Float
from sqlalchemy.orm import Mapped, mapped_column

from servicebay.models.base import Base, ULIDMixin


def default_work_hours() -> dict:
    return {"start": "08:00", "end": "17:00", "days": ["Mon", "Tue", "Wed", "Thu", "Fri"]}


class Technician(Base, ULIDMixin):
    __tablename__ = "technicians"

    user_id: Mapped[str] = mapped_column(String(64), unique=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    skills: Mapped[list] = mapped_column(default=list)
    current_jobs: Mapped[int] = mapped_column(Integer, default=0)
    max_daily_jobs: Mapped[int] = mapped_column(Integer, default=5)
    rating: Mapped[float] = mapped_column(Float, default=5.0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    work_hours: Mapped[dict] = mapped_column(default=default_work_hours)
    weekly_availability: Mapped[list] = mapped_column(default=list)  # [{day_of_week, start, end}]
    assigned_jobs: Mapped[list] = mapped_column(default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def has_skill(self, tag: str | None) -> bool:
        return bool(tag) and tag in (self.skills or [])
