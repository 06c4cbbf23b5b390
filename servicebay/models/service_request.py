"""Service request model: one customer-submitted vehicle job."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import String, Integer, Float, Text, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from servicebay.models.base import Base, ULIDMixin, utcnow

SYSTEM_ACTOR = "system"


class RequestStatus(str, enum.Enum):
    NEW = "new"
    ASSIGNED_PENDING = "assigned_pending"
    IN_PROGRESS = "in_progress"
    REPORT_SUBMITTED = "report_submitted"
    QUOTED = "quoted"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceRequest(Base, ULIDMixin):
    __tablename__ = "service_requests"

    customer_id: Mapped[str] = mapped_column(String(64), index=True)
    yard: Mapped[dict] = mapped_column()  # {name, longitude, latitude}
    car_details: Mapped[dict] = mapped_column(default=dict)
    description: Mapped[str] = mapped_column(Text, default="")
    service_type: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    preferred_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    preferred_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    estimated_duration_mins: Mapped[int] = mapped_column(Integer, default=0)
    travel_buffer_mins: Mapped[int] = mapped_column(Integer, default=0)
    priority: Mapped[int] = mapped_column(Integer, default=5)
    assigned_technician_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("technicians.id"), nullable=True, default=None, index=True
    )
    scheduled_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    scheduled_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    parts_used: Mapped[list] = mapped_column(default=list)  # [{part_id, quantity}]
    labor_hours: Mapped[float] = mapped_column(Float, default=0.0)
    inspection_notes: Mapped[str] = mapped_column(Text, default="")
    quote: Mapped[dict | None] = mapped_column(nullable=True, default=None)
    status: Mapped[str] = mapped_column(String(30), default=RequestStatus.NEW.value)
    history: Mapped[list] = mapped_column(default=list)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def vehicle_type(self) -> str | None:
        return (self.car_details or {}).get("vehicle_type")

    def record(self, action: str, by: str | None, at: datetime | None = None) -> None:
        """Append one ledger entry. The list is reassigned so the ORM sees the change."""
        entry = {"action": action, "by": by, "timestamp": (at or utcnow()).isoformat()}
        self.history = [*(self.history or []), entry]
