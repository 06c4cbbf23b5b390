"""Pydantic request/response schemas."""

from servicebay.schemas.service_request import (
    Yard, CarDetails, ServiceRequestCreate, ServiceRequestRead,
    HistoryEntry, PartUsage, QuoteRead, ReportSubmit, QuoteApproval, AutomationRequest,
)
from servicebay.schemas.technician import (
    AvailabilityWindow, WorkHours, TechnicianRead, TechnicianUpdate,
)
from servicebay.schemas.part import PartCreate, PartRead

__all__ = [
    "Yard", "CarDetails", "ServiceRequestCreate", "ServiceRequestRead",
    "HistoryEntry", "PartUsage", "QuoteRead", "ReportSubmit", "QuoteApproval",
    "AutomationRequest",
    "AvailabilityWindow", "WorkHours", "TechnicianRead", "TechnicianUpdate",
    "PartCreate", "PartRead",
]
