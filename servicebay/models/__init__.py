"""SQLAlchemy ORM models.

ServiceRequest and Technician are independently persisted aggregates, each
carrying a ``version`` column for optimistic concurrency.
"""

from servicebay.models.base import Base
from servicebay.models.technician import Technician
from servicebay.models.part import Part
from servicebay.models.service_request import ServiceRequest, RequestStatus, SYSTEM_ACTOR

__all__ = [
    "Base", "Technician", "Part",
    "ServiceRequest", "RequestStatus", "SYSTEM_ACTOR",
]
