"""Request lifecycle: status transitions and the history ledger entries they write.

    new -> assigned_pending -> in_progress -> report_submitted -> quoted
        -> approved | (rejected: stays quoted) -> completed

Each transition belongs to one operation and may only start from the
statuses listed in ``ALLOWED_FROM``. ``close_job`` is
unguarded: it completes a request from any status.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.db import crud
from servicebay.errors import NoQuoteToApprove, PreconditionFailed
from servicebay.models import RequestStatus, ServiceRequest, Technician

logger = logging.getLogger(__name__)

S = RequestStatus

ALLOWED_FROM: dict[str, set[RequestStatus]] = {
    "assign": {S.NEW},
    "schedule": {S.ASSIGNED_PENDING},
    "submit_report": {S.IN_PROGRESS},
    "generate_quote": {S.REPORT_SUBMITTED, S.QUOTED, S.APPROVED},
    "approve_quote": {S.QUOTED, S.APPROVED},
}


def require_status(request: ServiceRequest, operation: str) -> None:
    allowed = ALLOWED_FROM[operation]
    if request.status not in {s.value for s in allowed}:
        expected = ", ".join(sorted(s.value for s in allowed))
        raise PreconditionFailed(
            f"Cannot {operation.replace('_', ' ')} request {request.id} "
            f"in status '{request.status}' (expected {expected})"
        )


def apply_assignment(
    request: ServiceRequest, tech: Technician, actor: str, now: datetime
) -> None:
    request.assigned_technician_id = tech.id
    request.status = S.ASSIGNED_PENDING.value
    request.record(f"Assigned to technician {tech.id}", actor, now)
    tech.current_jobs = (tech.current_jobs or 0) + 1
    logger.info("Request %s assigned to technician %s", request.id, tech.id)


def apply_report(
    request: ServiceRequest,
    parts_used: list[dict],
    labor_hours: float,
    inspection_notes: str,
    actor: str,
    now: datetime,
) -> None:
    request.parts_used = [
        {"part_id": p["part_id"], "quantity": p.get("quantity", 1)} for p in parts_used
    ]
    request.labor_hours = labor_hours
    request.inspection_notes = inspection_notes
    request.status = S.REPORT_SUBMITTED.value
    request.record("Report submitted", actor, now)


def apply_approval(
    request: ServiceRequest, approved: bool, actor: str, now: datetime
) -> None:
    """Record the customer's decision on the current quote.

    ``approved_at`` marks an approval only: a rejection clears it and the
    rejection time lives in the history entry.
    """
    if not request.quote:
        raise NoQuoteToApprove(f"Request {request.id} has no quote to approve")
    require_status(request, "approve_quote")

    request.quote = {
        **request.quote,
        "approved": approved,
        "approved_at": now.isoformat() if approved else None,
    }
    request.status = S.APPROVED.value if approved else S.QUOTED.value
    request.record("Quote approved" if approved else "Quote rejected", actor, now)


def apply_close(request: ServiceRequest, now: datetime) -> None:
    # TODO: gate on an approved quote once product confirms closing unquoted jobs is unwanted
    request.status = S.COMPLETED.value
    request.record("Job closed", None, now)


async def reconcile_workload(db: AsyncSession, tech: Technician) -> int:
    """Recompute current_jobs from the technician's open requests; returns the new value.

    Uses the same units as the running counter: one for the assignment and
    one more once the request has been scheduled.
    """
    assigned = await crud.count_open_requests_for_technician(db, tech.id)
    scheduled = await crud.count_open_requests_for_technician(
        db, tech.id, statuses=crud.SCHEDULED_STATUSES
    )
    tech.current_jobs = assigned + scheduled
    return tech.current_jobs
