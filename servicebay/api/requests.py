"""Service request API: intake, lookup, field report, quote approval."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.config import Settings
from servicebay.db import crud
from servicebay.dependencies import get_clock, get_db, get_settings_dep
from servicebay.schemas import (
    QuoteApproval, ReportSubmit, ServiceRequestCreate, ServiceRequestRead,
)
from servicebay.services import automation
from servicebay.services.timeutils import Clock

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.post("", response_model=ServiceRequestRead, status_code=201)
async def create_request(body: ServiceRequestCreate, db: AsyncSession = Depends(get_db)):
    return await crud.create_service_request(
        db,
        customer_id=body.customer_id,
        yard=body.yard.model_dump(),
        car_details=body.car_details.model_dump(),
        description=body.description,
        service_type=body.service_type,
        preferred_start=body.preferred_start,
        preferred_end=body.preferred_end,
        estimated_duration_mins=body.estimated_duration_mins,
        travel_buffer_mins=body.travel_buffer_mins,
    )


@router.get("", response_model=list[ServiceRequestRead])
async def list_requests(
    customer_id: str | None = None,
    technician_id: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_service_requests(db, customer_id=customer_id, technician_id=technician_id)


@router.get("/{request_id}", response_model=ServiceRequestRead)
async def get_request(request_id: str, db: AsyncSession = Depends(get_db)):
    req = await crud.get_service_request(db, request_id)
    if not req:
        raise HTTPException(404, "Request not found")
    return req


@router.post("/{request_id}/report", response_model=ServiceRequestRead)
async def submit_report(
    request_id: str,
    body: ReportSubmit,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    return await automation.submit_report(
        db, request_id, body.user_id,
        parts_used=[p.model_dump() for p in body.parts_used],
        labor_hours=body.labor_hours,
        inspection_notes=body.inspection_notes,
        settings=settings, clock=clock,
    )


@router.patch("/{request_id}/approve-quote")
async def approve_quote(
    request_id: str,
    body: QuoteApproval,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    return await automation.approve_quote(db, request_id, body.approved, body.user_id, settings, clock)
