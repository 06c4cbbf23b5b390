"""Automation API: one POST per engine step, body {request_id, user_id?, approved?}."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.config import Settings
from servicebay.dependencies import get_clock, get_db, get_settings_dep
from servicebay.schemas import AutomationRequest, ServiceRequestRead
from servicebay.services import automation
from servicebay.services.timeutils import Clock

router = APIRouter(prefix="/api/automations", tags=["automations"])


@router.post("/triage")
async def triage(
    body: AutomationRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    return await automation.triage(db, body.request_id, body.user_id, settings, clock)


@router.post("/assign", response_model=ServiceRequestRead)
async def assign_job(
    body: AutomationRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    return await automation.assign_job(db, body.request_id, body.user_id, settings, clock)


@router.post("/assign-simple")
async def assign_technician(
    body: AutomationRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    return await automation.assign_technician(db, body.request_id, body.user_id, settings, clock)


@router.post("/schedule")
async def schedule_job(
    body: AutomationRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    return await automation.schedule_job(db, body.request_id, body.user_id, settings, clock)


@router.post("/quote", response_model=ServiceRequestRead)
async def generate_quote(
    body: AutomationRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    return await automation.generate_quote(db, body.request_id, settings, clock)


@router.post("/approve-quote")
async def approve_quote(
    body: AutomationRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    if body.approved is None:
        raise HTTPException(400, "approved is required")
    return await automation.approve_quote(db, body.request_id, body.approved, body.user_id, settings, clock)


@router.post("/close-job")
async def close_job(
    body: AutomationRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    return await automation.close_job(db, body.request_id, settings, clock)
