"""Technician profile API: lazy profile creation and profile updates."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.db import crud
from servicebay.dependencies import get_db
from servicebay.schemas import TechnicianRead, TechnicianUpdate

router = APIRouter(prefix="/api/technicians", tags=["technicians"])


@router.get("", response_model=TechnicianRead)
async def get_profile(user_id: str = "", db: AsyncSession = Depends(get_db)):
    """Profile for the given user; a default one is created on first access."""
    if not user_id.strip():
        raise HTTPException(400, "Missing user_id")
    return await crud.get_or_create_technician_profile(db, user_id.strip())


@router.get("/all", response_model=list[TechnicianRead])
async def list_technicians(active_only: bool = True, db: AsyncSession = Depends(get_db)):
    return await crud.list_technicians(db, active_only=active_only)


@router.patch("/{tech_id}", response_model=TechnicianRead)
async def update_technician(
    tech_id: str,
    body: TechnicianUpdate,
    db: AsyncSession = Depends(get_db),
):
    tech = await crud.get_technician(db, tech_id)
    if not tech:
        raise HTTPException(404, "Technician not found")

    updates = body.model_dump(exclude_unset=True)
    if updates:
        tech = await crud.update_technician(db, tech, **updates)
    return tech
