"""Parts catalog API."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.db import crud
from servicebay.dependencies import get_db
from servicebay.schemas import PartCreate, PartRead

router = APIRouter(prefix="/api/parts", tags=["parts"])


@router.get("", response_model=list[PartRead])
async def list_parts(db: AsyncSession = Depends(get_db)):
    return await crud.list_parts(db)


@router.post("", response_model=PartRead, status_code=201)
async def create_part(body: PartCreate, db: AsyncSession = Depends(get_db)):
    return await crud.create_part(
        db, name=body.name, price=body.price, unit=body.unit,
        stock=body.stock, description=body.description,
    )
