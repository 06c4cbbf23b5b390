from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field


class PartCreate(BaseModel):
    name: str
    price: float = Field(ge=0)
    unit: str = "pcs"
    stock: int = Field(default=0, ge=0)
    description: str = ""


class PartRead(BaseModel):
    id: str
    name: str
    description: str = ""
    price: float
    stock: int
    unit: str
    created_at: datetime

    model_config = {"from_attributes": True}
