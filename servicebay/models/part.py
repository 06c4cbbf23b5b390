"""Part catalog entry: unit price source for quotes."""

from __future__ import annotations

from sqlalchemy import String, Integer, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from servicebay.models.base import Base, ULIDMixin


class Part(Base, ULIDMixin):
    __tablename__ = "parts"

    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    price: Mapped[float] = mapped_column(Float)
    stock: Mapped[int] = mapped_column(Integer, default=0)
    unit: Mapped[str] = mapped_column(String(20), default="pcs")  # pcs | liters | ...
