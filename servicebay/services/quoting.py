"""Quote generator: itemized parts + labor pricing."""

from __future__ import annotations

import json
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.config import QuoteConfig
from servicebay.db import crud
from servicebay.errors import NotFound
from servicebay.models import RequestStatus, ServiceRequest, SYSTEM_ACTOR

logger = logging.getLogger(__name__)


def line(item: str, qty: float, unit_price: float) -> dict:
    return {"item": item, "qty": qty, "unit_price": unit_price, "subtotal": unit_price * qty}


async def price_parts(db: AsyncSession, parts_used: list[dict]) -> list[dict]:
    """One breakdown line per parts_used entry, in order. Unknown part ids raise NotFound."""
    lines = []
    for used in parts_used or []:
        part = await crud.get_part(db, used["part_id"])
        if not part:
            raise NotFound(f"Part {used['part_id']} not found")
        lines.append(line(part.name, used.get("quantity", 1), part.price))
    return lines


def build_quote(
    part_lines: list[dict],
    labor_hours: float,
    config: QuoteConfig | None = None,
) -> dict:
    """Total the part lines and add a labor line when any labor was reported."""
    config = config or QuoteConfig()
    breakdown = list(part_lines)
    if labor_hours and labor_hours * config.labor_rate > 0:
        breakdown.append(line("Labor", labor_hours, config.labor_rate))

    return {
        "amount": sum(row["subtotal"] for row in breakdown),
        "currency": config.currency,
        "details": json.dumps(breakdown),
        "approved": False,
        "approved_at": None,
    }


def quote_breakdown(quote: dict | None) -> list[dict]:
    if not quote or not quote.get("details"):
        return []
    return json.loads(quote["details"])


def apply_quote(request: ServiceRequest, quote: dict, now: datetime) -> None:
    """Replace any previous quote outright; never merged."""
    request.quote = quote
    request.status = RequestStatus.QUOTED.value
    request.record("Quote generated", SYSTEM_ACTOR, now)
    logger.info("Quote for request %s: %.2f %s", request.id, quote["amount"], quote["currency"])
