"""Engine entry points: triage -> assign -> schedule -> report -> quote -> approve -> close.

Every operation is one unit of work over the given session: it loads the
request (and technician where needed), checks preconditions, mutates, and
commits once through ``run_atomic``. Optimistic-lock conflicts replay the
whole operation against fresh rows, so a request raced by a concurrent
caller is re-validated rather than overwritten.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.config import Settings, cached_settings
from servicebay.db.atomic import run_atomic
from servicebay.errors import NotFound, PreconditionFailed
from servicebay.models import ServiceRequest, Technician, SYSTEM_ACTOR
from servicebay.services import lifecycle, quoting, scheduler, triage as triage_scorer
from servicebay.services.selector import select_technician
from servicebay.services.timeutils import Clock, SystemClock

logger = logging.getLogger(__name__)

SIMPLE_CHAIN = ("skill", "least_busy")


def _actor(actor_id: str | None) -> str:
    return actor_id or SYSTEM_ACTOR


def _now(clock: Clock | None) -> datetime:
    return (clock or SystemClock()).now()


async def _load_request(db: AsyncSession, request_id: str) -> ServiceRequest:
    req = await db.get(ServiceRequest, request_id)
    if not req:
        raise NotFound(f"Request {request_id} not found")
    return req


async def _load_technician(db: AsyncSession, technician_id: str) -> Technician:
    tech = await db.get(Technician, technician_id)
    if not tech:
        raise NotFound(f"Technician {technician_id} not found")
    return tech


# ── Triage ────────────────────────────────────────────────

async def triage(
    db: AsyncSession,
    request_id: str,
    actor_id: str | None = None,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> dict:
    settings = settings or cached_settings()

    async def work():
        req = await _load_request(db, request_id)
        priority = triage_scorer.apply_triage(req, _actor(actor_id), _now(clock), settings.triage)
        return {
            "request_id": req.id,
            "priority": priority,
            "service_type": req.service_type,
            "description": req.description,
        }

    return await run_atomic(db, work, settings.concurrency.max_attempts, f"triage {request_id}")


# ── Assignment ────────────────────────────────────────────

async def _assign(
    db: AsyncSession,
    request_id: str,
    actor_id: str | None,
    chain: tuple[str, ...] | list[str],
    settings: Settings,
    clock: Clock | None,
) -> tuple[ServiceRequest, Technician]:
    async def work():
        req = await _load_request(db, request_id)
        lifecycle.require_status(req, "assign")
        selection = await select_technician(db, req, chain, settings.selector)
        lifecycle.apply_assignment(req, selection.technician, _actor(actor_id), _now(clock))
        return req, selection.technician

    return await run_atomic(db, work, settings.concurrency.max_attempts, f"assign {request_id}")


async def assign_job(
    db: AsyncSession,
    request_id: str,
    actor_id: str | None = None,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> ServiceRequest:
    """Geo-scored assignment following the configured fallback chain."""
    settings = settings or cached_settings()
    req, _ = await _assign(db, request_id, actor_id, settings.selector.fallback_chain, settings, clock)
    await db.refresh(req)
    return req


async def assign_technician(
    db: AsyncSession,
    request_id: str,
    actor_id: str | None = None,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> dict:
    """Least-busy skilled technician, falling back to the least-busy one overall."""
    settings = settings or cached_settings()
    req, tech = await _assign(db, request_id, actor_id, SIMPLE_CHAIN, settings, clock)
    return {"request_id": req.id, "technician_id": tech.id}


# ── Scheduling ────────────────────────────────────────────

async def schedule_job(
    db: AsyncSession,
    request_id: str,
    actor_id: str | None = None,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> dict:
    settings = settings or cached_settings()

    async def work():
        req = await _load_request(db, request_id)
        if not req.assigned_technician_id:
            raise PreconditionFailed(f"No technician assigned to request {request_id}")
        lifecycle.require_status(req, "schedule")
        tech = await _load_technician(db, req.assigned_technician_id)

        now = _now(clock)
        job_minutes, break_minutes = scheduler.job_lengths(req, settings.scheduler)
        slot = scheduler.compute_slot(tech, now, job_minutes, break_minutes, settings.scheduler)
        scheduler.apply_schedule(req, tech, slot, _actor(actor_id), now)
        return {
            "request_id": req.id,
            "technician_id": tech.id,
            "scheduled_at": slot.start,
            "scheduled_end": slot.end,
            "start_time": slot.start_time,
            "end_time": slot.end_time,
        }

    return await run_atomic(db, work, settings.concurrency.max_attempts, f"schedule {request_id}")


# ── Field report + quoting ────────────────────────────────

async def _quote(db: AsyncSession, req: ServiceRequest, settings: Settings, now: datetime) -> None:
    lifecycle.require_status(req, "generate_quote")
    lines = await quoting.price_parts(db, req.parts_used)
    quote = quoting.build_quote(lines, req.labor_hours, settings.quote)
    quoting.apply_quote(req, quote, now)


async def submit_report(
    db: AsyncSession,
    request_id: str,
    actor_id: str | None,
    parts_used: list[dict],
    labor_hours: float = 0.0,
    inspection_notes: str = "",
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> ServiceRequest:
    """Record the technician's report; optionally quote it in the same transaction."""
    settings = settings or cached_settings()

    async def work():
        req = await _load_request(db, request_id)
        lifecycle.require_status(req, "submit_report")
        # Validates every part id up front.
        await quoting.price_parts(db, parts_used)
        now = _now(clock)
        lifecycle.apply_report(req, parts_used, labor_hours, inspection_notes, _actor(actor_id), now)
        if settings.quote.auto_quote_on_report:
            await _quote(db, req, settings, now)
        return req

    req = await run_atomic(db, work, settings.concurrency.max_attempts, f"report {request_id}")
    await db.refresh(req)
    return req


async def generate_quote(
    db: AsyncSession,
    request_id: str,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> ServiceRequest:
    settings = settings or cached_settings()

    async def work():
        req = await _load_request(db, request_id)
        await _quote(db, req, settings, _now(clock))
        return req

    req = await run_atomic(db, work, settings.concurrency.max_attempts, f"quote {request_id}")
    await db.refresh(req)
    return req


# ── Approval + close ──────────────────────────────────────

async def approve_quote(
    db: AsyncSession,
    request_id: str,
    approved: bool,
    actor_id: str | None = None,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> dict:
    settings = settings or cached_settings()

    async def work():
        req = await _load_request(db, request_id)
        lifecycle.apply_approval(req, approved, _actor(actor_id), _now(clock))
        return {"request_id": req.id, "approved": approved}

    return await run_atomic(db, work, settings.concurrency.max_attempts, f"approve {request_id}")


async def close_job(
    db: AsyncSession,
    request_id: str,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> dict:
    """Complete the request (system-only, unguarded) and resync the technician's workload."""
    settings = settings or cached_settings()

    async def work():
        req = await _load_request(db, request_id)
        lifecycle.apply_close(req, _now(clock))
        if req.assigned_technician_id:
            tech = await db.get(Technician, req.assigned_technician_id)
            if tech:
                await lifecycle.reconcile_workload(db, tech)
        return {"request_id": req.id, "status": req.status}

    return await run_atomic(db, work, settings.concurrency.max_attempts, f"close {request_id}")
