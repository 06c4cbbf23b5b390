"""CRUD operations for service requests, technicians and the parts catalog."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.models import Part, RequestStatus, ServiceRequest, Technician
from servicebay.services.geo import bounding_box, haversine_km, longitude_ranges

OPEN_STATUSES = (
    RequestStatus.ASSIGNED_PENDING.value,
    RequestStatus.IN_PROGRESS.value,
    RequestStatus.REPORT_SUBMITTED.value,
    RequestStatus.QUOTED.value,
    RequestStatus.APPROVED.value,
)

# Statuses a request reaches once it holds a slot on the technician's queue.
SCHEDULED_STATUSES = OPEN_STATUSES[1:]


# ── ServiceRequest ────────────────────────────────────────

async def create_service_request(
    db: AsyncSession,
    customer_id: str,
    yard: dict,
    car_details: dict | None = None,
    description: str = "",
    service_type: str | None = None,
    preferred_start: datetime | None = None,
    preferred_end: datetime | None = None,
    estimated_duration_mins: int = 0,
    travel_buffer_mins: int = 0,
) -> ServiceRequest:
    req = ServiceRequest(
        customer_id=customer_id,
        yard=yard,
        car_details=car_details or {},
        description=description,
        service_type=service_type,
        preferred_start=preferred_start,
        preferred_end=preferred_end,
        estimated_duration_mins=estimated_duration_mins,
        travel_buffer_mins=travel_buffer_mins,
        status=RequestStatus.NEW.value,
        history=[],
    )
    req.record("Request created", customer_id)
    db.add(req)
    await db.commit()
    await db.refresh(req)
    return req


async def get_service_request(db: AsyncSession, request_id: str) -> ServiceRequest | None:
    return await db.get(ServiceRequest, request_id)


async def list_service_requests(
    db: AsyncSession,
    customer_id: str | None = None,
    technician_id: str | None = None,
) -> list[ServiceRequest]:
    stmt = select(ServiceRequest)
    if customer_id:
        stmt = stmt.where(ServiceRequest.customer_id == customer_id)
    if technician_id:
        stmt = stmt.where(ServiceRequest.assigned_technician_id == technician_id)
    result = await db.execute(stmt.order_by(ServiceRequest.created_at.desc()))
    return list(result.scalars().all())


async def count_open_requests_for_technician(
    db: AsyncSession, technician_id: str, statuses: tuple[str, ...] = OPEN_STATUSES
) -> int:
    result = await db.execute(
        select(func.count(ServiceRequest.id)).where(
            ServiceRequest.assigned_technician_id == technician_id,
            ServiceRequest.status.in_(statuses),
        )
    )
    return int(result.scalar_one())


# ── Technician ────────────────────────────────────────────

async def create_technician(db: AsyncSession, user_id: str, **fields) -> Technician:
    tech = Technician(user_id=user_id, **fields)
    db.add(tech)
    await db.commit()
    await db.refresh(tech)
    return tech


async def get_technician(db: AsyncSession, technician_id: str) -> Technician | None:
    return await db.get(Technician, technician_id)


async def get_technician_by_user(db: AsyncSession, user_id: str) -> Technician | None:
    result = await db.execute(select(Technician).where(Technician.user_id == user_id))
    return result.scalars().first()


async def get_or_create_technician_profile(db: AsyncSession, user_id: str) -> Technician:
    """Fetch the technician profile for a user, creating a default one on first access."""
    tech = await get_technician_by_user(db, user_id)
    if tech:
        return tech
    return await create_technician(db, user_id=user_id, skills=[], current_jobs=0, assigned_jobs=[])


async def list_technicians(db: AsyncSession, active_only: bool = False) -> list[Technician]:
    stmt = select(Technician)
    if active_only:
        stmt = stmt.where(Technician.active == True)
    result = await db.execute(stmt.order_by(Technician.created_at))
    return list(result.scalars().all())


async def update_technician(db: AsyncSession, tech: Technician, **kwargs) -> Technician:
    for k, v in kwargs.items():
        if v is not None:
            setattr(tech, k, v)
    await db.commit()
    await db.refresh(tech)
    return tech


async def find_technicians_near(
    db: AsyncSession,
    longitude: float,
    latitude: float,
    radius_km: float,
    skill: str | None = None,
) -> list[tuple[Technician, float]]:
    """Active technicians within ``radius_km``, nearest first, as (technician, km) pairs.

    A bounding box narrows the rows in SQL; the exact great-circle distance and
    the skill membership are checked here.
    """
    min_lon, min_lat, max_lon, max_lat = bounding_box(longitude, latitude, radius_km)
    stmt = select(Technician).where(
        Technician.active == True,
        Technician.longitude.is_not(None),
        Technician.latitude.is_not(None),
        Technician.latitude.between(min_lat, max_lat),
    )
    stmt = stmt.where(or_(*(
        Technician.longitude.between(lo, hi) for lo, hi in longitude_ranges(min_lon, max_lon)
    )))
    result = await db.execute(stmt.order_by(Technician.created_at))

    matches = []
    for tech in result.scalars().all():
        if skill is not None and not tech.has_skill(skill):
            continue
        distance = haversine_km(longitude, latitude, tech.longitude, tech.latitude)
        if distance <= radius_km:
            matches.append((tech, distance))
    matches.sort(key=lambda pair: pair[1])
    return matches


async def list_active_technicians_by_load(
    db: AsyncSession, skill: str | None = None
) -> list[Technician]:
    """Active technicians ordered least-busy first, optionally restricted to a skill."""
    result = await db.execute(
        select(Technician)
        .where(Technician.active == True)
        .order_by(Technician.current_jobs, Technician.created_at)
    )
    techs = list(result.scalars().all())
    if skill is not None:
        techs = [t for t in techs if t.has_skill(skill)]
    return techs


# ── Part ──────────────────────────────────────────────────

async def create_part(
    db: AsyncSession, name: str, price: float,
    unit: str = "pcs", stock: int = 0, description: str = "",
) -> Part:
    part = Part(name=name, price=price, unit=unit, stock=stock, description=description)
    db.add(part)
    await db.commit()
    await db.refresh(part)
    return part


async def get_part(db: AsyncSession, part_id: str) -> Part | None:
    return await db.get(Part, part_id)


async def list_parts(db: AsyncSession) -> list[Part]:
    result = await db.execute(select(Part).order_by(Part.name))
    return list(result.scalars().all())
