"""Technician selector: multi-factor scoring behind a configurable fallback chain.

Strategies, tried in the order given until one yields a candidate:

- ``skill_geo``  active, carries the vehicle-type skill, within the search radius; scored
- ``geo``        active, within the search radius; scored (skill filter relaxed)
- ``skill``      active, carries the skill; least busy first
- ``least_busy`` any active technician; least busy first

Scores are lower-is-better. Ties keep the store's nearest-first order, which
is not guaranteed to be stable across databases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from servicebay.config import SelectorConfig
from servicebay.db import crud
from servicebay.errors import NoTechnicianAvailable
from servicebay.models import ServiceRequest, Technician

logger = logging.getLogger(__name__)

GEO_STRATEGIES = ("skill_geo", "geo")
STRATEGIES = ("skill_geo", "geo", "skill", "least_busy")


@dataclass
class ScoreBreakdown:
    distance: float
    earliness: float
    workload: float
    rating: float
    total: float


@dataclass
class Selection:
    technician: Technician
    strategy: str
    distance_km: float | None = None
    score: ScoreBreakdown | None = None


def workload_ratio(tech: Technician) -> float:
    """current_jobs / max_daily_jobs in [0, 1]; a missing capacity counts as fully loaded."""
    if not tech.max_daily_jobs:
        return 1.0
    return min(max(tech.current_jobs or 0, 0) / tech.max_daily_jobs, 1.0)


def score_candidate(
    tech: Technician, distance_km: float, config: SelectorConfig | None = None
) -> ScoreBreakdown:
    config = config or SelectorConfig()
    w = config.weights

    distance = min(distance_km / config.reference_radius_km, 1.0)
    # Placeholder until queue look-ahead exists: every candidate is equally early.
    earliness = config.neutral_earliness
    workload = workload_ratio(tech)
    rating = min(max(tech.rating or 0.0, 0.0), 5.0) / 5.0

    total = (
        w.distance * distance
        + w.earliness * earliness
        + w.workload * workload
        - w.rating * rating
    )
    return ScoreBreakdown(distance, earliness, workload, rating, total)


def rank_candidates(
    candidates: list[tuple[Technician, float]], config: SelectorConfig | None = None
) -> list[tuple[Technician, float, ScoreBreakdown]]:
    """Score (technician, km) pairs; sorted best first, stable for equal scores."""
    scored = [(tech, km, score_candidate(tech, km, config)) for tech, km in candidates]
    # Rounded so weight arithmetic noise does not break exact ties.
    scored.sort(key=lambda row: round(row[2].total, 9))
    return scored


def _yard_point(request: ServiceRequest) -> tuple[float, float] | None:
    yard = request.yard or {}
    lon, lat = yard.get("longitude"), yard.get("latitude")
    if lon is None or lat is None:
        return None
    return float(lon), float(lat)


def _under_capacity(tech: Technician) -> bool:
    return workload_ratio(tech) < 1.0


async def _try_strategy(
    db: AsyncSession, request: ServiceRequest, strategy: str, config: SelectorConfig
) -> Selection | None:
    skill = request.vehicle_type

    if strategy in GEO_STRATEGIES:
        point = _yard_point(request)
        if point is None:
            return None
        if strategy == "skill_geo" and not skill:
            return None
        near = await crud.find_technicians_near(
            db, point[0], point[1], config.search_radius_km,
            skill=skill if strategy == "skill_geo" else None,
        )
        if config.enforce_capacity:
            near = [(t, km) for t, km in near if _under_capacity(t)]
        ranked = rank_candidates(near, config)
        if not ranked:
            return None
        tech, km, score = ranked[0]
        return Selection(technician=tech, strategy=strategy, distance_km=km, score=score)

    if strategy == "skill":
        if not skill:
            return None
        techs = await crud.list_active_technicians_by_load(db, skill=skill)
    elif strategy == "least_busy":
        techs = await crud.list_active_technicians_by_load(db)
    else:
        raise ValueError(f"Unknown selection strategy: {strategy}")

    if config.enforce_capacity:
        techs = [t for t in techs if _under_capacity(t)]
    if not techs:
        return None
    return Selection(technician=techs[0], strategy=strategy)


async def select_technician(
    db: AsyncSession,
    request: ServiceRequest,
    strategies: list[str] | tuple[str, ...],
    config: SelectorConfig | None = None,
) -> Selection:
    """Walk the fallback chain; raise NoTechnicianAvailable if every step comes up empty."""
    config = config or SelectorConfig()
    for strategy in strategies:
        selection = await _try_strategy(db, request, strategy, config)
        if selection is not None:
            if strategy != strategies[0]:
                logger.info("Request %s fell back to '%s' selection", request.id, strategy)
            return selection

    logger.warning("No technician available for request %s (chain=%s)", request.id, list(strategies))
    raise NoTechnicianAvailable(
        f"No technician available for request {request.id}"
    )
