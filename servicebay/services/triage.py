"""Triage scorer: service type + description keywords -> priority 1..10."""

from __future__ import annotations

import logging
from datetime import datetime

from servicebay.config import TriageConfig
from servicebay.models import ServiceRequest

logger = logging.getLogger(__name__)

MIN_PRIORITY = 1
MAX_PRIORITY = 10


def _normalize(text: str | None) -> str:
    # Typographic apostrophes ("won’t start") match the ASCII keyword.
    return (text or "").lower().replace("’", "'")


def compute_priority(
    service_type: str | None,
    description: str | None,
    config: TriageConfig | None = None,
) -> int:
    """Base priority for the service type plus every matching keyword modifier, clamped."""
    config = config or TriageConfig()
    priority = config.base_priorities.get(service_type or "", config.default_priority)

    desc = _normalize(description)
    for keyword, modifier in config.keyword_modifiers.items():
        if _normalize(keyword) in desc:
            priority += modifier

    return max(MIN_PRIORITY, min(priority, MAX_PRIORITY))


def apply_triage(
    request: ServiceRequest,
    actor: str,
    now: datetime,
    config: TriageConfig | None = None,
) -> int:
    """Overwrite the request's priority (never cumulative) and log it to the history."""
    priority = compute_priority(request.service_type, request.description, config)
    request.priority = priority
    request.record(f"Triaged as priority {priority}/10", actor, now)
    logger.info("Request %s triaged as priority %d", request.id, priority)
    return priority
