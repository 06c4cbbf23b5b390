"""Slot scheduler: sequential, non-overlapping packing onto a technician's queue.

An empty queue starts at the technician's start-of-day on the current date;
otherwise the new job starts one break after the last queued job ends. There
is no gap filling and no bounds check against end-of-day or weekly
availability, so a slot may land outside declared hours.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from servicebay.config import SchedulerConfig
from servicebay.errors import PreconditionFailed
from servicebay.models import RequestStatus, ServiceRequest, Technician
from servicebay.services.timeutils import combine, ensure_aware, format_hhmm, js_weekday

logger = logging.getLogger(__name__)


@dataclass
class Slot:
    start: datetime
    end: datetime

    @property
    def day(self) -> date:
        return self.start.date()

    @property
    def start_time(self) -> str:
        return format_hhmm(self.start)

    @property
    def end_time(self) -> str:
        return format_hhmm(self.end)


def day_start_for(tech: Technician, day: date, config: SchedulerConfig | None = None) -> str:
    """Start-of-day "HH:MM": the weekday entry if one exists, else the daily work hours."""
    config = config or SchedulerConfig()
    weekday = js_weekday(day)
    for entry in tech.weekly_availability or []:
        if entry.get("day_of_week") == weekday and entry.get("start"):
            return entry["start"]
    return (tech.work_hours or {}).get("start") or config.default_start


def job_lengths(request: ServiceRequest, config: SchedulerConfig | None = None) -> tuple[int, int]:
    """(job minutes, break minutes) for this request."""
    config = config or SchedulerConfig()
    job, gap = config.job_minutes, config.break_minutes
    if config.use_request_estimates:
        if (request.estimated_duration_mins or 0) > 0:
            job = request.estimated_duration_mins
        if (request.travel_buffer_mins or 0) > 0:
            gap = request.travel_buffer_mins
    return job, gap


def last_job_end(entry: dict) -> datetime:
    """End instant of a queue entry; older entries only carry date + "HH:MM" strings."""
    if entry.get("end"):
        return ensure_aware(datetime.fromisoformat(entry["end"]))
    day = date.fromisoformat(str(entry["date"])[:10])
    end = combine(day, entry["end_time"])
    if entry.get("start_time") and entry["end_time"] <= entry["start_time"]:
        end += timedelta(days=1)
    return end


def compute_slot(
    tech: Technician,
    now: datetime,
    job_minutes: int,
    break_minutes: int,
    config: SchedulerConfig | None = None,
) -> Slot:
    if job_minutes <= 0:
        raise ValueError(f"job length must be positive, got {job_minutes}")

    queue = tech.assigned_jobs or []
    try:
        if not queue:
            today = ensure_aware(now).date()
            start = combine(today, day_start_for(tech, today, config))
        else:
            start = last_job_end(queue[-1]) + timedelta(minutes=break_minutes)
    except (ValueError, KeyError) as e:
        raise PreconditionFailed(
            f"Technician {tech.id} has unreadable hours or queue: {e}"
        ) from e

    return Slot(start=start, end=start + timedelta(minutes=job_minutes))


def queue_entry(request_id: str, slot: Slot) -> dict:
    return {
        "request_id": request_id,
        "date": slot.day.isoformat(),
        "start_time": slot.start_time,
        "end_time": slot.end_time,
        "start": slot.start.isoformat(),
        "end": slot.end.isoformat(),
    }


def apply_schedule(
    request: ServiceRequest, tech: Technician, slot: Slot, actor: str, now: datetime
) -> None:
    """Mutate both aggregates; the caller commits them together."""
    tech.assigned_jobs = [*(tech.assigned_jobs or []), queue_entry(request.id, slot)]
    tech.current_jobs = (tech.current_jobs or 0) + 1

    request.scheduled_start = slot.start
    request.scheduled_end = slot.end
    request.status = RequestStatus.IN_PROGRESS.value
    request.record(f"Scheduled for {slot.start.isoformat()}", actor, now)
    logger.info("Request %s scheduled %s-%s with technician %s",
                request.id, slot.start.isoformat(), slot.end_time, tech.id)
