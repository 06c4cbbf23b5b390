"""End-to-end engine runs against a real (temp-file) SQLite database."""

from datetime import datetime, timezone

import pytest

from servicebay.config import QuoteConfig, SchedulerConfig, SelectorConfig, Settings
from servicebay.errors import (
    NoQuoteToApprove, NoTechnicianAvailable, NotFound, PreconditionFailed,
)
from servicebay.services import automation
from servicebay.services.quoting import quote_breakdown
from tests.factories import NAIROBI, make_part, make_request, make_technician

UTC = timezone.utc


async def _to_in_progress(db, settings, clock, **request_fields):
    req = await make_request(db, **request_fields)
    await automation.assign_job(db, req.id, "manager-1", settings, clock)
    await automation.schedule_job(db, req.id, "manager-1", settings, clock)
    return req


# ── Full lifecycle ────────────────────────────────────────

async def test_full_lifecycle(db, settings, clock):
    tech = await make_technician(db)
    pads = await make_part(db, "Brake pads", 4500.0)
    req = await make_request(db, service_type="brakes", description="brake fluid leak")

    triaged = await automation.triage(db, req.id, "manager-1", settings, clock)
    assert triaged["priority"] == 10

    assigned = await automation.assign_job(db, req.id, "manager-1", settings, clock)
    assert assigned.assigned_technician_id == tech.id
    assert assigned.status == "assigned_pending"
    assert tech.current_jobs == 1

    scheduled = await automation.schedule_job(db, req.id, "manager-1", settings, clock)
    assert scheduled["technician_id"] == tech.id
    assert scheduled["scheduled_at"] == datetime(2025, 3, 17, 8, 0, tzinfo=UTC)
    assert scheduled["scheduled_end"] == datetime(2025, 3, 17, 11, 0, tzinfo=UTC)
    assert tech.current_jobs == 2
    assert [j["request_id"] for j in tech.assigned_jobs] == [req.id]

    reported = await automation.submit_report(
        db, req.id, "tech-1", [{"part_id": pads.id, "quantity": 2}],
        labor_hours=1.5, inspection_notes="Pads worn to backing plate",
        settings=settings, clock=clock,
    )
    assert reported.status == "report_submitted"

    quoted = await automation.generate_quote(db, req.id, settings, clock)
    assert quoted.status == "quoted"
    assert quoted.quote["amount"] == pytest.approx(2 * 4500.0 + 1.5 * 1000.0)
    assert [r["item"] for r in quote_breakdown(quoted.quote)] == ["Brake pads", "Labor"]

    approval = await automation.approve_quote(db, req.id, True, "cust-1", settings, clock)
    assert approval == {"request_id": req.id, "approved": True}

    closed = await automation.close_job(db, req.id, settings, clock)
    assert closed == {"request_id": req.id, "status": "completed"}
    assert tech.current_jobs == 0

    await db.refresh(req)
    assert req.quote["approved"] is True
    assert req.quote["approved_at"] == clock.now().isoformat()
    assert [h["action"] for h in req.history] == [
        "Request created",
        "Triaged as priority 10/10",
        f"Assigned to technician {tech.id}",
        "Scheduled for 2025-03-17T08:00:00+00:00",
        "Report submitted",
        "Quote generated",
        "Quote approved",
        "Job closed",
    ]
    assert [h["by"] for h in req.history] == [
        "cust-1", "manager-1", "manager-1", "manager-1", "tech-1", "system", "cust-1", None,
    ]


async def test_missing_actor_defaults_to_system(db, settings, clock):
    req = await make_request(db)
    await automation.triage(db, req.id, None, settings, clock)
    await db.refresh(req)
    assert req.history[-1]["by"] == "system"


async def test_triage_unknown_request(db, settings, clock):
    with pytest.raises(NotFound):
        await automation.triage(db, "01NOSUCHREQUEST00000000000", "m", settings, clock)


# ── Assignment ────────────────────────────────────────────

async def test_assignment_respects_vehicle_skill(db, settings, clock):
    lon, lat = NAIROBI["longitude"], NAIROBI["latitude"]
    await make_technician(db, "suv-near", skills=["suv"])
    sedan = await make_technician(db, "sedan-far", longitude=lon + 0.1, latitude=lat)
    req = await make_request(db)

    assigned = await automation.assign_job(db, req.id, "m", settings, clock)
    assert assigned.assigned_technician_id == sedan.id


async def test_assignment_prefers_better_score(db, settings, clock):
    lon, lat = NAIROBI["longitude"], NAIROBI["latitude"]
    await make_technician(db, "close-low-rated", longitude=lon + 0.01, rating=1.0)
    best = await make_technician(db, "further-top-rated", longitude=lon + 0.03, rating=5.0)
    req = await make_request(db)

    assigned = await automation.assign_job(db, req.id, "m", settings, clock)
    assert assigned.assigned_technician_id == best.id


async def test_no_skilled_technician_in_radius(db, settings, clock):
    await make_technician(db, "suv-only", skills=["suv"])
    req = await make_request(db)

    with pytest.raises(NoTechnicianAvailable):
        await automation.assign_job(db, req.id, "m", settings, clock)

    await db.refresh(req)
    assert req.status == "new"
    assert req.assigned_technician_id is None
    assert len(req.history) == 1


async def test_fallback_chain_relaxes_skill(db, clock):
    suv = await make_technician(db, "suv-only", skills=["suv"])
    req = await make_request(db)
    settings = Settings(selector=SelectorConfig(fallback_chain=["skill_geo", "geo"]))

    assigned = await automation.assign_job(db, req.id, "m", settings, clock)
    assert assigned.assigned_technician_id == suv.id


async def test_fallback_to_least_busy_without_yard_coordinates(db, clock):
    await make_technician(db, "busy", current_jobs=3)
    idle = await make_technician(db, "idle", current_jobs=0, longitude=None, latitude=None)
    req = await make_request(db, yard={"name": "Unknown yard"})
    settings = Settings(selector=SelectorConfig(fallback_chain=["skill_geo", "least_busy"]))

    assigned = await automation.assign_job(db, req.id, "m", settings, clock)
    assert assigned.assigned_technician_id == idle.id


async def test_simple_assignment_picks_least_busy_skilled(db, settings, clock):
    await make_technician(db, "busy-sedan", current_jobs=4)
    idle_sedan = await make_technician(db, "idle-sedan", current_jobs=1, longitude=None, latitude=None)
    await make_technician(db, "idle-suv", current_jobs=0, skills=["suv"])
    req = await make_request(db)

    result = await automation.assign_technician(db, req.id, "m", settings, clock)
    assert result == {"request_id": req.id, "technician_id": idle_sedan.id}


async def test_simple_assignment_falls_back_to_anyone(db, settings, clock):
    suv = await make_technician(db, "suv-only", skills=["suv"])
    req = await make_request(db)

    result = await automation.assign_technician(db, req.id, "m", settings, clock)
    assert result["technician_id"] == suv.id


async def test_capacity_enforcement(db, clock):
    await make_technician(db, "full", current_jobs=5, max_daily_jobs=5)
    req = await make_request(db)
    request_id = req.id

    advisory = Settings()
    strict = Settings(selector=SelectorConfig(enforce_capacity=True))

    with pytest.raises(NoTechnicianAvailable):
        await automation.assign_job(db, request_id, "m", strict, clock)
    # The failed attempt rolled back, expiring every loaded row.
    assigned = await automation.assign_job(db, request_id, "m", advisory, clock)
    assert assigned.status == "assigned_pending"


async def test_assigning_twice_is_rejected(db, settings, clock):
    await make_technician(db)
    req = await make_request(db)
    await automation.assign_job(db, req.id, "m", settings, clock)

    with pytest.raises(PreconditionFailed):
        await automation.assign_job(db, req.id, "m", settings, clock)


# ── Scheduling ────────────────────────────────────────────

async def test_schedule_requires_assignment(db, settings, clock):
    req = await make_request(db)
    with pytest.raises(PreconditionFailed):
        await automation.schedule_job(db, req.id, "m", settings, clock)


async def test_second_job_starts_after_break(db, settings, clock):
    await make_technician(db)
    first = await make_request(db)
    second = await make_request(db)

    await automation.assign_job(db, first.id, "m", settings, clock)
    a = await automation.schedule_job(db, first.id, "m", settings, clock)
    await automation.assign_job(db, second.id, "m", settings, clock)
    b = await automation.schedule_job(db, second.id, "m", settings, clock)

    assert b["scheduled_at"] >= a["scheduled_end"]
    assert (b["scheduled_at"] - a["scheduled_end"]).total_seconds() == 30 * 60
    assert (b["start_time"], b["end_time"]) == ("11:30", "14:30")


async def test_request_estimates_drive_slot_length(db, clock):
    await make_technician(db)
    settings = Settings(scheduler=SchedulerConfig(use_request_estimates=True))
    req = await make_request(db, estimated_duration_mins=45, travel_buffer_mins=15)
    await automation.assign_job(db, req.id, "m", settings, clock)

    result = await automation.schedule_job(db, req.id, "m", settings, clock)
    assert (result["start_time"], result["end_time"]) == ("08:00", "08:45")


async def test_unreadable_work_hours_fail_scheduling_cleanly(db, settings, clock):
    await make_technician(db, work_hours={"start": "25:00", "end": "17:00"})
    req = await make_request(db)
    request_id = req.id
    await automation.assign_job(db, request_id, "m", settings, clock)

    with pytest.raises(PreconditionFailed):
        await automation.schedule_job(db, request_id, "m", settings, clock)

    await db.refresh(req)
    assert req.status == "assigned_pending"
    assert req.scheduled_start is None


# ── Report + quote ────────────────────────────────────────

async def test_report_with_unknown_part_changes_nothing(db, settings, clock):
    await make_technician(db)
    req = await _to_in_progress(db, settings, clock)

    with pytest.raises(NotFound):
        await automation.submit_report(db, req.id, "tech-1", [{"part_id": "missing", "quantity": 1}],
                                       settings=settings, clock=clock)

    await db.refresh(req)
    assert req.status == "in_progress"
    assert req.parts_used == []


async def test_report_before_work_started(db, settings, clock):
    req = await make_request(db)
    with pytest.raises(PreconditionFailed):
        await automation.submit_report(db, req.id, "tech-1", [], settings=settings, clock=clock)


async def test_auto_quote_on_report(db, clock):
    await make_technician(db)
    settings = Settings(quote=QuoteConfig(auto_quote_on_report=True))
    req = await _to_in_progress(db, settings, clock)

    reported = await automation.submit_report(db, req.id, "tech-1", [], labor_hours=2,
                                              settings=settings, clock=clock)
    assert reported.status == "quoted"
    assert reported.quote["amount"] == 2000.0
    assert [h["action"] for h in reported.history][-2:] == ["Report submitted", "Quote generated"]


async def test_quote_requires_report(db, settings, clock):
    req = await make_request(db)
    with pytest.raises(PreconditionFailed):
        await automation.generate_quote(db, req.id, settings, clock)


async def test_regenerating_quote_replaces_approved_one(db, settings, clock):
    await make_technician(db)
    oil = await make_part(db, "Engine oil", 950.0, unit="liters")
    req = await _to_in_progress(db, settings, clock)
    await automation.submit_report(db, req.id, "tech-1", [{"part_id": oil.id, "quantity": 4}],
                                   settings=settings, clock=clock)
    await automation.generate_quote(db, req.id, settings, clock)
    await automation.approve_quote(db, req.id, True, "cust-1", settings, clock)

    requoted = await automation.generate_quote(db, req.id, settings, clock)
    assert requoted.status == "quoted"
    assert requoted.quote["approved"] is False
    assert requoted.quote["approved_at"] is None
    assert requoted.quote["amount"] == pytest.approx(3800.0)


# ── Approval + close ──────────────────────────────────────

async def test_approve_without_quote_leaves_request_untouched(db, settings, clock):
    req = await make_request(db)

    with pytest.raises(NoQuoteToApprove):
        await automation.approve_quote(db, req.id, True, "cust-1", settings, clock)

    await db.refresh(req)
    assert req.status == "new"
    assert req.version == 1
    assert len(req.history) == 1


async def test_reject_keeps_request_quoted(db, settings, clock):
    await make_technician(db)
    req = await _to_in_progress(db, settings, clock)
    await automation.submit_report(db, req.id, "tech-1", [], labor_hours=1, settings=settings, clock=clock)
    await automation.generate_quote(db, req.id, settings, clock)

    result = await automation.approve_quote(db, req.id, False, "cust-1", settings, clock)
    assert result["approved"] is False

    await db.refresh(req)
    assert req.status == "quoted"
    assert req.quote["approved"] is False
    assert req.history[-1]["action"] == "Quote rejected"


async def test_close_new_request(db, settings, clock):
    req = await make_request(db)
    result = await automation.close_job(db, req.id, settings, clock)
    assert result["status"] == "completed"

    await db.refresh(req)
    assert req.history[-1] == {"action": "Job closed", "by": None, "timestamp": clock.now().isoformat()}


async def test_closing_a_job_keeps_workload_comparable(db, settings, clock):
    x = await make_technician(db, "x", skills=["sedan"])
    y = await make_technician(db, "y", skills=["suv"])
    first = await _to_in_progress(db, settings, clock)
    await _to_in_progress(db, settings, clock)
    await _to_in_progress(db, settings, clock, car_details={"vehicle_type": "suv"})
    assert (x.current_jobs, y.current_jobs) == (4, 2)

    await automation.close_job(db, first.id, settings, clock)

    # One scheduled job left each
    assert x.current_jobs == y.current_jobs == 2
