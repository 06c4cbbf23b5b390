"""CLI for servicebay: create tables, seed demo data, run engine steps by hand."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from servicebay.config import cached_settings
from servicebay.errors import ServiceError


async def cmd_init_db(args):
    from servicebay.db.engine import create_all

    await create_all()
    print("Tables created.")


async def cmd_seed(args):
    """Create demo technicians around Nairobi and a small parts catalog."""
    from servicebay.db.engine import create_all, async_session_factory
    from servicebay.db import crud

    await create_all()

    async with async_session_factory() as db:
        existing = await crud.list_technicians(db)
        if any(t.user_id == "demo-tech-1" for t in existing):
            print("Demo data already exists, skipping seed.")
            return

        techs = [
            ("demo-tech-1", "Wanjiru K.", 36.8219, -1.2921, ["sedan", "suv"], 4.8),
            ("demo-tech-2", "Otieno M.", 36.8065, -1.2833, ["suv", "heavy"], 4.2),
            ("demo-tech-3", "Achieng O.", 36.9000, -1.3100, ["sedan"], 3.9),
        ]
        for user_id, name, lon, lat, skills, rating in techs:
            tech = await crud.create_technician(
                db, user_id=user_id, name=name, longitude=lon, latitude=lat,
                skills=skills, rating=rating, assigned_jobs=[],
            )
            print(f"Created technician: {tech.name} (id: {tech.id})")

        for name, price, unit in [
            ("Brake pads (front)", 4500.0, "set"),
            ("Brake fluid DOT4", 1200.0, "liters"),
            ("Engine oil 5W-30", 950.0, "liters"),
            ("Oil filter", 800.0, "pcs"),
        ]:
            part = await crud.create_part(db, name=name, price=price, unit=unit, stock=20)
            print(f"Created part: {part.name} @ {part.price:.2f} (id: {part.id})")

    print("\nSeed complete.")


async def cmd_step(args):
    """Run one engine step against a request id and print the JSON result."""
    from servicebay.db.engine import async_session_factory
    from servicebay.services import automation

    async with async_session_factory() as db:
        if args.command == "triage":
            result = await automation.triage(db, args.request_id, args.user)
        elif args.command == "assign" and args.simple:
            result = await automation.assign_technician(db, args.request_id, args.user)
        elif args.command == "assign":
            req = await automation.assign_job(db, args.request_id, args.user)
            result = {"request_id": req.id, "technician_id": req.assigned_technician_id}
        elif args.command == "schedule":
            result = await automation.schedule_job(db, args.request_id, args.user)
        elif args.command == "quote":
            req = await automation.generate_quote(db, args.request_id)
            result = {"request_id": req.id, "quote": req.quote}
        elif args.command == "approve":
            result = await automation.approve_quote(db, args.request_id, not args.reject, args.user)
        else:
            result = await automation.close_job(db, args.request_id)

    print(json.dumps(result, indent=2, default=str))


def main():
    parser = argparse.ArgumentParser(description="servicebay CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create database tables")
    subparsers.add_parser("seed", help="Seed demo technicians and parts")

    for name, help_text in [
        ("triage", "Compute a request's priority"),
        ("assign", "Assign a technician to a request"),
        ("schedule", "Schedule an assigned request"),
        ("quote", "Generate a quote from the field report"),
        ("approve", "Approve (or --reject) the current quote"),
        ("close", "Close a job"),
    ]:
        sp = subparsers.add_parser(name, help=help_text)
        sp.add_argument("request_id", help="Service request id")
        sp.add_argument("--user", default=None, help="Acting user id (defaults to 'system')")
        if name == "assign":
            sp.add_argument("--simple", action="store_true", help="Least-busy assignment, no geo scoring")
        if name == "approve":
            sp.add_argument("--reject", action="store_true", help="Reject instead of approve")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, cached_settings().log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "seed":
        asyncio.run(cmd_seed(args))
    else:
        try:
            asyncio.run(cmd_step(args))
        except ServiceError as e:
            print(f"{e.kind}: {e.message}")
            sys.exit(2)


if __name__ == "__main__":
    main()
