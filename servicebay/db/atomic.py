"""Single-commit unit of work with abort-and-retry on optimistic-lock conflicts.

A unit of work mutates a request and (for assignment/scheduling) a technician
inside one session and commits once, so a reader never sees one document
updated without the other. Versioned rows make a concurrent writer's flush
fail with ``StaleDataError``; the work is then rolled back and replayed
against fresh state, re-checking its preconditions.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from servicebay.errors import ConcurrencyConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_atomic(
    db: AsyncSession,
    work: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    label: str = "unit of work",
) -> T:
    """Run ``work`` and commit; roll back on any failure, retry on version conflicts."""
    attempt = 0
    while True:
        attempt += 1
        try:
            result = await work()
            await db.commit()
            return result
        except StaleDataError as e:
            await db.rollback()
            if attempt >= max_attempts:
                raise ConcurrencyConflict(
                    f"{label} lost {attempt} optimistic-lock races; giving up"
                ) from e
            logger.warning("%s hit a version conflict (attempt %d/%d), retrying",
                           label, attempt, max_attempts)
        except Exception:
            await db.rollback()
            raise
