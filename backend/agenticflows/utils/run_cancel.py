"""Run cancellation — in-process registry of cancellation events.

A workflow execution started with a ``run_id`` registers an
``asyncio.Event`` here.  The executor checks it between node invocations,
so a cancel request takes effect at the next node boundary; the remote call
in flight is allowed to finish.

Usage:
    # In the cancel API endpoint:
    mark_cancelled(run_id)

    # In the executor loop (fast synchronous check):
    if is_cancelled(run_id):
        ...stop and return the partial result set
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger("agenticflows.run_cancel")

_events: dict[str, asyncio.Event] = {}


class RunAlreadyRegisteredError(ValueError):
    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Run '{run_id}' is already executing")


def register(run_id: str) -> None:
    """Create a fresh (unset) cancellation event for *run_id*.

    Raises ``RunAlreadyRegisteredError`` while another execution holds the id.
    """
    if run_id in _events:
        raise RunAlreadyRegisteredError(run_id)
    _events[run_id] = asyncio.Event()
    logger.debug("Cancel registry: registered run %s", run_id)


def mark_cancelled(run_id: str) -> bool:
    """Signal cancellation for *run_id*.

    Returns False when the run is not registered (unknown or already finished).
    """
    event = _events.get(run_id)
    if event is None:
        logger.debug("Cancel registry: run %s not in registry (already finished?)", run_id)
        return False
    event.set()
    logger.info("Cancel registry: signalled run %s", run_id)
    return True


def is_cancelled(run_id: str) -> bool:
    """Return True if a cancellation signal has been set for *run_id*."""
    event = _events.get(run_id)
    return event is not None and event.is_set()


def is_registered(run_id: str) -> bool:
    return run_id in _events


def deregister(run_id: str) -> None:
    """Remove the event for *run_id* (call in the finally block of an execution)."""
    _events.pop(run_id, None)
    logger.debug("Cancel registry: deregistered run %s", run_id)
