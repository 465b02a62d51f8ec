"""
Settlement — a checkout run as compensated steps.

Each successful step may record a compensator. When a later step fails,
rollback() runs the recorded compensators in reverse, so a charge that
could not be tied to a completed order is released again.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from kungfu import Result, Ok, Error

logger = logging.getLogger(__name__)

type Compensator[T] = Callable[[T], Awaitable[None]]
"""Undo action; receives the value its step produced. Raises on failure."""


class CompensationFailed(Exception):
    """Raised by a compensator that could not undo its step."""


@dataclass(frozen=True, slots=True)
class RollbackReport:
    compensators_run: int
    compensators_failed: int

    @property
    def complete(self) -> bool:
        return self.compensators_failed == 0


class Settlement:
    def __init__(self, name: str) -> None:
        self.name = name
        self.steps_executed = 0
        self._compensators: list[tuple[Any, Compensator[Any]]] = []

    async def step[T, E](
        self,
        action: Awaitable[Result[T, E]],
        compensate: Compensator[T] | None = None,
    ) -> Result[T, E]:
        """Run one step, recording its compensator on success."""
        result = await action
        self.steps_executed += 1
        match result:
            case Ok(value):
                if compensate is not None:
                    self._compensators.append((value, compensate))
                return Ok(value)
            case Error(e):
                return Error(e)

    async def rollback(self) -> RollbackReport:
        """Run recorded compensators in reverse. Failures are counted, not raised."""
        comp_run = 0
        comp_failed = 0

        for value, comp in reversed(self._compensators):
            try:
                await comp(value)
                comp_run += 1
            except Exception:
                logger.exception("%s: compensation step failed", self.name)
                comp_failed += 1

        self._compensators.clear()
        return RollbackReport(comp_run, comp_failed)


__all__ = ("Compensator", "CompensationFailed", "RollbackReport", "Settlement")
