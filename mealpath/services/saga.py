"""Saga runner: ordered steps with compensating actions.

Each step pairs a forward action with an optional compensation. When a
step fails, the compensations of every step that already succeeded run in
reverse order. Compensations retry transient failures with exponential
backoff and are logged, never re-raised, once attempts run out; the
failure that aborted the saga is always what the caller sees.

Example:
    saga = Saga("register")
    saga.add_step("persist_account", create_account, delete_account)
    saga.add_step("issue_token", issue)
    context = saga.execute({"command": cmd})
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)

# Failures a compensation may hit that are worth another attempt.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (OperationalError, OSError)

Action = Callable[[dict[str, Any]], Any]
Compensation = Callable[[dict[str, Any], Any], None]


class SagaState(str, Enum):
    """Saga execution states."""

    pending = "pending"
    running = "running"
    completed = "completed"
    compensating = "compensating"
    compensated = "compensated"


class StepStatus(str, Enum):
    """Step execution status."""

    pending = "pending"
    completed = "completed"
    failed = "failed"
    compensated = "compensated"
    compensation_failed = "compensation_failed"


class SagaStep:
    """A forward action and the compensation that semantically undoes it."""

    def __init__(
        self,
        name: str,
        action: Action,
        compensation: Compensation | None = None,
    ) -> None:
        self.name = name
        self.action = action
        self.compensation = compensation
        self.status = StepStatus.pending
        self.result: Any = None


class Saga:
    """Runs steps in order and unwinds completed ones on failure.

    Attributes:
        saga_id: Correlation id carried into every log line.
        max_attempts: Attempts per compensation before giving up.
        base_delay: Initial backoff delay in seconds (doubles per retry).
    """

    def __init__(
        self,
        name: str,
        saga_id: str | None = None,
        max_attempts: int = 3,
        base_delay: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.name = name
        self.saga_id = saga_id or str(uuid4())
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self.steps: list[SagaStep] = []
        self.state = SagaState.pending

    def add_step(
        self,
        name: str,
        action: Action,
        compensation: Compensation | None = None,
    ) -> "Saga":
        """Append a step; returns self for chaining."""
        self.steps.append(SagaStep(name, action, compensation))
        return self

    def execute(self, context: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run every step, storing each result in ``context[step.name]``.

        Returns:
            The shared context after all steps completed.

        Raises:
            Exception: The exception raised by the failing step, after
                compensations have run.
        """
        context = context if context is not None else {}
        context.setdefault("saga_id", self.saga_id)
        self.state = SagaState.running
        completed: list[SagaStep] = []

        for step in self.steps:
            try:
                step.result = step.action(context)
            except Exception as exc:
                step.status = StepStatus.failed
                logger.info(
                    "Saga %s [%s] step '%s' failed: %s",
                    self.name, self.saga_id, step.name, exc,
                )
                self._compensate(completed, context)
                raise
            step.status = StepStatus.completed
            context[step.name] = step.result
            completed.append(step)
            logger.debug("Saga %s [%s] step '%s' completed", self.name, self.saga_id, step.name)

        self.state = SagaState.completed
        return context

    def _compensate(self, completed: list[SagaStep], context: dict[str, Any]) -> None:
        self.state = SagaState.compensating
        for step in reversed(completed):
            if step.compensation is None:
                continue
            if self._run_compensation(step, context):
                step.status = StepStatus.compensated
            else:
                step.status = StepStatus.compensation_failed
        self.state = SagaState.compensated

    def _run_compensation(self, step: SagaStep, context: dict[str, Any]) -> bool:
        delay = self.base_delay
        for attempt in range(1, self.max_attempts + 1):
            try:
                step.compensation(context, step.result)
                logger.info(
                    "Saga %s [%s] compensated step '%s'", self.name, self.saga_id, step.name
                )
                return True
            except TRANSIENT_ERRORS as e:
                if attempt < self.max_attempts:
                    logger.warning(
                        "Saga %s [%s] compensation '%s' attempt %d/%d failed, retrying: %s",
                        self.name, self.saga_id, step.name, attempt, self.max_attempts, e,
                    )
                    self._sleep(delay)
                    delay *= 2
                    continue
                logger.error(
                    "Saga %s [%s] compensation '%s' exhausted %d attempts: %s",
                    self.name, self.saga_id, step.name, self.max_attempts, e,
                )
            except Exception as e:
                logger.error(
                    "Saga %s [%s] compensation '%s' failed permanently: %s",
                    self.name, self.saga_id, step.name, e,
                )
            return False
        return False
