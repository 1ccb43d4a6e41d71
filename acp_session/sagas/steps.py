"""Ordered steps with compensation.

A StepRunner executes steps strictly in sequence. When a step raises, the
compensations of the steps that already completed run in reverse order, then
the failure is reported as StepFailedError.

Contract:
- Inputs: Ordered Step definitions
- Outputs: StepContext holding each step's result by name
- Side Effects: Whatever the steps and their compensations do
"""

import inspect
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from ..errors import StepFailedError

logger = logging.getLogger(__name__)


class StepContext:
    """Shared state passed to every step of one run."""

    def __init__(self) -> None:
        self.results: dict[str, Any] = {}
        self.halted = False

    def halt(self) -> None:
        """Stop after the current step without running the remaining ones."""
        self.halted = True

    def __getitem__(self, name: str) -> Any:
        return self.results[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.results.get(name, default)


StepFn = Callable[[StepContext], Any | Awaitable[Any]]
CompensateFn = Callable[[Any], Any | Awaitable[Any]]


@dataclass
class Step:
    """Single named step.

    Attributes:
        name: Step name, used for results, logging and error reporting
        run: Forward action, sync or async, receives the StepContext
        compensate: Optional undo action, receives the step's result
    """

    name: str
    run: StepFn
    compensate: CompensateFn | None = None


@dataclass
class _Completed:
    step: Step
    result: Any = field(default=None)


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class StepRunner:
    """Runs steps in order and unwinds completed ones on failure.

    Example:
        >>> runner = StepRunner("apply_snapshot")
        >>> context = await runner.run([Step("a", lambda ctx: 1), Step("b", lambda ctx: ctx["a"] + 1)])
        >>> context["b"]
        2
    """

    def __init__(self, name: str = "steps") -> None:
        self.name = name

    async def run(self, steps: Sequence[Step], context: StepContext | None = None) -> StepContext:
        """Execute steps in order.

        Args:
            steps: Steps to run
            context: Optional context to continue from

        Returns:
            Context with the result of every step that ran

        Raises:
            StepFailedError: A step raised; completed steps were compensated
        """
        context = context or StepContext()
        completed: list[_Completed] = []

        logger.debug(f"Starting {self.name} ({len(steps)} steps)")

        for step in steps:
            if context.halted:
                logger.debug(f"{self.name} halted before step: {step.name}")
                break

            logger.debug(f"Executing step: {step.name}")
            try:
                result = await _call(step.run, context)
            except Exception as e:
                logger.error(f"{self.name} failed at step {step.name}: {e}")
                await self._unwind(completed)
                raise StepFailedError(step.name, str(e)) from e

            context.results[step.name] = result
            completed.append(_Completed(step=step, result=result))
            logger.debug(f"Step completed: {step.name}")

        logger.debug(f"{self.name} completed ({len(completed)} steps)")
        return context

    async def _unwind(self, completed: list[_Completed]) -> None:
        for done in reversed(completed):
            if done.step.compensate is None:
                continue
            logger.debug(f"Compensating step: {done.step.name}")
            try:
                await _call(done.step.compensate, done.result)
            except Exception as e:
                # Keep unwinding the remaining steps
                logger.error(f"Compensation failed for step {done.step.name}: {e}")
