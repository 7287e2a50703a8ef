"""
Saga -- sequential forward steps with compensating actions.

Responsibility:
    Gives multi-row writes an all-or-nothing outcome on a store that only
    offers single-row atomic operations.  Each forward step runs to
    completion before the next one starts; a step may register a
    compensation that undoes it.  On failure the registered compensations
    run in exact reverse order of registration.

Architecture position:
    Kernel > Domain.  Knows nothing about movements or the store; the ledger
    writer supplies the actions as callables.

Invariants enforced:
    - Forward steps never overlap, so the set of registered compensations is
      always a prefix of the completed steps.
    - A compensation registered under a name that is already registered is
      ignored (one bulk delete undoes any number of identical inserts).
    - Compensation stops at the first compensation that fails; the failure
      is raised as CompensationStepError and nothing after it is attempted.

Failure modes:
    - Exceptions from forward actions propagate unchanged; the caller decides
      whether to compensate and how to type the error.
    - CompensationStepError from compensate().
"""

from dataclasses import dataclass, field
from typing import Callable, TypeVar

from stock_kernel.logging_config import get_logger

logger = get_logger("domain.saga")

T = TypeVar("T")


class CompensationStepError(Exception):
    """A compensating action raised while rolling back a saga."""

    def __init__(self, step: str, error: BaseException):
        self.step = step
        self.error = error
        super().__init__(f"Compensation '{step}' failed: {error}")


@dataclass
class Saga:
    """
    Ordered forward steps, each optionally paired with a compensation.

    Usage:
        saga = Saga("record_movement")
        header = saga.step("insert_header", insert, compensation=("delete_header", undo))
        try:
            saga.step("insert_line", insert_line)
        except Exception as exc:
            saga.compensate()
            raise
    """

    name: str
    completed_steps: list[str] = field(default_factory=list)
    compensated_steps: list[str] = field(default_factory=list)
    _compensations: list[tuple[str, Callable[[], None]]] = field(
        default_factory=list, repr=False
    )

    def step(
        self,
        name: str,
        action: Callable[[], T],
        compensation: tuple[str, Callable[[], None]] | None = None,
    ) -> T:
        """
        Run one forward action; register its compensation only on success.
        """
        result = action()
        self.completed_steps.append(name)
        if compensation is not None:
            self.register_compensation(*compensation)
        return result

    def register_compensation(self, name: str, action: Callable[[], None]) -> None:
        if any(existing == name for existing, _ in self._compensations):
            return
        self._compensations.append((name, action))

    @property
    def pending_compensations(self) -> tuple[str, ...]:
        """Names of the compensations compensate() would run, in run order."""
        done = set(self.compensated_steps)
        return tuple(
            name for name, _ in reversed(self._compensations) if name not in done
        )

    def compensate(self) -> None:
        """
        Run the registered compensations in reverse order.

        Raises:
            CompensationStepError: The first compensation that fails.
        """
        for name, action in reversed(self._compensations):
            if name in self.compensated_steps:
                continue
            try:
                action()
            except Exception as exc:
                logger.error(
                    "saga_compensation_failed",
                    extra={
                        "saga": self.name,
                        "step": name,
                        "compensated_steps": list(self.compensated_steps),
                    },
                    exc_info=True,
                )
                raise CompensationStepError(name, exc) from exc
            self.compensated_steps.append(name)
            logger.info(
                "saga_step_compensated",
                extra={"saga": self.name, "step": name},
            )
