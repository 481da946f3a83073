"""
Step notifications for a pack run

A run walks a fixed, finite plan of steps. Each step fires exactly once and
strictly in order; subscribers are called synchronously with no backpressure.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Tuple

from .models import PackMode
from .utils import get_logger

logger = get_logger(__name__)


class ProgressStep(str, Enum):
    SCANNING = "Scanning input files"
    COPYING = "Copying files"
    COMPRESSING = "Compressing"
    FINALIZING = "Finalizing and saving archive"
    CLEANING_UP = "Cleaning Up"
    DONE = "Done!"

    @property
    def label(self) -> str:
        return self.value


# Copy mode never touches the archive-only steps
STEP_PLANS: Dict[PackMode, Tuple[ProgressStep, ...]] = {
    PackMode.ARCHIVE: (
        ProgressStep.SCANNING,
        ProgressStep.COPYING,
        ProgressStep.COMPRESSING,
        ProgressStep.FINALIZING,
        ProgressStep.CLEANING_UP,
        ProgressStep.DONE,
    ),
    PackMode.COPY: (
        ProgressStep.SCANNING,
        ProgressStep.COPYING,
        ProgressStep.DONE,
    ),
}


def steps_for_mode(mode: PackMode) -> Tuple[ProgressStep, ...]:
    """Ordered step plan for a pack mode"""
    return STEP_PLANS[mode]


@dataclass(frozen=True)
class ProgressEvent:
    """One fired step: its position in the plan and the plan length"""
    step: ProgressStep
    index: int
    total: int

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressSignal:
    """
    Strictly monotonic step sequence with synchronous subscribers.

    Advancing to anything other than the next planned step raises
    RuntimeError, which makes ordering a checked property of the run.
    """

    def __init__(self, mode: PackMode):
        self.mode = mode
        self.plan: Tuple[ProgressStep, ...] = steps_for_mode(mode)
        self._position = 0
        self._subscribers: List[ProgressCallback] = []
        self.history: List[ProgressEvent] = []

    def subscribe(self, callback: ProgressCallback) -> None:
        self._subscribers.append(callback)

    @property
    def next_step(self):
        if self._position >= len(self.plan):
            return None
        return self.plan[self._position]

    @property
    def finished(self) -> bool:
        return self._position >= len(self.plan)

    def advance(self, step: ProgressStep) -> ProgressEvent:
        """
        Fire the next step

        Args:
            step: The step being entered; must be the next one in the plan

        Returns:
            The ProgressEvent delivered to subscribers
        """
        expected = self.next_step
        if step is not expected:
            raise RuntimeError(
                f"Progress step {step.name} fired out of order (expected "
                f"{expected.name if expected else 'nothing'}, mode {self.mode.value})"
            )

        event = ProgressEvent(step=step, index=self._position, total=len(self.plan))
        self._position += 1
        self.history.append(event)
        logger.debug(f"Step {event.index + 1}/{event.total}: {step.label}")

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Progress subscriber failed on step {step.label!r}")
        return event
