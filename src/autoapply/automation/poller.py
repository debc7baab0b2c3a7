"""Caller-side adaptive polling of submission status.

The polling phase is a pure function of the poll count, looked up in an
immutable schedule:

    polls 1-10   fast    (2s between polls)
    polls 11-20  slow    (5s between polls)
    polls 21+    manual  (no automatic polling; call ``refresh``)
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from autoapply.automation.backends.simulation import SIMULATED_CONFIRMATION
from autoapply.automation.status import ApplicationStatus, StatusReport
from autoapply.config import Settings, get_settings
from autoapply.exceptions import PollingNotFoundError

logger = logging.getLogger(__name__)


class PollingPhase(str, Enum):
    FAST = "fast"
    SLOW = "slow"
    MANUAL = "manual"


PHASE_MESSAGES = {
    PollingPhase.FAST: "Quick check mode",
    PollingPhase.SLOW: "Extended check mode",
    PollingPhase.MANUAL: "Manual refresh available",
}


@dataclass(frozen=True)
class PhaseRule:
    phase: PollingPhase
    last_poll: int | None
    interval_ms: int | None


@dataclass(frozen=True)
class PollingSchedule:
    """Immutable poll-count -> phase table."""

    rules: tuple[PhaseRule, ...]

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollingSchedule":
        fast_limit = settings.poll_fast_limit
        slow_limit = max(settings.poll_slow_limit, fast_limit)
        return cls(
            rules=(
                PhaseRule(PollingPhase.FAST, fast_limit, settings.poll_fast_interval_ms),
                PhaseRule(PollingPhase.SLOW, slow_limit, settings.poll_slow_interval_ms),
                PhaseRule(PollingPhase.MANUAL, None, None),
            )
        )

    def rule_for(self, poll_count: int) -> PhaseRule:
        for rule in self.rules:
            if rule.last_poll is None or poll_count <= rule.last_poll:
                return rule
        return self.rules[-1]

    def phase_for(self, poll_count: int) -> PollingPhase:
        return self.rule_for(poll_count).phase

    def delay_after(self, poll_count: int) -> float | None:
        """Seconds to wait after poll ``poll_count``; None stops automatic polling."""
        interval_ms = self.rule_for(poll_count).interval_ms
        return None if interval_ms is None else interval_ms / 1000


class StatusSource(Protocol):
    async def fetch(self, application_id: str) -> StatusReport:
        ...

    async def cancel(self, application_id: str) -> bool:
        ...


class PollerState(BaseModel):
    """What the caller sees after each poll."""

    application_id: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    phase: PollingPhase = PollingPhase.FAST
    phase_message: str = PHASE_MESSAGES[PollingPhase.FAST]
    poll_count: int = 0
    consecutive_misses: int = 0
    progress: int = 0
    current_step: str | None = None
    error: str | None = None
    screenshot_url: str | None = None
    result_message: str | None = None
    elapsed_seconds: int = 0
    cancelled: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            ApplicationStatus.COMPLETED,
            ApplicationStatus.FAILED,
            ApplicationStatus.NOT_FOUND,
        )


class ProgressPoller:
    """Polls a status source until the application reaches a terminal state.

    Usage:
        poller = ProgressPoller(HttpStatusClient(), application_id, on_update=render)
        poller.start()
        state = await poller.wait()
    """

    def __init__(
        self,
        source: StatusSource,
        application_id: str,
        on_update: Callable[[PollerState], None] | None = None,
        schedule: PollingSchedule | None = None,
        max_misses: int | None = None,
        simulation_delay: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self.source = source
        self.application_id = application_id
        self.on_update = on_update
        self.schedule = schedule or PollingSchedule.from_settings(settings)
        self.max_misses = max_misses or settings.poll_max_not_found
        self.simulation_delay = (
            simulation_delay if simulation_delay is not None else settings.simulation_delay_seconds
        )
        self._clock = clock
        self._sleep = sleep

        self.state = PollerState(application_id=application_id)
        self._started_at: float | None = None
        self._task: asyncio.Task | None = None
        self._inflight: asyncio.Task | None = None
        self._cancelled = False

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return int(self._clock() - self._started_at)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start automatic polling in the background."""
        return self._launch(self._loop())

    def simulate(self) -> asyncio.Task:
        """Report a simulated submission instead of polling."""
        return self._launch(self._simulate())

    async def wait(self) -> PollerState:
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                if not self._cancelled:
                    raise
        return self.state

    async def result(self) -> PollerState:
        """Wait for the poller to stop.

        Raises:
            PollingNotFoundError: If the application was never found
        """
        state = await self.wait()
        if state.status == ApplicationStatus.NOT_FOUND:
            raise PollingNotFoundError(self.application_id, state.consecutive_misses)
        return state

    async def refresh(self) -> PollerState:
        """Poll once on demand (used in the manual phase)."""
        if self._started_at is None:
            self._started_at = self._clock()
        if not self._cancelled and not self.state.is_terminal:
            await self._poll_once()
        return self.state

    async def cancel(self) -> None:
        """Abort the in-flight request, stop polling and cancel the submission.

        No callbacks are delivered after this returns.
        """
        if self._cancelled:
            return
        self._cancelled = True
        self.state = self.state.model_copy(update={"cancelled": True})

        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        cancelled = await self.source.cancel(self.application_id)
        logger.info(f"Polling for {self.application_id} cancelled (submission cancelled: {cancelled})")

    # =========================================================================
    # Internals
    # =========================================================================

    def _launch(self, coro) -> asyncio.Task:
        if self.running:
            raise RuntimeError("Poller is already running")
        self._started_at = self._clock()
        self._task = asyncio.create_task(coro, name=f"poller-{self.application_id}")
        return self._task

    async def _loop(self) -> None:
        while not self._cancelled:
            await self._poll_once()
            if self._cancelled or self.state.is_terminal:
                return
            delay = self.schedule.delay_after(self.state.poll_count)
            if delay is None:
                logger.info(f"Automatic polling stopped for {self.application_id}; manual refresh available")
                return
            await self._sleep(delay)

    async def _poll_once(self) -> None:
        poll_count = self.state.poll_count + 1
        phase = self.schedule.phase_for(poll_count)

        self._inflight = asyncio.ensure_future(self.source.fetch(self.application_id))
        try:
            report: StatusReport | None = await self._inflight
        except asyncio.CancelledError:
            if self._cancelled:
                return
            raise
        except Exception as e:
            logger.warning(f"Status poll {poll_count} for {self.application_id} failed: {e}")
            report = None
        finally:
            self._inflight = None

        if self._cancelled:
            return

        update = {
            "poll_count": poll_count,
            "phase": phase,
            "phase_message": PHASE_MESSAGES[phase],
            "elapsed_seconds": self.elapsed_seconds,
        }
        if report is None or report.status == ApplicationStatus.NOT_FOUND:
            misses = self.state.consecutive_misses + 1
            update["consecutive_misses"] = misses
            if misses >= self.max_misses or phase == PollingPhase.MANUAL:
                logger.warning(f"Application {self.application_id} not found after {misses} attempts")
                update["status"] = ApplicationStatus.NOT_FOUND
                update["error"] = "Application record not available. Please retry or refresh."
        else:
            update.update(
                consecutive_misses=0,
                status=report.status,
                progress=report.progress,
                current_step=report.current_step or "Processing...",
                screenshot_url=report.screenshot_url,
            )
            if report.status == ApplicationStatus.COMPLETED:
                update["result_message"] = "Application submitted successfully!"
            elif report.status == ApplicationStatus.FAILED:
                update["error"] = report.error_message or "Application submission failed"

        self.state = self.state.model_copy(update=update)
        self._emit()

    async def _simulate(self) -> None:
        self.state = self.state.model_copy(
            update={
                "status": ApplicationStatus.PROCESSING,
                "progress": 20,
                "current_step": "Simulating application process...",
            }
        )
        self._emit()
        await self._sleep(self.simulation_delay)
        if self._cancelled:
            return
        self.state = self.state.model_copy(
            update={
                "status": ApplicationStatus.COMPLETED,
                "progress": 100,
                "current_step": "Application simulated successfully",
                "result_message": SIMULATED_CONFIRMATION,
                "elapsed_seconds": self.elapsed_seconds,
            }
        )
        self._emit()

    def _emit(self) -> None:
        if self._cancelled or self.on_update is None:
            return
        self.on_update(self.state)
