"""Tests for adaptive status polling."""

import asyncio
import dataclasses

import pytest

from autoapply.automation.backends.simulation import SIMULATED_CONFIRMATION
from autoapply.automation.poller import PollingPhase, PollingSchedule, ProgressPoller
from autoapply.automation.status import ApplicationStatus, StatusReport
from autoapply.config import Settings
from autoapply.exceptions import PollingNotFoundError

APP_ID = "0b9d4c0e-6a57-4d8e-9a43-2f1f7f6f2a10"

PROCESSING = StatusReport(status=ApplicationStatus.PROCESSING, progress=50, current_step="Optimizing resume...")
NOT_FOUND = StatusReport.not_found(APP_ID, "Application not found")
COMPLETED = StatusReport(status=ApplicationStatus.COMPLETED, progress=100, current_step="Done")


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordedSleep:
    """Sleep replacement that records delays and advances the fake clock."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.clock.now += delay
        await asyncio.sleep(0)


class ScriptedSource:
    """Status source replaying scripted responses; the last one repeats."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.fetches = 0
        self.cancelled: list[str] = []

    async def fetch(self, application_id: str) -> StatusReport:
        self.fetches += 1
        item = self.responses[min(self.fetches, len(self.responses)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    async def cancel(self, application_id: str) -> bool:
        self.cancelled.append(application_id)
        return True


class BlockingSource(ScriptedSource):
    """Status source whose fetch never returns."""

    def __init__(self):
        super().__init__(PROCESSING)
        self.fetch_started = asyncio.Event()
        self.fetch_cancelled = False

    async def fetch(self, application_id: str) -> StatusReport:
        self.fetches += 1
        self.fetch_started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.fetch_cancelled = True
            raise


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep(clock):
    return RecordedSleep(clock)


@pytest.fixture
def make_poller(clock, sleep):
    def build(source, **kwargs) -> tuple[ProgressPoller, list]:
        states = []
        poller = ProgressPoller(
            source,
            APP_ID,
            on_update=states.append,
            schedule=PollingSchedule.from_settings(Settings(_env_file=None)),
            max_misses=3,
            clock=clock,
            sleep=sleep,
            **kwargs,
        )
        return poller, states

    return build


class TestPollingSchedule:
    """Tests for the poll-count phase table."""

    def test_phase_boundaries(self):
        schedule = PollingSchedule.from_settings(Settings(_env_file=None))

        assert schedule.phase_for(1) == PollingPhase.FAST
        assert schedule.phase_for(10) == PollingPhase.FAST
        assert schedule.phase_for(11) == PollingPhase.SLOW
        assert schedule.phase_for(20) == PollingPhase.SLOW
        assert schedule.phase_for(21) == PollingPhase.MANUAL
        assert schedule.phase_for(500) == PollingPhase.MANUAL

    def test_delays(self):
        schedule = PollingSchedule.from_settings(Settings(_env_file=None))

        assert schedule.delay_after(1) == 2.0
        assert schedule.delay_after(10) == 2.0
        assert schedule.delay_after(11) == 5.0
        assert schedule.delay_after(20) == 5.0
        assert schedule.delay_after(21) is None

    def test_schedule_is_immutable(self):
        schedule = PollingSchedule.from_settings(Settings(_env_file=None))

        with pytest.raises(dataclasses.FrozenInstanceError):
            schedule.rules = ()


class TestAutomaticPolling:
    """Tests for the background polling loop."""

    @pytest.mark.asyncio
    async def test_backoff_then_manual(self, make_poller, sleep):
        source = ScriptedSource(PROCESSING)
        poller, states = make_poller(source)

        await poller.start()

        assert sleep.delays == [2.0] * 10 + [5.0] * 10
        assert source.fetches == 21
        assert poller.state.poll_count == 21
        assert poller.state.phase == PollingPhase.MANUAL
        assert poller.state.phase_message == "Manual refresh available"
        assert poller.state.status == ApplicationStatus.PROCESSING
        assert poller.state.is_terminal is False
        assert poller.running is False
        assert [s.phase_message for s in states[:1]] == ["Quick check mode"]
        assert states[10].phase_message == "Extended check mode"

    @pytest.mark.asyncio
    async def test_completed_stops_polling(self, make_poller, sleep):
        poller, states = make_poller(ScriptedSource(PROCESSING, PROCESSING, COMPLETED))

        poller.start()
        state = await poller.wait()

        assert state.status == ApplicationStatus.COMPLETED
        assert state.poll_count == 3
        assert state.progress == 100
        assert state.result_message == "Application submitted successfully!"
        assert sleep.delays == [2.0, 2.0]
        assert state.elapsed_seconds == 4
        assert len(states) == 3

    @pytest.mark.asyncio
    async def test_failed_stops_polling(self, make_poller):
        failed = StatusReport(status=ApplicationStatus.FAILED, error_message="Captcha required")
        poller, _ = make_poller(ScriptedSource(PROCESSING, failed))

        poller.start()
        state = await poller.wait()

        assert state.status == ApplicationStatus.FAILED
        assert state.error == "Captcha required"
        assert state.poll_count == 2

    @pytest.mark.asyncio
    async def test_failed_without_message(self, make_poller):
        poller, _ = make_poller(ScriptedSource(StatusReport(status=ApplicationStatus.FAILED)))

        poller.start()
        state = await poller.wait()

        assert state.error == "Application submission failed"

    @pytest.mark.asyncio
    async def test_missing_step_defaults(self, make_poller):
        poller, states = make_poller(
            ScriptedSource(StatusReport(status=ApplicationStatus.PROCESSING, progress=10), COMPLETED)
        )

        poller.start()
        await poller.wait()

        assert states[0].current_step == "Processing..."


class TestMisses:
    """Tests for not_found handling."""

    @pytest.mark.asyncio
    async def test_three_consecutive_misses(self, make_poller):
        poller, states = make_poller(ScriptedSource(NOT_FOUND))

        poller.start()
        state = await poller.wait()

        assert state.status == ApplicationStatus.NOT_FOUND
        assert state.poll_count == 3
        assert state.consecutive_misses == 3
        assert state.error == "Application record not available. Please retry or refresh."
        assert [s.status for s in states[:2]] == [ApplicationStatus.PENDING, ApplicationStatus.PENDING]

    @pytest.mark.asyncio
    async def test_result_raises_not_found(self, make_poller):
        poller, _ = make_poller(ScriptedSource(NOT_FOUND))

        poller.start()

        with pytest.raises(PollingNotFoundError) as exc_info:
            await poller.result()
        assert exc_info.value.misses == 3

    @pytest.mark.asyncio
    async def test_found_resets_misses(self, make_poller):
        poller, _ = make_poller(ScriptedSource(NOT_FOUND, NOT_FOUND, PROCESSING, NOT_FOUND, NOT_FOUND, COMPLETED))

        poller.start()
        state = await poller.wait()

        assert state.status == ApplicationStatus.COMPLETED
        assert state.poll_count == 6

    @pytest.mark.asyncio
    async def test_exceptions_count_as_misses(self, make_poller):
        poller, _ = make_poller(ScriptedSource(RuntimeError("connection refused")))

        poller.start()
        state = await poller.wait()

        assert state.status == ApplicationStatus.NOT_FOUND
        assert state.poll_count == 3

    @pytest.mark.asyncio
    async def test_single_miss_in_manual_phase(self, make_poller):
        poller, _ = make_poller(ScriptedSource(*([PROCESSING] * 20), NOT_FOUND))

        poller.start()
        state = await poller.wait()

        assert state.poll_count == 21
        assert state.consecutive_misses == 1
        assert state.status == ApplicationStatus.NOT_FOUND


class TestManualRefresh:
    """Tests for on-demand polling."""

    @pytest.mark.asyncio
    async def test_refresh_after_manual(self, make_poller):
        poller, _ = make_poller(ScriptedSource(*([PROCESSING] * 21), COMPLETED))

        poller.start()
        await poller.wait()
        state = await poller.refresh()

        assert state.status == ApplicationStatus.COMPLETED
        assert state.poll_count == 22
        assert state.phase == PollingPhase.MANUAL

    @pytest.mark.asyncio
    async def test_refresh_after_terminal_does_not_poll(self, make_poller):
        source = ScriptedSource(COMPLETED)
        poller, _ = make_poller(source)

        poller.start()
        await poller.wait()
        await poller.refresh()

        assert source.fetches == 1

    @pytest.mark.asyncio
    async def test_refresh_without_start(self, make_poller):
        poller, states = make_poller(ScriptedSource(PROCESSING))

        state = await poller.refresh()

        assert state.poll_count == 1
        assert len(states) == 1


class TestCancellation:
    """Tests for tearing a poller down."""

    @pytest.mark.asyncio
    async def test_cancel_aborts_inflight_request(self, make_poller):
        source = BlockingSource()
        poller, states = make_poller(source)

        poller.start()
        await asyncio.wait_for(source.fetch_started.wait(), timeout=5)
        await poller.cancel()
        state = await poller.wait()

        assert source.fetch_cancelled is True
        assert source.cancelled == [APP_ID]
        assert state.cancelled is True
        assert states == []
        assert poller.running is False

    @pytest.mark.asyncio
    async def test_cancel_during_sleep(self, make_poller, clock):
        never = asyncio.Event()
        sleeps = []

        async def blocking_sleep(delay):
            sleeps.append(delay)
            await never.wait()

        source = ScriptedSource(PROCESSING)
        poller = ProgressPoller(source, APP_ID, clock=clock, sleep=blocking_sleep, max_misses=3)
        states = []
        poller.on_update = states.append

        poller.start()
        while not sleeps:
            await asyncio.sleep(0)
        await poller.cancel()
        await poller.wait()

        assert len(states) == 1
        assert source.fetches == 1
        assert source.cancelled == [APP_ID]

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self, make_poller):
        source = ScriptedSource(COMPLETED)
        poller, _ = make_poller(source)

        await poller.cancel()
        await poller.cancel()

        assert source.cancelled == [APP_ID]

    @pytest.mark.asyncio
    async def test_refresh_after_cancel_does_nothing(self, make_poller):
        source = ScriptedSource(PROCESSING)
        poller, states = make_poller(source)

        await poller.cancel()
        await poller.refresh()

        assert source.fetches == 0
        assert states == []

    @pytest.mark.asyncio
    async def test_cannot_start_twice(self, make_poller):
        source = BlockingSource()
        poller, _ = make_poller(source)

        poller.start()
        with pytest.raises(RuntimeError):
            poller.start()
        await poller.cancel()


class TestSimulation:
    """Tests for simulated progress."""

    @pytest.mark.asyncio
    async def test_simulate(self, make_poller, sleep):
        source = ScriptedSource(NOT_FOUND)
        poller, states = make_poller(source, simulation_delay=1.5)

        poller.simulate()
        state = await poller.wait()

        assert [(s.status, s.progress) for s in states] == [
            (ApplicationStatus.PROCESSING, 20),
            (ApplicationStatus.COMPLETED, 100),
        ]
        assert states[0].current_step == "Simulating application process..."
        assert state.current_step == "Application simulated successfully"
        assert state.result_message == SIMULATED_CONFIRMATION
        assert sleep.delays == [1.5]
        assert source.fetches == 0

    @pytest.mark.asyncio
    async def test_cancel_during_simulation(self, clock):
        never = asyncio.Event()
        states = []

        async def blocking_sleep(delay):
            await never.wait()

        poller = ProgressPoller(
            ScriptedSource(PROCESSING), APP_ID, on_update=states.append, clock=clock, sleep=blocking_sleep
        )

        poller.simulate()
        while not states:
            await asyncio.sleep(0)
        await poller.cancel()

        assert len(states) == 1
        assert (await poller.wait()).status == ApplicationStatus.PROCESSING
