# /oracle_bot/core/scheduler.py
# Drives the evaluation and reporting timers and owns the bot's lifecycle.

import asyncio
from datetime import datetime
from typing import Callable, Optional

from oracle_bot.core.costs import cost_savings_pct, estimated_savings_eth
from oracle_bot.core.engine import UpdateDecisionEngine, utc_now
from oracle_bot.core.logger import get_logger, STATUS_REPORTS
from oracle_bot.core.state import BotRuntimeState
from oracle_bot.core.thresholds import GAS_FLOOR_PERCENTILE
from oracle_bot.core.types import CycleOutcome, StatusReport

log = get_logger(__name__)

# The status report only lists min/max/median once the history means something.
MIN_SAMPLES_FOR_GAS_STATS = 10

class Scheduler:
    """
    Runs the engine on a fixed-rate timer and emits status reports on another.

    Only one evaluation cycle is ever in flight; a tick that finds the previous
    cycle still waiting on the chain is dropped. Shutdown is cooperative: the
    in-flight cycle is allowed to finish before the timers stop. A tripped
    error guard halts the scheduler for good.
    """
    def __init__(
        self,
        engine: UpdateDecisionEngine,
        evaluation_interval: float,
        report_interval: float,
        initial_state: Optional[BotRuntimeState] = None,
        max_skips_before_alert: int = 10,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.engine = engine
        self.evaluation_interval = evaluation_interval
        self.report_interval = report_interval
        self.state = initial_state or BotRuntimeState(started_at=clock())
        self.max_skips_before_alert = max(1, max_skips_before_alert)
        self.clock = clock
        self.last_report: Optional[StatusReport] = None
        self._cycle_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()

    @property
    def history(self):
        return self.engine.history

    @property
    def guard(self):
        return self.engine.guard

    async def seed_from_chain(self) -> bool:
        """Use what is on-chain right now as the last confirmed snapshot."""
        try:
            snapshot = await asyncio.wait_for(
                self.engine.gateway.fetch_market_snapshot(), timeout=self.engine.fetch_timeout
            )
        except Exception as e:
            log.warning("SEED_SNAPSHOT_UNAVAILABLE_COLD_START", error=str(e) or type(e).__name__)
            return False
        if snapshot.btc_price <= 0 or snapshot.eth_price <= 0:
            log.warning("SEED_SNAPSHOT_EMPTY_COLD_START")
            return False
        self.engine.cache.confirm(snapshot, snapshot.observed_at)
        self.state = self.state.seed_confirmed(snapshot.observed_at)
        log.info("SEEDED_FROM_CHAIN", btc_price=snapshot.btc_price, eth_price=snapshot.eth_price)
        return True

    async def run_cycle(self) -> Optional[CycleOutcome]:
        """One evaluation, unless a previous one is still in flight or the guard has tripped."""
        if self._cycle_lock.locked():
            log.warning("EVALUATION_TICK_SKIPPED_CYCLE_IN_FLIGHT")
            return None
        async with self._cycle_lock:
            if self.guard.is_tripped():
                return None
            try:
                self.state, outcome = await self.engine.evaluate(self.state)
            except Exception as e:
                # The engine is not supposed to raise; if it does, count it and carry on.
                log.error("EVALUATION_CYCLE_CRASHED", error=str(e), exc_info=True)
                self.guard.on_failure(f"crash: {e}")
                self.state = self.state.record_error(self.guard.count)
                outcome = CycleOutcome(error=str(e), guard_tripped=self.guard.is_tripped())

            if self.state.consecutive_skip_count and self.state.consecutive_skip_count % self.max_skips_before_alert == 0:
                log.warning("LONG_SKIP_STREAK", consecutive_skips=self.state.consecutive_skip_count)
            if outcome.guard_tripped:
                log.critical("SCHEDULER_HALTING_GUARD_TRIPPED", consecutive_errors=self.guard.count)
                self._stop_event.set()
            return outcome

    def status_report(self) -> StatusReport:
        """Point-in-time report. Reads only; nothing here awaits, so the copy is consistent."""
        state = self.state
        history = self.history
        now = self.clock()
        latest = history.latest()
        avg_gas = history.average()
        stats = history.stats() if len(history) > MIN_SAMPLES_FOR_GAS_STATS else {}
        confirmed = self.engine.cache.last_confirmed

        hours_since = None
        if state.last_confirmed_update_at is not None:
            hours_since = (now - state.last_confirmed_update_at).total_seconds() / 3600

        return StatusReport(
            generated_at=now,
            is_running=state.is_running,
            guard_tripped=self.guard.is_tripped(),
            update_count=state.update_count,
            skipped_count=state.skipped_count,
            consecutive_error_count=state.consecutive_error_count,
            cycle_count=state.cycle_count,
            hours_since_last_update=hours_since,
            avg_gas_gwei=avg_gas,
            current_gas_gwei=latest.value_gwei if latest else None,
            p10_gas_gwei=history.percentile(GAS_FLOOR_PERCENTILE),
            min_gas_gwei=stats.get("min"),
            max_gas_gwei=stats.get("max"),
            median_gas_gwei=stats.get("median"),
            cost_savings_pct=cost_savings_pct(state.update_count, state.skipped_count),
            uptime_minutes=int((now - state.started_at).total_seconds() // 60),
            gas_spent_eth=state.gas_spent_eth,
            estimated_saved_eth=estimated_savings_eth(state.skipped_count, self.engine.gas_units, avg_gas),
            last_btc_price=confirmed.btc_price if confirmed else None,
            last_eth_price=confirmed.eth_price if confirmed else None,
        )

    def emit_report(self) -> StatusReport:
        report = self.status_report()
        self.last_report = report
        STATUS_REPORTS.inc()
        log.info("STATUS_REPORT", **report.model_dump(mode="json"))
        return report

    async def _sleep_until_stopped(self, seconds: float) -> bool:
        """Returns True if the stop signal arrived while waiting."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def _evaluation_loop(self):
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.evaluation_interval
        while not self._stop_event.is_set():
            if await self._sleep_until_stopped(max(0.0, next_tick - loop.time())):
                break
            # Fixed rate: a long cycle eats into the next wait instead of shifting the schedule.
            next_tick += self.evaluation_interval
            await self.run_cycle()
            if next_tick < loop.time():
                # Overran the interval: missed ticks are dropped, not replayed back to back.
                log.warning("EVALUATION_CYCLE_OVERRAN_INTERVAL", interval=self.evaluation_interval)
                next_tick = loop.time() + self.evaluation_interval

    async def _reporting_loop(self):
        while not await self._sleep_until_stopped(self.report_interval):
            self.emit_report()

    def stop(self):
        """Cooperative shutdown signal; safe to call from a signal handler."""
        if not self._stop_event.is_set():
            log.warning("SCHEDULER_STOP_REQUESTED")
        self._stop_event.set()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    async def run(self) -> BotRuntimeState:
        """Runs until stop() or a guard trip. Returns the final state."""
        self.state = self.state.start()
        log.info(
            "SCHEDULER_STARTING",
            evaluation_interval=self.evaluation_interval,
            report_interval=self.report_interval,
        )
        # The first evaluation does not wait for the timer.
        await self.run_cycle()

        tasks = [
            asyncio.create_task(self._evaluation_loop()),
            asyncio.create_task(self._reporting_loop()),
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            # Let any cycle still in flight land before declaring the bot stopped.
            async with self._cycle_lock:
                self.state = self.state.stop()
            self.emit_report()
        log.warning("SCHEDULER_STOPPED", halted_by_guard=self.guard.is_tripped())
        return self.state
