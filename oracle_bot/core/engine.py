# /oracle_bot/core/engine.py
# One evaluation cycle: observe gas and market, decide, submit, account.
import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from oracle_bot.adapters.base import ChainGateway
from oracle_bot.core.costs import update_cost_eth
from oracle_bot.core.gas_history import GasPriceHistory
from oracle_bot.core.guard import ErrorGuard, GuardTrippedError
from oracle_bot.core.logger import (
    get_logger,
    set_cycle_counter,
    UPDATES_SUBMITTED,
    UPDATES_SKIPPED,
    CYCLE_FAILURES,
    GAS_PRICE_GWEI,
    GAS_THRESHOLD_GWEI,
    PRICE_THRESHOLD_PCT,
)
from oracle_bot.core.rules import DecisionContext, decide, percent_change
from oracle_bot.core.snapshot_cache import MarketSnapshotCache
from oracle_bot.core.state import BotRuntimeState
from oracle_bot.core.thresholds import dynamic_gas_threshold, dynamic_price_threshold
from oracle_bot.core.types import (
    CycleOutcome,
    DecisionRecord,
    GasSample,
    MarketSnapshot,
    ReasonCode,
    ThresholdConfig,
)

log = get_logger(__name__)

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

class UpdateDecisionEngine:
    """
    Runs one evaluation cycle against a ChainGateway.

    The runtime state goes in and the next state comes out; the engine keeps
    no counters of its own. Gas history, the snapshot cache and the error
    guard are shared with the scheduler for reporting.
    `evaluate` never raises: every failure becomes an error-guard signal.
    """
    def __init__(
        self,
        cfg: ThresholdConfig,
        gateway: ChainGateway,
        history: GasPriceHistory,
        cache: MarketSnapshotCache,
        guard: ErrorGuard,
        clock: Callable[[], datetime] = utc_now,
        fetch_timeout: float = 10.0,
        submit_timeout: float = 120.0,
        gas_units: int = 200_000,
    ):
        self.cfg = cfg
        self.gateway = gateway
        self.history = history
        self.cache = cache
        self.guard = guard
        self.clock = clock
        self.fetch_timeout = fetch_timeout
        self.submit_timeout = submit_timeout
        self.gas_units = gas_units

    def build_context(self, gas_price_gwei: float, gas_threshold: float, snapshot: MarketSnapshot,
                      state: BotRuntimeState, now: datetime) -> DecisionContext:
        baseline = self.cache.last_confirmed
        has_baseline = self.cache.has_baseline()
        btc_change = percent_change(snapshot.btc_price, baseline.btc_price) if has_baseline else 0.0
        eth_change = percent_change(snapshot.eth_price, baseline.eth_price) if has_baseline else 0.0

        since: Optional[float] = None
        if state.last_confirmed_update_at is not None:
            since = (now - state.last_confirmed_update_at).total_seconds()

        return DecisionContext(
            cfg=self.cfg,
            gas_price_gwei=gas_price_gwei,
            gas_threshold=gas_threshold,
            price_threshold=dynamic_price_threshold(snapshot.volatility_pct, self.cfg),
            volatility_pct=snapshot.volatility_pct,
            has_baseline=has_baseline,
            btc_change_pct=btc_change,
            eth_change_pct=eth_change,
            seconds_since_last_update=since,
        )

    async def _observe(self) -> Tuple[GasSample, MarketSnapshot]:
        # Both reads belong to the same cycle; either failing fails the cycle.
        results = await asyncio.wait_for(
            asyncio.gather(
                self.gateway.fetch_gas_price(),
                self.gateway.fetch_market_snapshot(),
                return_exceptions=True,
            ),
            timeout=self.fetch_timeout,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        gas_price, snapshot = results
        return GasSample(value_gwei=gas_price, observed_at=self.clock()), snapshot

    def _fail(self, state: BotRuntimeState, stage: str, error: BaseException,
              decision: Optional[DecisionRecord] = None) -> Tuple[BotRuntimeState, CycleOutcome]:
        message = str(error) or type(error).__name__
        CYCLE_FAILURES.labels(stage).inc()
        self.guard.on_failure(f"{stage}: {message}")
        state = state.record_error(self.guard.count)
        log.error(
            "CYCLE_FAILED",
            stage=stage,
            error=message,
            reason=decision.reason_code.value if decision else None,
            consecutive_errors=self.guard.count,
        )
        return state, CycleOutcome(decision=decision, error=message, guard_tripped=self.guard.is_tripped())

    async def evaluate(self, state: BotRuntimeState) -> Tuple[BotRuntimeState, CycleOutcome]:
        try:
            self.guard.check()
        except GuardTrippedError as e:
            log.warning("EVALUATION_REFUSED_GUARD_TRIPPED", reason=str(e))
            return state, CycleOutcome(guard_tripped=True)

        state = state.begin_cycle()
        set_cycle_counter(state.cycle_count)

        try:
            sample, snapshot = await self._observe()
        except Exception as e:
            return self._fail(state, "fetch", e)

        now = self.clock()
        # Judge the current sample against recent history, then add it.
        gas_threshold = dynamic_gas_threshold(self.history, self.cfg)
        self.history.record(sample)
        self.cache.observe(snapshot)

        ctx = self.build_context(sample.value_gwei, gas_threshold, snapshot, state, now)
        decision = decide(ctx)
        GAS_PRICE_GWEI.set(sample.value_gwei)
        GAS_THRESHOLD_GWEI.set(decision.computed_gas_threshold)
        PRICE_THRESHOLD_PCT.set(decision.computed_price_threshold)

        if not decision.should_update:
            state = state.record_skip()
            UPDATES_SKIPPED.labels(decision.reason_code.value).inc()
            if decision.reason_code is ReasonCode.HIGH_GAS:
                log.warning("HIGH_GAS_PRICE", gas_price_gwei=sample.value_gwei, threshold=gas_threshold)
            log.info("UPDATE_SKIPPED", skipped_count=state.skipped_count, **decision.model_dump(mode="json"))
            return state, CycleOutcome(decision=decision)

        log.info("UPDATE_TRIGGERED", **decision.model_dump(mode="json"))
        try:
            tx = await asyncio.wait_for(self.gateway.submit_update(snapshot), timeout=self.submit_timeout)
        except Exception as e:
            return self._fail(state, "submit", e, decision)

        self.guard.on_success()
        # The chain may have landed on values other than the ones we decided on;
        # what it now stores is the baseline for the next comparison.
        self.cache.confirm(tx.confirmed_snapshot or snapshot, now)
        cost = update_cost_eth(tx.gas_used, tx.effective_gas_price_gwei)
        state = state.record_update(now, cost)
        UPDATES_SUBMITTED.labels(decision.reason_code.value).inc()
        log.info(
            "UPDATE_CONFIRMED",
            tx_hash=tx.tx_hash,
            block_number=tx.block_number,
            gas_used=tx.gas_used,
            cost_eth=cost,
            reason=decision.reason_code.value,
            update_count=state.update_count,
        )
        return state, CycleOutcome(decision=decision, submitted=True, tx=tx)
