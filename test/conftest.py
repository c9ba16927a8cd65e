from datetime import datetime, timedelta, timezone

import pytest

from oracle_bot.adapters.mock import MockChainGateway
from oracle_bot.core.engine import UpdateDecisionEngine
from oracle_bot.core.gas_history import GasPriceHistory
from oracle_bot.core.guard import ErrorGuard
from oracle_bot.core.snapshot_cache import MarketSnapshotCache
from oracle_bot.core.types import MarketSnapshot, ThresholdConfig

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

class FakeClock:
    """Injectable clock; time only moves when a test says so."""
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now = self.now + timedelta(seconds=seconds)

def snapshot(btc: float = 50000, eth: float = 3000, volatility: float = 25, at: datetime = T0) -> MarketSnapshot:
    return MarketSnapshot(btc_price=btc, eth_price=eth, market_cap_usd=2.5e12, volatility_pct=volatility, observed_at=at)

def make_config(**overrides) -> ThresholdConfig:
    values = dict(
        static_max_gas_gwei=0.01,
        percentile_multiplier=2,
        price_change_min_pct=5,
        price_change_max_pct=20,
        volatility_factor=10,
        min_update_interval_sec=900,
        max_staleness_hours=2,
        emergency_price_jump_pct=10,
        max_consecutive_errors=5,
    )
    values.update(overrides)
    return ThresholdConfig(**values)

def make_engine(gateway: MockChainGateway, clock: FakeClock, cfg: ThresholdConfig | None = None, **kwargs) -> UpdateDecisionEngine:
    cfg = cfg or make_config()
    return UpdateDecisionEngine(
        cfg=cfg,
        gateway=gateway,
        history=GasPriceHistory(100),
        cache=MarketSnapshotCache(),
        guard=ErrorGuard(cfg.max_consecutive_errors),
        clock=clock,
        **kwargs,
    )

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def cfg():
    return make_config()
