# /oracle_bot/core/types.py
# Records shared by the decision engine, the scheduler and the gateways.
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GasSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    value_gwei: float = Field(ge=0)
    observed_at: datetime


class MarketSnapshot(BaseModel):
    """One atomic read of the oracle's market inputs."""
    model_config = ConfigDict(frozen=True)

    btc_price: float = Field(ge=0)
    eth_price: float = Field(ge=0)
    market_cap_usd: float = Field(default=0.0, ge=0)
    volatility_pct: float = Field(default=0.0, ge=0)
    observed_at: datetime


class ThresholdConfig(BaseModel):
    """
    Static decision bounds, loaded once at process start and never mutated.
    Construction fails on inconsistent bounds so a bad deployment is caught
    before the scheduler starts.
    """
    model_config = ConfigDict(frozen=True)

    static_max_gas_gwei: float = Field(gt=0)
    percentile_multiplier: float = Field(gt=0)
    price_change_min_pct: float = Field(gt=0)
    price_change_max_pct: float = Field(gt=0)
    volatility_factor: float = Field(gt=0)
    min_update_interval_sec: float = Field(ge=0)
    max_staleness_hours: float = Field(gt=0)
    emergency_price_jump_pct: float = Field(gt=0)
    max_consecutive_errors: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ThresholdConfig":
        if self.price_change_min_pct > self.price_change_max_pct:
            raise ValueError(
                f"price_change_min_pct ({self.price_change_min_pct}) exceeds "
                f"price_change_max_pct ({self.price_change_max_pct})"
            )
        return self


class ReasonCode(str, Enum):
    MIN_INTERVAL = "MIN_INTERVAL"
    HIGH_GAS = "HIGH_GAS"
    FIRST_UPDATE = "FIRST_UPDATE"
    EMERGENCY = "EMERGENCY"
    PRICE_CHANGE = "PRICE_CHANGE"
    FORCE_UPDATE = "FORCE_UPDATE"
    LOW_PRICE_CHANGE = "LOW_PRICE_CHANGE"


class DecisionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    should_update: bool
    reason_code: ReasonCode
    computed_gas_threshold: float
    computed_price_threshold: float
    btc_change_pct: float
    eth_change_pct: float
    hours_since_last_update: float
    gas_price_gwei: float
    volatility_pct: float


class TransactionHandle(BaseModel):
    """`confirmed_snapshot` is the contract data read back after mining, when the gateway has it."""
    model_config = ConfigDict(frozen=True)

    tx_hash: str
    block_number: Optional[int] = None
    gas_used: int = 0
    effective_gas_price_gwei: float = 0.0
    confirmed_snapshot: Optional[MarketSnapshot] = None


class CycleOutcome(BaseModel):
    """What a single evaluation cycle produced. `decision` is None when the cycle never got that far."""
    model_config = ConfigDict(frozen=True)

    decision: Optional[DecisionRecord] = None
    submitted: bool = False
    tx: Optional[TransactionHandle] = None
    error: Optional[str] = None
    guard_tripped: bool = False


class StatusReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated_at: datetime
    is_running: bool
    guard_tripped: bool
    update_count: int
    skipped_count: int
    consecutive_error_count: int
    cycle_count: int
    hours_since_last_update: Optional[float]
    avg_gas_gwei: float
    current_gas_gwei: Optional[float]
    p10_gas_gwei: float
    min_gas_gwei: Optional[float] = None
    max_gas_gwei: Optional[float] = None
    median_gas_gwei: Optional[float] = None
    cost_savings_pct: float
    uptime_minutes: int
    gas_spent_eth: float
    estimated_saved_eth: float
    last_btc_price: Optional[float] = None
    last_eth_price: Optional[float] = None
