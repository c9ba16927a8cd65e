# /oracle_bot/core/rules.py
"""
Ordered decision rules for one evaluation cycle.

Rules are checked top to bottom and the first match decides. The order is the
contract: the minimum interval always wins, cost control beats staleness, and
only an emergency price jump may override a high-gas skip.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from oracle_bot.core.types import DecisionRecord, ReasonCode, ThresholdConfig


@dataclass(frozen=True)
class DecisionContext:
    cfg: ThresholdConfig
    gas_price_gwei: float
    gas_threshold: float
    price_threshold: float
    volatility_pct: float
    has_baseline: bool
    btc_change_pct: float
    eth_change_pct: float
    seconds_since_last_update: Optional[float]

    @property
    def max_change_pct(self) -> float:
        return max(self.btc_change_pct, self.eth_change_pct)

    @property
    def hours_since_last_update(self) -> float:
        if self.seconds_since_last_update is None:
            return 0.0
        return self.seconds_since_last_update / 3600

    @property
    def is_emergency(self) -> bool:
        return self.has_baseline and self.max_change_pct >= self.cfg.emergency_price_jump_pct


@dataclass(frozen=True)
class Rule:
    reason: ReasonCode
    should_update: bool
    matches: Callable[[DecisionContext], bool]


def _min_interval(ctx: DecisionContext) -> bool:
    return (
        ctx.seconds_since_last_update is not None
        and ctx.seconds_since_last_update < ctx.cfg.min_update_interval_sec
    )

def _high_gas(ctx: DecisionContext) -> bool:
    # Cold start is exempt: there is nothing on-chain worth protecting yet.
    return ctx.has_baseline and ctx.gas_price_gwei > ctx.gas_threshold and not ctx.is_emergency

def _first_update(ctx: DecisionContext) -> bool:
    return not ctx.has_baseline

def _emergency(ctx: DecisionContext) -> bool:
    return ctx.is_emergency

def _price_change(ctx: DecisionContext) -> bool:
    return ctx.max_change_pct > ctx.price_threshold

def _force_update(ctx: DecisionContext) -> bool:
    return ctx.hours_since_last_update > ctx.cfg.max_staleness_hours


RULES: Tuple[Rule, ...] = (
    Rule(ReasonCode.MIN_INTERVAL, False, _min_interval),
    Rule(ReasonCode.HIGH_GAS, False, _high_gas),
    Rule(ReasonCode.FIRST_UPDATE, True, _first_update),
    Rule(ReasonCode.EMERGENCY, True, _emergency),
    Rule(ReasonCode.PRICE_CHANGE, True, _price_change),
    Rule(ReasonCode.FORCE_UPDATE, True, _force_update),
)
FALLBACK = Rule(ReasonCode.LOW_PRICE_CHANGE, False, lambda ctx: True)


def percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return abs(current - previous) * 100 / previous


def match_rule(ctx: DecisionContext) -> Rule:
    for rule in RULES:
        if rule.matches(ctx):
            return rule
    return FALLBACK


def decide(ctx: DecisionContext) -> DecisionRecord:
    rule = match_rule(ctx)
    return DecisionRecord(
        should_update=rule.should_update,
        reason_code=rule.reason,
        computed_gas_threshold=ctx.gas_threshold,
        computed_price_threshold=ctx.price_threshold,
        btc_change_pct=ctx.btc_change_pct,
        eth_change_pct=ctx.eth_change_pct,
        hours_since_last_update=ctx.hours_since_last_update,
        gas_price_gwei=ctx.gas_price_gwei,
        volatility_pct=ctx.volatility_pct,
    )
