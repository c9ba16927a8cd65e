# /oracle_bot/core/thresholds.py
# Dynamic decision boundaries, recomputed every cycle. No side effects.
from oracle_bot.core.gas_history import GasPriceHistory
from oracle_bot.core.types import ThresholdConfig

GAS_FLOOR_PERCENTILE = 0.10


def dynamic_gas_threshold(history: GasPriceHistory, cfg: ThresholdConfig) -> float:
    """Never tighter than the static ceiling; widens when the network's recent floor rises."""
    return max(cfg.static_max_gas_gwei, history.percentile(GAS_FLOOR_PERCENTILE) * cfg.percentile_multiplier)


def dynamic_price_threshold(volatility_pct: float, cfg: ThresholdConfig) -> float:
    """
    Floors at the configured minimum in calm markets, scales with volatility
    otherwise, and is capped so extreme volatility cannot suppress updates.
    """
    scaled = max(cfg.price_change_min_pct, volatility_pct / cfg.volatility_factor)
    return min(max(scaled, cfg.price_change_min_pct), cfg.price_change_max_pct)
