# /oracle_bot/core/costs.py
# Cost figures for oracle updates, used by the status report and the
# balance check before submitting.
from decimal import Decimal

GWEI_PER_ETH = Decimal(10**9)
SECONDS_PER_MONTH = 30 * 24 * 3600


def update_cost_eth(gas_units: int, gas_price_gwei: float) -> float:
    """Cost of one transaction in ETH."""
    return float(Decimal(gas_units) * Decimal(str(gas_price_gwei)) / GWEI_PER_ETH)


def updates_per_month(interval_seconds: float) -> int:
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be positive")
    return int(SECONDS_PER_MONTH // interval_seconds)


def monthly_cost_usd(gas_units: int, gas_price_gwei: float, interval_seconds: float, eth_price_usd: float) -> float:
    """Upper bound: every tick submits."""
    return update_cost_eth(gas_units, gas_price_gwei) * updates_per_month(interval_seconds) * eth_price_usd


def estimated_savings_eth(skipped: int, gas_units: int, avg_gas_price_gwei: float) -> float:
    """What the skipped cycles would have cost at the average observed gas price."""
    return skipped * update_cost_eth(gas_units, avg_gas_price_gwei)


def cost_savings_pct(updated: int, skipped: int) -> float:
    total = updated + skipped
    if total == 0:
        return 0.0
    return skipped / total * 100
