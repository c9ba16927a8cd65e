import pytest

from oracle_bot.core.costs import (
    cost_savings_pct,
    estimated_savings_eth,
    monthly_cost_usd,
    update_cost_eth,
    updates_per_month,
)


def test_update_cost():
    assert update_cost_eth(200_000, 0.005) == pytest.approx(0.000001)
    assert update_cost_eth(200_000, 0) == 0


def test_monthly_cost():
    # Every 5 minutes for 30 days
    assert updates_per_month(300) == 8640
    assert monthly_cost_usd(200_000, 0.005, 300, 2000) == pytest.approx(0.000001 * 8640 * 2000)
    with pytest.raises(ValueError):
        updates_per_month(0)


def test_savings():
    assert cost_savings_pct(0, 0) == 0
    assert cost_savings_pct(1, 3) == 75
    assert cost_savings_pct(4, 0) == 0
    assert estimated_savings_eth(10, 200_000, 0.005) == pytest.approx(0.00001)
