import pytest
from pydantic import ValidationError

from oracle_bot.core.gas_history import GasPriceHistory
from oracle_bot.core.thresholds import dynamic_gas_threshold, dynamic_price_threshold
from oracle_bot.core.types import GasSample

from conftest import T0, make_config

def history_of(values):
    history = GasPriceHistory(100)
    for v in values:
        history.record(GasSample(value_gwei=v, observed_at=T0))
    return history

def test_gas_threshold_falls_back_to_static_without_history(cfg):
    assert dynamic_gas_threshold(GasPriceHistory(100), cfg) == 0.01

def test_gas_threshold_never_tighter_than_static(cfg):
    assert dynamic_gas_threshold(history_of([0.001] * 10), cfg) == 0.01

def test_gas_threshold_widens_with_network_floor(cfg):
    # p10 of ten samples of 0.02 is 0.02; times multiplier 2
    assert dynamic_gas_threshold(history_of([0.02] * 10), cfg) == pytest.approx(0.04)

def test_gas_threshold_monotone_in_floor(cfg):
    floors = [0.0, 0.002, 0.005, 0.008, 0.02, 0.1]
    thresholds = [dynamic_gas_threshold(history_of([f] * 10), cfg) for f in floors]
    assert thresholds == sorted(thresholds)

def test_price_threshold_floors_in_calm_market(cfg):
    assert dynamic_price_threshold(25, cfg) == 5
    assert dynamic_price_threshold(0, cfg) == 5

def test_price_threshold_scales_with_volatility(cfg):
    assert dynamic_price_threshold(80, cfg) == pytest.approx(8)

def test_price_threshold_capped(cfg):
    assert dynamic_price_threshold(1000, cfg) == 20

def test_price_threshold_monotone_then_flat(cfg):
    vols = [0, 10, 50, 60, 120, 199, 200, 250, 10_000]
    thresholds = [dynamic_price_threshold(v, cfg) for v in vols]
    assert thresholds == sorted(thresholds)
    assert thresholds[-3:] == [20, 20, 20]

def test_inverted_price_bounds_rejected():
    with pytest.raises(ValidationError):
        make_config(price_change_min_pct=25, price_change_max_pct=20)

def test_non_positive_bounds_rejected():
    with pytest.raises(ValidationError):
        make_config(volatility_factor=0)
    with pytest.raises(ValidationError):
        make_config(max_consecutive_errors=0)
