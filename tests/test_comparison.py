"""
Test cases for comparison.py.
"""

import pytest

from car_cost_calculator.calculator import calculate
from car_cost_calculator.comparison import compare_models, monthly_difference
from car_cost_calculator.data.defaults import default_input
from car_cost_calculator.data.profiles import MODEL_KEYS, lookup_profile


# ── Test 1: One row per model, ranked cheapest first ──────────────────────────

def test_every_model_ranked_ascending():
    ranked = compare_models(default_input())
    assert len(ranked) == len(MODEL_KEYS)
    assert {r.model_key for r in ranked} == set(MODEL_KEYS)
    assert [r.rank for r in ranked] == list(range(1, len(MODEL_KEYS) + 1))
    for i in range(len(ranked) - 1):
        assert ranked[i].total_per_month <= ranked[i + 1].total_per_month


# ── Test 2: Rows match a direct calculation ───────────────────────────────────

def test_rows_match_direct_calculation():
    calc = default_input()
    for r in compare_models(calc):
        direct = calculate(calc.with_profile_defaults(r.model_key))
        assert r.total_per_month == pytest.approx(direct.total_per_month)
        assert r.maintenance_per_month == pytest.approx(direct.maintenance.avg_per_month)
        assert r.risk_reserve_per_month == pytest.approx(direct.maintenance.risk_reserve_per_month)
        assert r.level is direct.affordability.level
        assert r.display_name == lookup_profile(r.model_key).display_name


# ── Test 3: Keeping the user's own fuel economy and rate ──────────────────────

def test_without_profile_defaults_keeps_usage():
    calc = default_input()
    calc = calc.model_copy(
        update={"usage": calc.usage.model_copy(update={"km_per_liter": 9.0})}
    )
    for r in compare_models(calc, apply_profile_defaults=False):
        assert r.result.fuel.cost_per_month == pytest.approx(1_200 / 9.0 * 33)


def test_own_model_row_keeps_user_inputs():
    calc = default_input()
    calc = calc.model_copy(
        update={
            "usage": calc.usage.model_copy(update={"km_per_liter": 9.0}),
            "depreciation": calc.depreciation.model_copy(
                update={"depreciation_rate_per_year": 20}
            ),
        }
    )
    own = next(r for r in compare_models(calc) if r.model_key is calc.car.model_key)
    assert own.total_per_month == calculate(calc).total_per_month
    assert own.result.fuel.cost_per_month == pytest.approx(1_200 / 9.0 * 33)


def test_comparison_does_not_mutate_input():
    calc = default_input()
    before = calc.model_copy(deep=True)
    compare_models(calc)
    assert calc == before


# ── Test 4: Monthly difference ────────────────────────────────────────────────

def test_monthly_difference_sign():
    ranked = compare_models(default_input())
    cheapest, dearest = ranked[0], ranked[-1]
    assert monthly_difference(dearest, cheapest) <= 0
    assert monthly_difference(cheapest, dearest) == pytest.approx(
        dearest.total_per_month - cheapest.total_per_month
    )
    assert monthly_difference(cheapest, cheapest) == 0
