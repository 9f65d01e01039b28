from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from plaza.core.errors import UNKNOWN_ERROR_MESSAGE, BusinessRuleError, ForecastError, InputValidationError
from plaza.forecast import engine
from plaza.forecast.engine import calculate_forecast, check_business_rules, run_forecast
from plaza.forecast.model import (
    DEPOSITS_KEY,
    FINAL_PAYMENTS_KEY,
    CostType,
    HealthBand,
    PaymentSchedule,
    ShopifySource,
    StartMonth,
)
from tests.builders import make_cost, make_input, make_product, raw_input

SAMPLE = Path(__file__).resolve().parents[1] / "fixtures" / "plaza_sample.json"


def _sample() -> dict:
    return json.loads(SAMPLE.read_text(encoding="utf-8"))


# =========================
# guards
# =========================


def test_out_of_range_horizon_is_rejected_by_validation() -> None:
    raw = raw_input(parameters={"forecastMonths": 40, "taxRate": 0, "currency": "EUR"})
    with pytest.raises(InputValidationError) as ei:
        run_forecast(raw)
    assert "Forecast Months" in ei.value.message


def test_out_of_range_horizon_is_rejected_before_any_computation(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(engine, "calculate_revenue", lambda *a, **k: calls.append(a))

    with pytest.raises(BusinessRuleError) as ei:
        calculate_forecast(make_input([make_product()], months=40))

    assert "Forecast Months" in ei.value.message
    assert calls == []


def test_missing_unit_cost_names_the_product() -> None:
    with pytest.raises(BusinessRuleError, match='"Tee" must have a Unit Cost and Sales Price'):
        check_business_rules(make_input([make_product("Tee", unit_cost=None)]))


def test_manual_mode_requires_planning_fields() -> None:
    with pytest.raises(BusinessRuleError, match="missing required fields for manual forecasting"):
        check_business_rules(make_input([make_product(sales_model=None)]))


def test_live_source_does_not_require_planning_fields() -> None:
    inputs = make_input([make_product(planned_units=None, sell_through=None, sales_model=None)], source=ShopifySource())
    out = calculate_forecast(inputs)

    assert out.revenue_summary.total_revenue == 0
    assert out.cost_summary.total_variable == 0


@pytest.mark.parametrize("name", [DEPOSITS_KEY, FINAL_PAYMENTS_KEY, "month"])
def test_reserved_names_are_rejected(name: str) -> None:
    with pytest.raises(BusinessRuleError, match="reserved"):
        check_business_rules(make_input([make_product(name)]))
    with pytest.raises(BusinessRuleError, match="reserved"):
        check_business_rules(make_input(fixed_costs=[make_cost(name)]))


def test_unit_cost_above_price_only_warns(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="plaza.forecast.engine"):
        out = calculate_forecast(make_input([make_product(unit_cost=30, sell_price=25)]))

    assert out.profit_summary.total_gross_profit < 0
    assert any("Unit cost is higher than sell price" in r.getMessage() for r in caplog.records)


def test_unexpected_failure_is_wrapped_with_generic_message(monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(engine, "calculate_revenue", boom)

    with pytest.raises(ForecastError) as ei:
        calculate_forecast(make_input([make_product()]))

    assert ei.value.message == UNKNOWN_ERROR_MESSAGE
    assert isinstance(ei.value.__cause__, RuntimeError)


# =========================
# full runs
# =========================


def test_even_curve_scenario_end_to_end() -> None:
    out = run_forecast(raw_input())

    assert out.revenue_summary.total_revenue == 25000
    assert [r.operating_profit for r in out.monthly_profit] == [3750, 3750, 3750, 3750]
    assert out.profit_summary.break_even_month == 1
    assert out.business_health is not None


def test_forecast_is_deterministic() -> None:
    inputs = make_input(
        [make_product(sell_through=70, deposit_pct=30)],
        [make_cost("Rent", 900, PaymentSchedule.QUARTERLY)],
        months=9,
        tax_rate=15,
        pre_order=True,
    )
    a = calculate_forecast(inputs)
    b = calculate_forecast(inputs)

    assert a == b
    assert a.to_json() == b.to_json()


def test_potential_figures_assume_full_sell_through() -> None:
    partial = calculate_forecast(make_input([make_product(sell_through=50)], [make_cost("Rent", 1200)]))
    full = calculate_forecast(make_input([make_product(sell_through=100)], [make_cost("Rent", 1200)]))

    assert partial.cash_flow_summary.potential_cash_balance == pytest.approx(full.cash_flow_summary.ending_cash_balance)
    assert partial.profit_summary.potential_gross_profit == pytest.approx(full.profit_summary.total_gross_profit)
    assert partial.cash_flow_summary.potential_cash_balance > partial.cash_flow_summary.ending_cash_balance


def test_sample_plan() -> None:
    out = run_forecast(_sample())

    months = [r.month for r in out.monthly_costs]
    assert months == list(range(0, 13))
    assert [r.month for r in out.monthly_revenue] == months
    assert [r.month for r in out.monthly_profit] == months
    assert [r.month for r in out.monthly_cash_flow] == months

    costs = out.monthly_costs
    assert costs[0][DEPOSITS_KEY] == pytest.approx(1500)
    assert costs[1][FINAL_PAYMENTS_KEY] == pytest.approx(9000)
    assert costs[0]["Equip"] == 600
    assert costs[0]["Marketing"] == 0
    assert all(r["Overhead + Software"] == pytest.approx(100) for r in costs)

    assert out.cost_summary.total_variable == pytest.approx(10500)
    assert out.cost_summary.total_fixed == pytest.approx(3900)
    assert out.revenue_summary.total_revenue == pytest.approx(23200)
    assert out.revenue_summary.total_sold_units == pytest.approx(287.5)

    bridge = out.cash_flow_summary.bridge
    assert bridge.operating_profit - bridge.cogs_of_unsold_goods - bridge.taxes_paid == pytest.approx(
        out.cash_flow_summary.ending_cash_balance
    )
    assert 0 <= out.business_health.score <= 100
    assert out.business_health.band in set(HealthBand)


def test_wire_output_uses_camel_case_and_keeps_series_names() -> None:
    data = run_forecast(_sample()).to_dict()

    assert set(data) >= {
        "costSummary",
        "monthlyCosts",
        "revenueSummary",
        "monthlyRevenue",
        "monthlyUnitsSold",
        "profitSummary",
        "monthlyProfit",
        "cashFlowSummary",
        "monthlyCashFlow",
        "businessHealth",
    }
    first_costs = data["monthlyCosts"][0]
    assert first_costs["month"] == 0
    assert "Overhead + Software" in first_costs
    assert data["costSummary"]["fixedCosts"][2]["costType"] == CostType.MONTHLY_COST.value
    assert data["costSummary"]["fixedCosts"][2]["startMonth"] == StartMonth.MONTH_0.value
    assert data["cashFlowSummary"]["bridge"]["endingCashBalance"] == data["cashFlowSummary"]["endingCashBalance"]
    assert {k["key"] for k in data["businessHealth"]["kpis"]} == {"profitability", "liquidity", "efficiency", "demand"}


@pytest.mark.parametrize(
    "inputs, fragment",
    [
        (make_input([make_product()], months=0), "Forecast Months"),
        (make_input([make_product("Cap", sell_price=None)]), '"Cap" must have a Unit Cost'),
        (make_input([make_product(sell_through=None)]), "manual forecasting"),
        (make_input(fixed_costs=[make_cost(FINAL_PAYMENTS_KEY)]), "reserved"),
    ],
)
def test_business_rule_errors_reach_the_caller_unchanged(inputs, fragment: str) -> None:
    with pytest.raises(ForecastError) as ei:
        calculate_forecast(inputs)

    assert type(ei.value) is BusinessRuleError
    assert fragment in ei.value.message
