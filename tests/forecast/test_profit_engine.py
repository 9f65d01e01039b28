from __future__ import annotations

import pytest

from plaza.forecast.costs import calculate_costs
from plaza.forecast.model import PaymentSchedule
from plaza.forecast.profit import break_even_month, calculate_profit, net_of_tax
from plaza.forecast.revenue import calculate_revenue
from plaza.forecast.timeline import Timeline
from tests.builders import make_cost, make_input, make_product


def _profit(inputs):
    timeline = Timeline(inputs.parameters.forecast_months, inputs.parameters.pre_order)
    revenue = calculate_revenue(inputs, timeline)
    costs = calculate_costs(inputs, timeline, revenue)
    return calculate_profit(timeline, revenue, costs, inputs.parameters.tax_rate)


def test_even_single_product_profits_every_month() -> None:
    res = _profit(make_input([make_product()], months=4))

    for row in res.monthly_profit:
        assert row.revenue == 6250
        assert row.cogs == 2500
        assert row.gross_profit == 3750
        assert row.operating_profit == 3750
        assert row.net_profit == 3750
    assert res.summary.break_even_month == 1
    assert res.summary.total_operating_profit == 15000
    assert res.summary.gross_margin == pytest.approx(60)


def test_cogs_follow_units_sold_not_supplier_payments() -> None:
    # the whole production bill is paid in month 1 but COGS is spread with sales
    res = _profit(make_input([make_product(deposit_pct=40)], months=4, pre_order=True))

    assert res.monthly_profit[0].cogs == 0
    assert [r.cogs for r in res.monthly_profit[1:]] == [2500, 2500, 2500, 2500]


def test_cogs_use_the_average_cost_across_products() -> None:
    inputs = make_input(
        [
            make_product("Cheap", planned_units=100, unit_cost=10),
            make_product("Dear", planned_units=100, unit_cost=30),
        ],
        months=1,
    )
    res = _profit(inputs)

    # 200 units sold at an average of 20
    assert res.monthly_profit[0].cogs == pytest.approx(4000)


def test_tax_applies_to_profitable_months_only() -> None:
    inputs = make_input(
        [make_product()],
        [make_cost("Launch", 5000, PaymentSchedule.UP_FRONT)],
        months=4,
        tax_rate=20,
    )
    res = _profit(inputs)

    first, *rest = res.monthly_profit
    assert first.operating_profit == -1250
    assert first.net_profit == -1250
    for row in rest:
        assert row.net_profit == pytest.approx(3750 * 0.8)
    assert res.summary.break_even_month == 2


def test_pre_order_month_zero_carries_only_its_fixed_costs() -> None:
    inputs = make_input(
        [make_product()],
        [make_cost("Equip", 600, PaymentSchedule.UP_FRONT)],
        months=4,
        pre_order=True,
    )
    month0 = _profit(inputs).monthly_profit[0]

    assert month0.month == 0
    assert month0.revenue == 0
    assert month0.fixed_costs == 600
    assert month0.operating_profit == -600
    assert month0.cumulative_operating_profit == -600


def test_margins_are_zero_without_revenue() -> None:
    res = _profit(make_input([make_product(sell_through=0)], [make_cost("Rent", 400)], months=4))

    assert res.summary.gross_margin == 0
    assert res.summary.net_margin == 0
    assert res.summary.break_even_month is None


def test_net_of_tax() -> None:
    assert net_of_tax(1000, 25) == 750
    assert net_of_tax(-1000, 25) == -1000
    assert net_of_tax(0, 25) == 0


@pytest.mark.parametrize(
    "profits, expected",
    [
        ([-100, 50, 60], 3),
        ([10, -50, 60], 1),
        ([-10, 10], None),
        ([], None),
        ([-5, -5, -5], None),
    ],
)
def test_break_even_month_is_first_strictly_positive_running_total(profits, expected) -> None:
    assert break_even_month(list(range(1, len(profits) + 1)), profits) == expected


def test_break_even_month_reports_calendar_month() -> None:
    assert break_even_month([0, 1, 2], [-100, 40, 80]) == 2
