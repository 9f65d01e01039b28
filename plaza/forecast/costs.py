from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import List, Sequence, Tuple

import deal

from plaza.forecast.curves import aggregated_sales_weights
from plaza.forecast.model import (
    DEPOSITS_KEY,
    FINAL_PAYMENTS_KEY,
    CostSummary,
    CostType,
    EngineInput,
    FixedCostBreakdown,
    FixedCostItem,
    MonthlyRecord,
    PaymentSchedule,
    Product,
    StartMonth,
    VariableCostBreakdown,
)
from plaza.forecast.revenue import RevenueResult
from plaza.forecast.timeline import MonthlyLedger, Timeline
from plaza.infra.logging_config import get_logger

logger = get_logger(__name__)

_RECONCILE_TOLERANCE = 0.01


@dataclass(frozen=True, slots=True)
class CostResult:
    summary: CostSummary
    monthly_costs: Tuple[MonthlyRecord, ...]


# =========================
# VARIABLE (PRODUCTION) COSTS
# =========================


@deal.ensure(
    lambda product, result: abs(result.deposit_paid + result.remaining_cost - result.total_production_cost) <= 1e-6 * max(1.0, result.total_production_cost),
    message="deposit + remaining must equal production cost",
)
def variable_cost(product: Product) -> VariableCostBreakdown:
    planned_units = product.planned_units or 0.0
    unit_cost = product.unit_cost or 0.0
    total_production_cost = planned_units * unit_cost
    deposit_paid = total_production_cost * (product.deposit_pct / 100)
    return VariableCostBreakdown(
        name=product.name,
        planned_units=planned_units,
        unit_cost=unit_cost,
        total_production_cost=total_production_cost,
        deposit_paid=deposit_paid,
        remaining_cost=total_production_cost - deposit_paid,
    )


# =========================
# FIXED COSTS
# =========================


def allocation_window(item: FixedCostItem, timeline: Timeline) -> Tuple[int, ...]:
    """Months a fixed cost may be paid in, given its schedule and start month."""
    schedule = item.payment_schedule
    if schedule is PaymentSchedule.UP_FRONT:
        return (timeline.first_month,)
    if schedule is PaymentSchedule.ACCORDING_TO_SALES:
        return timeline.sales_months
    if item.start_month is StartMonth.MONTH_0 and timeline.pre_order:
        return timeline.months
    return timeline.sales_months


def period_total(item: FixedCostItem, timeline: Timeline) -> float:
    """
    Full amount a fixed cost adds over the forecast.

    A `Monthly Cost` recurs once per month of its window (the forecast horizon
    for up-front and sales-linked schedules).
    """
    if item.cost_type is CostType.TOTAL_FOR_PERIOD:
        return item.amount
    if item.payment_schedule in (PaymentSchedule.UP_FRONT, PaymentSchedule.ACCORDING_TO_SALES):
        return item.amount * timeline.forecast_months
    return item.amount * len(allocation_window(item, timeline))


def _post_fixed_cost(
    item: FixedCostItem,
    timeline: Timeline,
    sales_weights: Sequence[float],
    ledger: MonthlyLedger,
) -> float:
    total = period_total(item, timeline)
    window = allocation_window(item, timeline)
    schedule = item.payment_schedule
    posted = 0.0

    if schedule is PaymentSchedule.UP_FRONT:
        ledger.post(window[0], item.name, total)
        posted = total

    elif schedule is PaymentSchedule.MONTHLY:
        per_month = total / len(window)
        for m in window:
            ledger.post(m, item.name, per_month)
            posted += per_month

    elif schedule is PaymentSchedule.QUARTERLY:
        # A trailing partial quarter still gets a full quarterly payment.
        quarters = ceil(len(window) / 3)
        per_quarter = total / quarters
        for q in range(quarters):
            ledger.post(window[q * 3], item.name, per_quarter)
            posted += per_quarter

    elif schedule is PaymentSchedule.ACCORDING_TO_SALES:
        for m, w in zip(window, sales_weights):
            amount = total * w
            ledger.post(m, item.name, amount)
            posted += amount

    else:
        raise ValueError(f"unknown payment schedule: {schedule!r}")

    return posted


# =========================
# ENGINE
# =========================


@deal.ensure(
    lambda inputs, timeline, revenue, result: len(result.monthly_costs) == len(timeline.months),
    message="one cost row per timeline month",
)
@deal.post(
    lambda result: result.summary.total_operating == result.summary.total_fixed + result.summary.total_variable,
    message="operating = fixed + variable",
)
@deal.raises(ValueError, deal.RaisesContractError)
def calculate_costs(inputs: EngineInput, timeline: Timeline, revenue: RevenueResult) -> CostResult:
    """
    Production costs per product (deposit now, balance on delivery) and the
    monthly timeline of every fixed cost line.

    Deposits land in the first timeline month; final payments always land in
    Month 1 because suppliers are paid on delivery.
    """
    ledger = MonthlyLedger(timeline)

    variable_costs: List[VariableCostBreakdown] = [variable_cost(p) for p in inputs.products]
    total_planned_units = sum(v.planned_units for v in variable_costs)
    total_deposits_paid = sum(v.deposit_paid for v in variable_costs)
    total_final_payments = sum(v.remaining_cost for v in variable_costs)
    total_variable = sum(v.total_production_cost for v in variable_costs)

    ledger.post(timeline.first_month, DEPOSITS_KEY, total_deposits_paid)
    ledger.post(1, FINAL_PAYMENTS_KEY, total_final_payments)

    weights = aggregated_sales_weights(inputs, len(timeline.sales_months))
    fixed_costs: List[FixedCostBreakdown] = []
    for item in inputs.fixed_costs:
        expected = period_total(item, timeline)
        posted = _post_fixed_cost(item, timeline, weights, ledger)
        if abs(posted - expected) > _RECONCILE_TOLERANCE:
            logger.warning(
                "Fixed-cost timeline does not reconcile with period total",
                extra={"extra_data": {"cost": item.name, "expected": expected, "posted": posted}},
            )
        fixed_costs.append(
            FixedCostBreakdown(
                name=item.name,
                amount=item.amount,
                payment_schedule=item.payment_schedule,
                cost_type=item.cost_type,
                start_month=item.start_month,
                period_total=expected,
            )
        )

    total_fixed = sum(f.period_total for f in fixed_costs)
    avg_cost_per_unit = total_variable / total_planned_units if total_planned_units > 0 else 0.0
    cogs_of_unsold_goods = total_variable - revenue.summary.total_sold_units * avg_cost_per_unit

    columns = [DEPOSITS_KEY, FINAL_PAYMENTS_KEY] + [c.name for c in inputs.fixed_costs]
    return CostResult(
        summary=CostSummary(
            total_fixed=total_fixed,
            total_variable=total_variable,
            total_operating=total_fixed + total_variable,
            avg_cost_per_unit=avg_cost_per_unit,
            total_planned_units=total_planned_units,
            total_deposits_paid=total_deposits_paid,
            total_final_payments=total_final_payments,
            cogs_of_unsold_goods=cogs_of_unsold_goods,
            fixed_costs=tuple(fixed_costs),
            variable_costs=tuple(variable_costs),
        ),
        monthly_costs=ledger.freeze(columns),
    )
