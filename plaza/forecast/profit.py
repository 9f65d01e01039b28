from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import deal

from plaza.forecast.costs import CostResult
from plaza.forecast.model import (
    DEPOSITS_KEY,
    FINAL_PAYMENTS_KEY,
    MonthlyProfit,
    ProfitSummary,
)
from plaza.forecast.revenue import RevenueResult
from plaza.forecast.timeline import Timeline

# Production cash events; COGS is recognized on sale instead.
_PRODUCTION_COLUMNS = (DEPOSITS_KEY, FINAL_PAYMENTS_KEY)


@dataclass(frozen=True, slots=True)
class ProfitResult:
    summary: ProfitSummary
    monthly_profit: Tuple[MonthlyProfit, ...]


@deal.ensure(
    lambda operating_profit, tax_rate, result: operating_profit > 0 or result == operating_profit,
    message="losses are never taxed",
)
def net_of_tax(operating_profit: float, tax_rate: float) -> float:
    """Tax only positive operating profit; losses pass through untaxed."""
    if operating_profit > 0:
        return operating_profit * (1 - tax_rate / 100)
    return operating_profit


@deal.post(lambda result: result is None or isinstance(result, int), message="must return int|None")
def break_even_month(months: Sequence[int], operating_profits: Iterable[float]) -> Optional[int]:
    """First month whose running operating profit is strictly positive."""
    cumulative = 0.0
    for month, op in zip(months, operating_profits):
        cumulative += op
        if cumulative > 0:
            return month
    return None


def _margin(part: float, revenue: float) -> float:
    return part / revenue * 100 if revenue > 0 else 0.0


@deal.pre(lambda timeline, revenue, costs, tax_rate: 0 <= tax_rate <= 100, message="tax rate must be 0..100")
@deal.ensure(
    lambda timeline, revenue, costs, tax_rate, result: [p.month for p in result.monthly_profit] == list(timeline.months),
    message="one profit row per timeline month",
)
@deal.raises(deal.RaisesContractError)
def calculate_profit(
    timeline: Timeline,
    revenue: RevenueResult,
    costs: CostResult,
    tax_rate: float,
) -> ProfitResult:
    """
    Accrual profit per month.

    COGS follows units sold in the month at the average production cost per
    planned unit, not the deposit/final-payment cash timing. Monthly losses
    are not carried forward against later tax.
    """
    avg_unit_cost = costs.summary.avg_cost_per_unit

    rows: List[MonthlyProfit] = []
    cumulative = 0.0
    for rev_row, units_row, cost_row in zip(revenue.monthly_revenue, revenue.monthly_units_sold, costs.monthly_costs):
        month_revenue = rev_row.total()
        fixed = cost_row.total(exclude=_PRODUCTION_COLUMNS)
        cogs = units_row.total() * avg_unit_cost

        gross = month_revenue - cogs
        operating = gross - fixed
        net = net_of_tax(operating, tax_rate)
        cumulative += operating

        rows.append(
            MonthlyProfit(
                month=rev_row.month,
                revenue=month_revenue,
                cogs=cogs,
                fixed_costs=fixed,
                gross_profit=gross,
                operating_profit=operating,
                net_profit=net,
                cumulative_operating_profit=cumulative,
            )
        )

    total_revenue = revenue.summary.total_revenue
    total_gross = sum(r.gross_profit for r in rows)
    total_operating = sum(r.operating_profit for r in rows)
    total_net = sum(r.net_profit for r in rows)

    return ProfitResult(
        summary=ProfitSummary(
            total_gross_profit=total_gross,
            total_operating_profit=total_operating,
            total_net_profit=total_net,
            gross_margin=_margin(total_gross, total_revenue),
            operating_margin=_margin(total_operating, total_revenue),
            net_margin=_margin(total_net, total_revenue),
            break_even_month=break_even_month([r.month for r in rows], [r.operating_profit for r in rows]),
        ),
        monthly_profit=tuple(rows),
    )
