from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import deal

from plaza.forecast.costs import CostResult
from plaza.forecast.model import CashBridge, CashFlowSummary, MonthlyCashFlow
from plaza.forecast.profit import ProfitResult
from plaza.forecast.revenue import RevenueResult
from plaza.forecast.timeline import Timeline


@dataclass(frozen=True, slots=True)
class CashFlowResult:
    summary: CashFlowSummary
    monthly_cash_flow: Tuple[MonthlyCashFlow, ...]


@deal.post(lambda result: result >= 0, message="runway is never negative")
def runway_months(ending_cash: float, monthly_burn: float) -> float:
    """
    Months the ending cash covers at the average fixed-cost burn.

    Negative cash -> 0. Nothing burning the cash (even an empty till) ->
    infinite. Otherwise no cash left -> 0.
    """
    if ending_cash < 0:
        return 0.0
    if monthly_burn <= 0:
        return math.inf
    if ending_cash == 0:
        return 0.0
    return ending_cash / monthly_burn


@deal.post(lambda result: result >= 0, message="funding need is a magnitude")
def peak_funding_need(cumulative_cash: List[float]) -> float:
    """Deepest cash hole across the timeline, as a positive amount (0 if none)."""
    lowest = min(cumulative_cash, default=0.0)
    return -lowest if lowest < 0 else 0.0


@deal.ensure(
    lambda timeline, revenue, costs, profit, result: len(result.monthly_cash_flow) == len(timeline.months),
    message="one cash row per timeline month",
)
@deal.raises(deal.RaisesContractError)
def calculate_cash_flow(
    timeline: Timeline,
    revenue: RevenueResult,
    costs: CostResult,
    profit: ProfitResult,
) -> CashFlowResult:
    """
    Cash view of the plan, starting from zero cash.

    Every cost column is cash out when it is paid (deposits and final payments
    included), revenue is cash in when recognized, and each month's tax is
    paid in that month.
    """
    rows: List[MonthlyCashFlow] = []
    cumulative = 0.0
    cash_break_even: Optional[int] = None

    for rev_row, cost_row, p in zip(revenue.monthly_revenue, costs.monthly_costs, profit.monthly_profit):
        cash_in = rev_row.total()
        cash_out = cost_row.total()
        taxes = p.operating_profit - p.net_profit
        net = cash_in - cash_out - taxes
        cumulative += net

        if cash_break_even is None and cumulative > 0:
            cash_break_even = rev_row.month

        rows.append(
            MonthlyCashFlow(
                month=rev_row.month,
                cash_in=cash_in,
                cash_out=cash_out,
                taxes_paid=taxes,
                net_cash_flow=net,
                cumulative_cash=cumulative,
            )
        )

    ending_cash = cumulative
    taxes_paid = profit.summary.total_operating_profit - profit.summary.total_net_profit
    monthly_burn = costs.summary.total_fixed / timeline.forecast_months

    return CashFlowResult(
        summary=CashFlowSummary(
            ending_cash_balance=ending_cash,
            peak_funding_need=peak_funding_need([r.cumulative_cash for r in rows]),
            runway=runway_months(ending_cash, monthly_burn),
            break_even_month=cash_break_even,
            estimated_taxes=taxes_paid,
            bridge=CashBridge(
                operating_profit=profit.summary.total_operating_profit,
                cogs_of_unsold_goods=costs.summary.cogs_of_unsold_goods,
                taxes_paid=taxes_paid,
                ending_cash_balance=ending_cash,
            ),
        ),
        monthly_cash_flow=tuple(rows),
    )
