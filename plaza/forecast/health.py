from __future__ import annotations

from typing import Optional

import deal

from plaza.forecast.model import (
    BusinessHealth,
    CostSummary,
    HealthBand,
    HealthKpi,
    ProfitSummary,
    RevenueSummary,
)
from plaza.infra.config_loader import HealthConfig

_WATCH_BELOW = 75.0
_CRITICAL_BELOW = 50.0


def _clip(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def normalized_score(metric: float, benchmark: float) -> float:
    """0..100: 100 at or above the benchmark, 0 at or below zero."""
    return _clip(metric / benchmark * 100.0, 0.0, 100.0)


def band_for(score: float) -> HealthBand:
    if score < _CRITICAL_BELOW:
        return HealthBand.CRITICAL
    if score < _WATCH_BELOW:
        return HealthBand.WATCH
    return HealthBand.HEALTHY


def _pct(part: float, whole: float) -> float:
    return part / whole * 100.0 if whole > 0 else 0.0


@deal.post(lambda result: 0.0 <= result.score <= 100.0, message="score must be 0..100")
@deal.post(lambda result: all(0.0 <= k.value <= 100.0 for k in result.kpis), message="sub-scores must be 0..100")
@deal.raises(deal.RaisesContractError)
def score_health(
    cost: CostSummary,
    revenue: RevenueSummary,
    profit: ProfitSummary,
    config: Optional[HealthConfig] = None,
) -> BusinessHealth:
    """
    Composite 0..100 business health score.

    profitability  net margin
    liquidity      cash margin: net profit less cash tied in unsold stock
    efficiency     gross margin
    demand         sell-through of planned units

    Each metric is scored against its benchmark and the overall score is the
    weighted sum. Only the three summaries are read, so the score can be
    recomputed from a stored forecast.
    """
    cfg = config or HealthConfig()
    w = cfg.weights
    b = cfg.benchmarks

    cash_margin = _pct(profit.total_net_profit - cost.cogs_of_unsold_goods, revenue.total_revenue)
    sell_through = _pct(revenue.total_sold_units, cost.total_planned_units)

    kpis = (
        HealthKpi("profitability", "Profitability", profit.net_margin, b.net_margin_pct,
                  normalized_score(profit.net_margin, b.net_margin_pct), w.profitability),
        HealthKpi("liquidity", "Liquidity", cash_margin, b.cash_margin_pct,
                  normalized_score(cash_margin, b.cash_margin_pct), w.liquidity),
        HealthKpi("efficiency", "Efficiency", profit.gross_margin, b.gross_margin_pct,
                  normalized_score(profit.gross_margin, b.gross_margin_pct), w.efficiency),
        HealthKpi("demand", "Demand", sell_through, b.sell_through_pct,
                  normalized_score(sell_through, b.sell_through_pct), w.demand),
    )

    score = _clip(sum(k.value * k.weight for k in kpis), 0.0, 100.0)
    return BusinessHealth(score=score, band=band_for(score), kpis=kpis)
