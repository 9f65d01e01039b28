from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, assert_never

import deal

from plaza.forecast.curves import product_curve
from plaza.forecast.model import (
    CsvSource,
    EngineInput,
    ManualSource,
    MonthlyRecord,
    Product,
    RevenueProductBreakdown,
    RevenueSummary,
    ShopifySource,
)
from plaza.forecast.timeline import MonthlyLedger, Timeline


@dataclass(frozen=True, slots=True)
class RevenueResult:
    summary: RevenueSummary
    monthly_revenue: Tuple[MonthlyRecord, ...]
    monthly_units_sold: Tuple[MonthlyRecord, ...]


def _manual_product(
    product: Product,
    timeline: Timeline,
    revenue: MonthlyLedger,
    units: MonthlyLedger,
) -> RevenueProductBreakdown:
    sold_units = (product.planned_units or 0.0) * ((product.sell_through or 0.0) / 100)
    price = product.sell_price or 0.0
    total_revenue = sold_units * price

    weights = product_curve(product, len(timeline.sales_months))
    for month, w in zip(timeline.sales_months, weights):
        month_units = sold_units * w
        units.post(month, product.name, month_units)
        revenue.post(month, product.name, month_units * price)

    return RevenueProductBreakdown(
        name=product.name,
        total_revenue=total_revenue,
        total_sold_units=sold_units,
    )


def _product_breakdown(
    inputs: EngineInput,
    timeline: Timeline,
    revenue: MonthlyLedger,
    units: MonthlyLedger,
) -> List[RevenueProductBreakdown]:
    source = inputs.realtime.source
    if isinstance(source, ManualSource):
        return [_manual_product(p, timeline, revenue, units) for p in inputs.products]
    if isinstance(source, (ShopifySource, CsvSource)):
        # Live sources are not wired in yet: they contribute no revenue and no
        # units until an importer exists for them.
        return [RevenueProductBreakdown(name=p.name, total_revenue=0.0, total_sold_units=0.0) for p in inputs.products]
    assert_never(source)


@deal.ensure(
    lambda inputs, timeline, result: len(result.monthly_revenue) == len(timeline.months),
    message="one revenue row per timeline month",
)
@deal.post(lambda result: result.summary.total_revenue >= 0, message="revenue must be non-negative")
@deal.raises(deal.RaisesContractError)
def calculate_revenue(inputs: EngineInput, timeline: Timeline) -> RevenueResult:
    """
    Sold units and revenue per product, spread over the sales months with
    each product's own curve. Month 0 (pre-order) gets zero rows.
    """
    revenue = MonthlyLedger(timeline)
    units = MonthlyLedger(timeline)

    breakdown = _product_breakdown(inputs, timeline, revenue, units)

    total_sold_units = sum(p.total_sold_units for p in breakdown)
    total_revenue = sum(p.total_revenue for p in breakdown)
    avg_revenue_per_unit = total_revenue / total_sold_units if total_sold_units > 0 else 0.0

    columns = [p.name for p in inputs.products]
    return RevenueResult(
        summary=RevenueSummary(
            total_revenue=total_revenue,
            avg_revenue_per_unit=avg_revenue_per_unit,
            total_sold_units=total_sold_units,
            product_breakdown=tuple(breakdown),
        ),
        monthly_revenue=revenue.freeze(columns),
        monthly_units_sold=units.freeze(columns),
    )
