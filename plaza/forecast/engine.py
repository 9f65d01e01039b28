from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

import deal

from plaza.core.errors import UNKNOWN_ERROR_MESSAGE, BusinessRuleError, ForecastError, InputValidationError
from plaza.forecast.cashflow import CashFlowResult, calculate_cash_flow
from plaza.forecast.costs import CostResult, calculate_costs
from plaza.forecast.health import score_health
from plaza.forecast.model import RESERVED_KEYS, EngineInput, EngineOutput, data_source_name
from plaza.forecast.profit import ProfitResult, calculate_profit
from plaza.forecast.revenue import RevenueResult, calculate_revenue
from plaza.forecast.schema import validate_or_raise
from plaza.forecast.timeline import Timeline
from plaza.infra.config_loader import HealthConfig
from plaza.infra.logging_config import get_logger

logger = get_logger(__name__)

MIN_FORECAST_MONTHS = 1
MAX_FORECAST_MONTHS = 36


@dataclass(frozen=True, slots=True)
class _Scenario:
    revenue: RevenueResult
    costs: CostResult
    profit: ProfitResult
    cash: CashFlowResult


def check_business_rules(inputs: EngineInput) -> None:
    """
    Cross-field checks run before any monthly math; the first failure raises.

    Implausible-but-valid data (unit cost above sell price) is only logged.
    """
    months = inputs.parameters.forecast_months
    if months < MIN_FORECAST_MONTHS or months > MAX_FORECAST_MONTHS:
        raise BusinessRuleError("Forecast Months must be between 1 and 36.")
    if not inputs.products:
        raise BusinessRuleError("At least one product is required.")

    for p in inputs.products:
        label = p.name or "Unnamed"
        if p.unit_cost is None or p.sell_price is None:
            raise BusinessRuleError(f'Product "{label}" must have a Unit Cost and Sales Price.')
        if inputs.is_manual and (p.planned_units is None or p.sell_through is None or p.sales_model is None):
            raise BusinessRuleError(
                f'Product "{label}" is missing required fields for manual forecasting '
                "(plannedUnits, sellThrough, or salesModel)."
            )
        if p.name in RESERVED_KEYS:
            raise BusinessRuleError(f'Product name "{p.name}" is reserved; please rename the product.')
        if p.unit_cost > p.sell_price:
            logger.warning(
                "Unit cost is higher than sell price",
                extra={"extra_data": {"product": label, "unit_cost": p.unit_cost, "sell_price": p.sell_price}},
            )

    for c in inputs.fixed_costs:
        if c.name in RESERVED_KEYS:
            raise BusinessRuleError(f'Fixed cost name "{c.name}" is reserved; please rename the cost.')


def _run_scenario(inputs: EngineInput) -> _Scenario:
    timeline = Timeline(inputs.parameters.forecast_months, inputs.parameters.pre_order)
    revenue = calculate_revenue(inputs, timeline)
    costs = calculate_costs(inputs, timeline, revenue)
    profit = calculate_profit(timeline, revenue, costs, inputs.parameters.tax_rate)
    cash = calculate_cash_flow(timeline, revenue, costs, profit)
    logger.debug(
        "Scenario computed",
        extra={
            "extra_data": {
                "months": len(timeline.months),
                "data_source": data_source_name(inputs.realtime.source),
                "total_revenue": revenue.summary.total_revenue,
                "ending_cash": cash.summary.ending_cash_balance,
            }
        },
    )
    return _Scenario(revenue=revenue, costs=costs, profit=profit, cash=cash)


def full_sell_through(inputs: EngineInput) -> EngineInput:
    """Same plan with every product selling its whole planned quantity."""
    return replace(inputs, products=tuple(replace(p, sell_through=100.0) for p in inputs.products))


@deal.raises(ForecastError, BusinessRuleError, InputValidationError)
def calculate_forecast(inputs: EngineInput, health_config: Optional[HealthConfig] = None) -> EngineOutput:
    """
    Run the whole forecast for one validated input.

    Returns a complete EngineOutput or raises a single ForecastError; nothing
    is returned half-computed. The "potential" figures come from the same plan
    at 100% sell-through.
    """
    try:
        check_business_rules(inputs)

        achieved = _run_scenario(inputs)
        potential = _run_scenario(full_sell_through(inputs))

        profit_summary = replace(
            achieved.profit.summary,
            potential_gross_profit=potential.profit.summary.total_gross_profit,
        )
        cash_summary = replace(
            achieved.cash.summary,
            potential_cash_balance=potential.cash.summary.ending_cash_balance,
        )
        health = score_health(
            achieved.costs.summary,
            achieved.revenue.summary,
            profit_summary,
            health_config,
        )
    except ForecastError:
        raise
    except Exception as exc:
        logger.exception("Error in financial calculation")
        raise ForecastError(UNKNOWN_ERROR_MESSAGE) from exc

    return EngineOutput(
        cost_summary=achieved.costs.summary,
        monthly_costs=achieved.costs.monthly_costs,
        revenue_summary=achieved.revenue.summary,
        monthly_revenue=achieved.revenue.monthly_revenue,
        monthly_units_sold=achieved.revenue.monthly_units_sold,
        profit_summary=profit_summary,
        monthly_profit=achieved.profit.monthly_profit,
        cash_flow_summary=cash_summary,
        monthly_cash_flow=achieved.cash.monthly_cash_flow,
        business_health=health,
    )


def run_forecast(raw: Any, health_config: Optional[HealthConfig] = None) -> EngineOutput:
    """Validate raw JSON-like input, then forecast. Raises InputValidationError first."""
    return calculate_forecast(validate_or_raise(raw), health_config)
