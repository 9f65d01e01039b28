"""
plaza.forecast

Pure forecasting engine: input model and validator, sales curves, and the
revenue, cost, profit, cash-flow and health computations. No I/O.
"""
from .curves import aggregated_sales_weights, sales_weights
from .engine import calculate_forecast, check_business_rules, run_forecast
from .health import score_health
from .model import (
    BusinessHealth,
    CostType,
    CsvSource,
    Currency,
    EngineInput,
    EngineOutput,
    FixedCostItem,
    ManualSource,
    MonthlyRecord,
    Parameters,
    PaymentSchedule,
    Product,
    RealtimeSettings,
    SalesModel,
    ShopifySource,
    StartMonth,
)
from .schema import validate, validate_or_raise

__all__ = [
    "aggregated_sales_weights",
    "sales_weights",
    "calculate_forecast",
    "check_business_rules",
    "run_forecast",
    "score_health",
    "BusinessHealth",
    "CostType",
    "CsvSource",
    "Currency",
    "EngineInput",
    "EngineOutput",
    "FixedCostItem",
    "ManualSource",
    "MonthlyRecord",
    "Parameters",
    "PaymentSchedule",
    "Product",
    "RealtimeSettings",
    "SalesModel",
    "ShopifySource",
    "StartMonth",
    "validate",
    "validate_or_raise",
]
