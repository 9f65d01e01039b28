from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union


# =========================
# ENUMS
# =========================


class SalesModel(str, Enum):
    LAUNCH = "launch"
    EVEN = "even"
    SEASONAL = "seasonal"
    GROWTH = "growth"


class PaymentSchedule(str, Enum):
    UP_FRONT = "Paid Up-Front"
    MONTHLY = "Allocated Monthly"
    QUARTERLY = "Allocated Quarterly"
    ACCORDING_TO_SALES = "Allocated According to Sales"


class CostType(str, Enum):
    TOTAL_FOR_PERIOD = "Total for Period"
    MONTHLY_COST = "Monthly Cost"


class StartMonth(str, Enum):
    MONTH_0 = "Month 0"
    MONTH_1 = "Month 1"


class Currency(str, Enum):
    EUR = "EUR"
    USD = "USD"


class HealthBand(str, Enum):
    HEALTHY = "healthy"
    WATCH = "watch"
    CRITICAL = "critical"


# Column names the engine writes itself; inputs may not reuse them.
MONTH_KEY = "month"
DEPOSITS_KEY = "Deposits"
FINAL_PAYMENTS_KEY = "Final Payments"
RESERVED_KEYS = frozenset({MONTH_KEY, DEPOSITS_KEY, FINAL_PAYMENTS_KEY})


# =========================
# INPUT
# =========================


@dataclass(frozen=True, slots=True)
class Product:
    id: str
    name: str
    unit_cost: Optional[float]
    sell_price: Optional[float]
    deposit_pct: float = 0.0
    planned_units: Optional[float] = None
    sales_model: Optional[SalesModel] = None
    sell_through: Optional[float] = None


@dataclass(frozen=True, slots=True)
class FixedCostItem:
    id: str
    name: str
    amount: float
    payment_schedule: PaymentSchedule = PaymentSchedule.UP_FRONT
    cost_type: CostType = CostType.TOTAL_FOR_PERIOD
    start_month: StartMonth = StartMonth.MONTH_1


@dataclass(frozen=True, slots=True)
class Parameters:
    forecast_months: int
    tax_rate: float
    currency: Currency = Currency.EUR
    pre_order: bool = False


# Data sources form a closed union; handlers dispatch on all three.
@dataclass(frozen=True, slots=True)
class ManualSource:
    pass


@dataclass(frozen=True, slots=True)
class ShopifySource:
    api_key: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CsvSource:
    pass


DataSource = Union[ManualSource, ShopifySource, CsvSource]


@dataclass(frozen=True, slots=True)
class RealtimeSettings:
    source: DataSource = field(default_factory=ManualSource)
    timezone: str = "UTC"


@dataclass(frozen=True, slots=True)
class CompanyContext:
    brand: Optional[str] = None
    team_size: Optional[str] = None
    stage: Optional[str] = None
    production: Optional[str] = None
    industry: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EngineInput:
    products: Tuple[Product, ...]
    parameters: Parameters
    fixed_costs: Tuple[FixedCostItem, ...] = ()
    realtime: RealtimeSettings = field(default_factory=RealtimeSettings)
    company: Optional[CompanyContext] = None

    @property
    def is_manual(self) -> bool:
        return isinstance(self.realtime.source, ManualSource)


# =========================
# MONTHLY RECORDS
# =========================


@dataclass(frozen=True, slots=True)
class MonthlyRecord:
    """
    One month of an open-ended series table.

    `values` maps a series name (product or cost line) to its amount for the
    month; the set of names is decided by the input, not by this type.
    """

    month: int
    values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, key: str) -> float:
        return self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def get(self, key: str, default: float = 0.0) -> float:
        return self.values.get(key, default)

    def total(self, exclude: Iterable[str] = ()) -> float:
        skip = set(exclude)
        return sum(v for k, v in self.values.items() if k not in skip)

    def to_dict(self) -> Dict[str, Any]:
        return {MONTH_KEY: self.month, **self.values}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonthlyRecord):
            return NotImplemented
        return self.month == other.month and dict(self.values) == dict(other.values)

    def __hash__(self) -> int:
        return hash((self.month, tuple(self.values.items())))


# =========================
# OUTPUT
# =========================


@dataclass(frozen=True, slots=True)
class VariableCostBreakdown:
    name: str
    planned_units: float
    unit_cost: float
    total_production_cost: float
    deposit_paid: float
    remaining_cost: float


@dataclass(frozen=True, slots=True)
class FixedCostBreakdown:
    name: str
    amount: float
    payment_schedule: PaymentSchedule
    cost_type: CostType
    start_month: StartMonth
    period_total: float


@dataclass(frozen=True, slots=True)
class CostSummary:
    total_fixed: float
    total_variable: float
    total_operating: float
    avg_cost_per_unit: float
    total_planned_units: float
    total_deposits_paid: float
    total_final_payments: float
    cogs_of_unsold_goods: float
    fixed_costs: Tuple[FixedCostBreakdown, ...] = ()
    variable_costs: Tuple[VariableCostBreakdown, ...] = ()


@dataclass(frozen=True, slots=True)
class RevenueProductBreakdown:
    name: str
    total_revenue: float
    total_sold_units: float


@dataclass(frozen=True, slots=True)
class RevenueSummary:
    total_revenue: float
    avg_revenue_per_unit: float
    total_sold_units: float
    product_breakdown: Tuple[RevenueProductBreakdown, ...] = ()


@dataclass(frozen=True, slots=True)
class MonthlyProfit:
    month: int
    revenue: float
    cogs: float
    fixed_costs: float
    gross_profit: float
    operating_profit: float
    net_profit: float
    cumulative_operating_profit: float


@dataclass(frozen=True, slots=True)
class ProfitSummary:
    total_gross_profit: float
    total_operating_profit: float
    total_net_profit: float
    gross_margin: float
    operating_margin: float
    net_margin: float
    break_even_month: Optional[int]
    potential_gross_profit: Optional[float] = None


@dataclass(frozen=True, slots=True)
class MonthlyCashFlow:
    month: int
    cash_in: float
    cash_out: float
    taxes_paid: float
    net_cash_flow: float
    cumulative_cash: float


@dataclass(frozen=True, slots=True)
class CashBridge:
    operating_profit: float
    cogs_of_unsold_goods: float
    taxes_paid: float
    ending_cash_balance: float


@dataclass(frozen=True, slots=True)
class CashFlowSummary:
    ending_cash_balance: float
    peak_funding_need: float
    runway: float
    break_even_month: Optional[int]
    estimated_taxes: float
    bridge: CashBridge
    potential_cash_balance: Optional[float] = None


@dataclass(frozen=True, slots=True)
class HealthKpi:
    key: str
    label: str
    metric: float
    benchmark: float
    value: float
    weight: float


@dataclass(frozen=True, slots=True)
class BusinessHealth:
    score: float
    band: HealthBand
    kpis: Tuple[HealthKpi, ...] = ()

    def kpi(self, key: str) -> HealthKpi:
        for k in self.kpis:
            if k.key == key:
                return k
        raise KeyError(key)


@dataclass(frozen=True, slots=True)
class EngineOutput:
    cost_summary: CostSummary
    monthly_costs: Tuple[MonthlyRecord, ...]
    revenue_summary: RevenueSummary
    monthly_revenue: Tuple[MonthlyRecord, ...]
    monthly_units_sold: Tuple[MonthlyRecord, ...]
    profit_summary: ProfitSummary
    monthly_profit: Tuple[MonthlyProfit, ...]
    cash_flow_summary: CashFlowSummary
    monthly_cash_flow: Tuple[MonthlyCashFlow, ...]
    business_health: Optional[BusinessHealth] = None

    def to_dict(self) -> Dict[str, Any]:
        return to_wire(self)

    def to_json(self, **kwargs: Any) -> str:
        # allow_nan keeps an infinite runway as the JSON token Infinity
        return json.dumps(self.to_dict(), allow_nan=True, **kwargs)


# =========================
# WIRE FORMAT
# =========================


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)


def to_wire(obj: Any) -> Any:
    """
    Convert engine values to the camelCase JSON-ready shape.

    Series names inside monthly records are user data and are kept verbatim.
    """
    if isinstance(obj, MonthlyRecord):
        return obj.to_dict()
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        if isinstance(obj, (ManualSource, ShopifySource, CsvSource)):
            return data_source_name(obj)
        return {_camel(f.name): to_wire(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Mapping):
        return {k: to_wire(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_wire(v) for v in obj]
    if isinstance(obj, float) and math.isnan(obj):
        raise ValueError("NaN is not a valid forecast value")
    return obj


def data_source_name(source: DataSource) -> str:
    if isinstance(source, ManualSource):
        return "Manual"
    if isinstance(source, ShopifySource):
        return "Shopify"
    if isinstance(source, CsvSource):
        return "CSV"
    raise TypeError(f"unknown data source: {source!r}")
