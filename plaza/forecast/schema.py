from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from plaza.core.errors import FieldPath, InputValidationError
from plaza.core.result import Err, Ok, Result
from plaza.forecast.model import (
    CompanyContext,
    CostType,
    CsvSource,
    Currency,
    EngineInput,
    FixedCostItem,
    ManualSource,
    Parameters,
    PaymentSchedule,
    Product,
    RealtimeSettings,
    SalesModel,
    ShopifySource,
    StartMonth,
)
from plaza.infra.logging_config import get_logger

logger = get_logger(__name__)


# =========================
# WIRE SCHEMA (camelCase JSON)
# =========================


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True, allow_inf_nan=False)


class CompanyContextSchema(_Schema):
    brand: Optional[str] = None
    team_size: Optional[Literal["solo", "2-5", "6-20", ">20"]] = Field(default=None, alias="teamSize")
    stage: Optional[Literal["idea", "launch", "growth", "scale"]] = None
    production: Optional[Literal["preorder", "stock", "ondemand"]] = None
    industry: Optional[Literal["fashion", "jewelry", "cosmetics", "food", "digital", "other"]] = None


class ProductSchema(_Schema):
    id: str
    product_name: str = Field(alias="productName", min_length=1)
    planned_units: Optional[float] = Field(default=None, alias="plannedUnits", ge=0, strict=True)
    unit_cost: float = Field(alias="unitCost", ge=0, strict=True)
    sell_price: float = Field(alias="sellPrice", ge=0, strict=True)
    sales_model: Optional[SalesModel] = Field(default=None, alias="salesModel")
    sell_through: Optional[float] = Field(default=None, alias="sellThrough", ge=0, le=100, strict=True)
    deposit_pct: float = Field(alias="depositPct", ge=0, le=100, strict=True)


class FixedCostItemSchema(_Schema):
    id: str
    name: str = Field(min_length=1)
    amount: float = Field(ge=0, strict=True)
    payment_schedule: PaymentSchedule = Field(alias="paymentSchedule")
    cost_type: CostType = Field(default=CostType.TOTAL_FOR_PERIOD, alias="costType")
    start_month: StartMonth = Field(default=StartMonth.MONTH_1, alias="startMonth")


class ParametersSchema(_Schema):
    forecast_months: int = Field(alias="forecastMonths", strict=True)
    tax_rate: float = Field(alias="taxRate", ge=0, le=100, strict=True)
    currency: Currency
    pre_order: bool = Field(default=False, alias="preOrder", strict=True)

    @field_validator("forecast_months")
    @classmethod
    def _horizon(cls, v: int) -> int:
        if v < 1 or v > 36:
            raise ValueError("Forecast Months must be between 1 and 36.")
        return v


class RealtimeSettingsSchema(_Schema):
    data_source: Literal["Manual", "Shopify", "CSV"] = Field(alias="dataSource")
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    timezone: str = "UTC"


class EngineInputSchema(_Schema):
    company: Optional[CompanyContextSchema] = None
    products: List[ProductSchema]
    fixed_costs: List[FixedCostItemSchema] = Field(default_factory=list, alias="fixedCosts")
    parameters: ParametersSchema
    realtime: RealtimeSettingsSchema

    @field_validator("products")
    @classmethod
    def _at_least_one(cls, v: List[ProductSchema]) -> List[ProductSchema]:
        if not v:
            raise ValueError("At least one product is required.")
        return v

    def to_engine_input(self) -> EngineInput:
        return EngineInput(
            products=tuple(
                Product(
                    id=p.id,
                    name=p.product_name,
                    unit_cost=p.unit_cost,
                    sell_price=p.sell_price,
                    deposit_pct=p.deposit_pct,
                    planned_units=p.planned_units,
                    sales_model=p.sales_model,
                    sell_through=p.sell_through,
                )
                for p in self.products
            ),
            fixed_costs=tuple(
                FixedCostItem(
                    id=c.id,
                    name=c.name,
                    amount=c.amount,
                    payment_schedule=c.payment_schedule,
                    cost_type=c.cost_type,
                    start_month=c.start_month,
                )
                for c in self.fixed_costs
            ),
            parameters=Parameters(
                forecast_months=self.parameters.forecast_months,
                tax_rate=self.parameters.tax_rate,
                currency=self.parameters.currency,
                pre_order=self.parameters.pre_order,
            ),
            realtime=RealtimeSettings(
                source=_data_source(self.realtime),
                timezone=self.realtime.timezone,
            ),
            company=(
                CompanyContext(
                    brand=self.company.brand,
                    team_size=self.company.team_size,
                    stage=self.company.stage,
                    production=self.company.production,
                    industry=self.company.industry,
                )
                if self.company is not None
                else None
            ),
        )


def _data_source(rt: RealtimeSettingsSchema):
    if rt.data_source == "Manual":
        return ManualSource()
    if rt.data_source == "Shopify":
        return ShopifySource(api_key=rt.api_key)
    return CsvSource()


# =========================
# FIRST-ERROR MESSAGES
# =========================

_LABELS: Dict[str, str] = {
    # parameters
    "forecastMonths": "Forecast Months",
    "taxRate": "Tax Rate",
    "currency": "Currency",
    "preOrder": "Pre-Order Mode",
    # products
    "productName": "Product Name",
    "plannedUnits": "Planned Units",
    "unitCost": "Unit Cost",
    "sellPrice": "Sell Price",
    "salesModel": "Sales Model",
    "sellThrough": "Sell-Through",
    "depositPct": "Deposit %",
    # fixed costs
    "name": "Cost Name",
    "amount": "Amount",
    "paymentSchedule": "Payment Schedule",
    "costType": "Cost Type",
    "startMonth": "Start Month",
    # realtime / sections
    "dataSource": "Data Source",
    "timezone": "Timezone",
    "products": "Products",
    "fixedCosts": "Fixed Costs",
    "parameters": "Parameters",
    "realtime": "Realtime Settings",
    "company": "Company",
    "id": "ID",
}

_ITEM_NOUNS = {"products": "Product", "fixedCosts": "Fixed cost"}


def _where(loc: FieldPath) -> str:
    # ("products", 1, "unitCost") -> "Product 2 "
    if len(loc) >= 2 and isinstance(loc[1], int) and loc[0] in _ITEM_NOUNS:
        return f"{_ITEM_NOUNS[str(loc[0])]} {loc[1] + 1} "
    return ""


def first_error_message(error: Mapping[str, Any]) -> str:
    loc: FieldPath = tuple(error.get("loc") or ())
    ctx = error.get("ctx") or {}
    if error.get("type") == "value_error" and "error" in ctx:
        # Custom rule: message is already user-facing.
        return str(ctx["error"])

    names = [p for p in loc if isinstance(p, str)]
    field_name = names[-1] if names else ""
    label = _LABELS.get(field_name, field_name or "Input")
    if error.get("type") == "missing":
        return f"{_where(loc)}{label} is required."
    return f"{_where(loc)}{label}: {error.get('msg', 'invalid value')}"


# =========================
# PUBLIC API
# =========================


def validate(raw: Any) -> Result[EngineInput, InputValidationError]:
    """
    Validate raw (JSON-decoded) input.

    Returns Ok(EngineInput) with defaults applied, or Err carrying only the
    first violated rule; later violations are not reported.
    """
    if not isinstance(raw, Mapping):
        return Err(InputValidationError("Input must be a JSON object."))

    try:
        parsed = EngineInputSchema.model_validate(dict(raw))
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        first = errors[0]
        message = first_error_message(first)
        logger.info(
            "Input rejected",
            extra={"extra_data": {"field": list(first.get("loc") or ()), "error_count": len(errors)}},
        )
        return Err(InputValidationError(message, field=tuple(first.get("loc") or ())))

    return Ok(parsed.to_engine_input())


def validate_or_raise(raw: Any) -> EngineInput:
    return validate(raw).unwrap()
