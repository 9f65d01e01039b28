from __future__ import annotations

from math import exp
from typing import List, Sequence

import deal

from plaza.forecast.model import EngineInput, Product, SalesModel

# Launch curve split by horizon length; longer horizons get zeros after month 3.
_LAUNCH_SPLITS = {
    1: (1.0,),
    2: (0.7, 0.3),
    3: (0.6, 0.3, 0.1),
}


def _normalized(raw: Sequence[float]) -> List[float]:
    total = sum(raw)
    if total <= 0:
        return [0.0] * len(raw)
    return [w / total for w in raw]


@deal.pre(lambda months, model: isinstance(model, SalesModel), message="model must be a SalesModel")
@deal.ensure(lambda months, model, result: len(result) == max(months, 0), message="one weight per month")
@deal.post(lambda result: all(w >= 0.0 for w in result), message="weights must be non-negative")
@deal.raises(ValueError, deal.RaisesContractError)
def sales_weights(months: int, model: SalesModel) -> List[float]:
    """
    Share of a product's sales that falls in each of `months` months.

    launch   front-loaded fixed split (60/30/10, 70/30 or 100)
    even     1/months each
    seasonal Gaussian bell centred on the middle month, sigma = months/4
    growth   linear ramp 1, 2, ..., months

    Weights sum to 1.0, or are all zero when months <= 0.
    """
    if months <= 0:
        return []

    if model is SalesModel.LAUNCH:
        split = _LAUNCH_SPLITS[min(months, 3)]
        return list(split) + [0.0] * (months - len(split))

    if model is SalesModel.EVEN:
        return [1.0 / months] * months

    if model is SalesModel.SEASONAL:
        mid = (months - 1) / 2
        sigma = months / 4
        return _normalized([exp(-((i - mid) ** 2) / (2 * sigma ** 2)) for i in range(months)])

    if model is SalesModel.GROWTH:
        return _normalized([float(i + 1) for i in range(months)])

    raise ValueError(f"unknown sales model: {model!r}")


def product_curve(product: Product, months: int) -> List[float]:
    return sales_weights(months, product.sales_model or SalesModel.LAUNCH)


def _economic_size(product: Product, manual: bool) -> float:
    price = product.sell_price or 0.0
    if manual:
        return (product.planned_units or 0.0) * price
    return price


@deal.ensure(
    lambda inputs, months, result: len(result) == max(months, 0),
    message="one weight per month",
)
@deal.raises(deal.RaisesContractError)
def aggregated_sales_weights(inputs: EngineInput, months: int) -> List[float]:
    """
    Blend every product's curve into one monthly weight vector, each product
    weighted by its economic size. Falls back to a uniform vector when no
    product has any size.
    """
    if months <= 0:
        return []

    manual = inputs.is_manual
    blended = [0.0] * months
    total_value = 0.0

    for product in inputs.products:
        value = _economic_size(product, manual)
        for i, w in enumerate(product_curve(product, months)):
            blended[i] += w * value
        total_value += value

    if total_value == 0:
        return [1.0 / months] * months

    return [w / total_value for w in blended]
