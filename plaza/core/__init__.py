from .errors import BusinessRuleError, ForecastError, InputValidationError
from .result import Err, Ok, Result

__all__ = [
    "BusinessRuleError",
    "ForecastError",
    "InputValidationError",
    "Err",
    "Ok",
    "Result",
]
