from . import forecast_cmd, validate_cmd

__all__ = ["forecast_cmd", "validate_cmd"]
