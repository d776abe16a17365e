"""
Forecasting errors

Only caller bugs are raised. Short histories are reported through
`available` / `sufficient_data` fields on the results instead.
"""


class ForecastError(Exception):
    """Base class for forecasting errors"""


class InvalidArgumentError(ForecastError, ValueError):
    """Raised when a caller passes an argument the engine cannot use"""
