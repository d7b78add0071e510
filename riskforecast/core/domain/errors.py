"""
Error types raised by the forecasting core.
"""


class InvalidInputError(ValueError):
    """Raised when a caller passes non-numeric, NaN or out-of-range input."""
