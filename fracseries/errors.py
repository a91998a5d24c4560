class FracSeriesError(Exception):
    """Base class for errors raised by fracseries."""


class ConfigError(FracSeriesError, ValueError):
    """Invalid analysis configuration."""


class InputFormatError(FracSeriesError, ValueError):
    """The input archive is unreadable or does not hold a usable 4D array."""


class NumericalError(FracSeriesError, ArithmeticError):
    """A frame produced a degenerate scaling curve (fewer than 2 usable scales)."""
