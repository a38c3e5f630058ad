"""Exception types raised by the entropy scaling models."""


class ConfigurationError(ValueError):
    """Raised when a parameter set, model or call is configured inconsistently."""


class ConvergenceError(RuntimeError):
    """Raised when an embedded optimistix solver does not converge."""


class MissingParametersError(KeyError):
    """Raised when a model holds no parameters for the requested property."""


class DataShapeError(ValueError):
    """Raised when the vectors of an experimental dataset do not fit together."""
