"""Exception types raised by the growth assessment engine."""


class InvalidArgumentError(ValueError):
    """Raised when a caller supplies an input the engine cannot score."""


class ReferenceDataError(ValueError):
    """Raised when LMS reference data is missing or malformed."""
