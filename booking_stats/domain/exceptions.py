"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidConfigurationError(DomainException):
    """Programmer error: unknown dimension, bad category config or sort metric"""

    pass


class InvalidFinancialYearError(InvalidConfigurationError):
    """Financial year label could not be parsed"""

    pass
