"""
Exception hierarchy.

Every memory operation raises a KeepsakeError subclass. Nothing is retried
internally; callers decide what to do.
"""


class KeepsakeError(Exception):
    """Base class for all keepsake errors."""


class ValidationError(KeepsakeError):
    """Invalid input: blank text, empty query, empty memory list."""


class EmptyInputError(ValidationError):
    """An operation that needs at least one item received none."""


class NotFoundError(KeepsakeError):
    """Unknown memory id or missing session summary."""


class DependencyError(KeepsakeError):
    """An Oracle or embedding provider call failed.

    Raised ``from`` the underlying exception so the original traceback
    survives. The message never includes credentials.
    """

    def __init__(self, operation: str, cause: BaseException | str):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class ParseError(KeepsakeError):
    """Structured Oracle reply could not be parsed."""


class EmptyResponseError(KeepsakeError):
    """Oracle returned no content at all."""


class ConfigurationError(KeepsakeError):
    """Unknown strategy, missing collaborator, bad settings."""


class StrategyNotImplementedError(ConfigurationError):
    """Strategy type is reserved but has no implementation yet."""
