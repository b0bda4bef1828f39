"""
Core module - configuration, logging, errors, shared aliases.

Components:
- config: Settings management via pydantic-settings
- errors: Exception hierarchy shared by every memory operation
- logging: Structured logging setup
- typing: Shared type aliases
"""

from keepsake.core.config import Settings, get_settings
from keepsake.core.errors import (
    ConfigurationError,
    DependencyError,
    EmptyInputError,
    EmptyResponseError,
    KeepsakeError,
    NotFoundError,
    ParseError,
    StrategyNotImplementedError,
    ValidationError,
)

__all__ = [
    "Settings",
    "get_settings",
    "KeepsakeError",
    "ValidationError",
    "EmptyInputError",
    "NotFoundError",
    "DependencyError",
    "ParseError",
    "EmptyResponseError",
    "ConfigurationError",
    "StrategyNotImplementedError",
]
