"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from enum import Enum
from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class LLMException(ExternalServiceException):
    """Exception for LLM API failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("LLM Service", message, details)


class AIErrorType(str, Enum):
    """Error categories for completion provider and generation failures."""
    INVALID_API_KEY = "INVALID_API_KEY"
    RATE_LIMIT = "RATE_LIMIT"
    CONTEXT_LENGTH = "CONTEXT_LENGTH"
    GENERATION_ERROR = "GENERATION_ERROR"
    CHAIN_ERROR = "CHAIN_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    CONTEXT_ERROR = "CONTEXT_ERROR"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"


class AIException(LLMException):
    """
    Typed generation failure.

    Carries the error category and the provider error that caused it.
    """

    def __init__(
        self,
        error_type: AIErrorType,
        message: str,
        original_error: Optional[BaseException] = None,
        details: Optional[dict] = None
    ):
        self.error_type = error_type
        self.original_error = original_error
        super().__init__(message, details)


def _status_code_of(error: BaseException) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None) or getattr(response, "status", None)
    return status if isinstance(status, int) else None


def classify_provider_error(error: BaseException) -> AIErrorType:
    """
    Map a raw provider error onto an AIErrorType.

    Rate limiting (HTTP 429) and context window overflows get their own
    categories; any other HTTP-level failure is a generation error.
    """
    if isinstance(error, AIException):
        return error.error_type

    status = _status_code_of(error)
    if status == 429:
        return AIErrorType.RATE_LIMIT
    if "maximum context length" in str(error):
        return AIErrorType.CONTEXT_LENGTH
    if status is not None:
        return AIErrorType.GENERATION_ERROR
    return AIErrorType.UNKNOWN
