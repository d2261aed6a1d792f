"""Custom exception classes for the QuoteCraft API.

Only two failure kinds are ever visible to clients as distinguished outcomes:
invalid input (400) and an upstream rate limit (429). Everything else is
absorbed by the feature pipelines and degrades to a locally generated result.
"""

from typing import Dict, Any, Optional
from fastapi import HTTPException


class QuoteCraftException(Exception):
    """Base exception for all QuoteCraft API errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputException(QuoteCraftException):
    """Raised when a request is missing usable quote text."""

    def __init__(self, field: str = "text", message: str = "Invalid request. Text is required."):
        self.field = field
        super().__init__(message, {"field": field})


class GeminiException(QuoteCraftException):
    """Raised when a Gemini API call fails."""

    def __init__(self,
                 message: str,
                 status_code: Optional[int] = None,
                 model: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.model = model
        super().__init__(message, details)


class GeminiRateLimitException(GeminiException):
    """Raised when the Gemini API throttles requests."""

    def __init__(self, retry_after: Optional[int] = None, model: Optional[str] = None,
                 message: str = "Gemini API rate limit exceeded"):
        self.retry_after = retry_after
        details = {"retry_after_seconds": retry_after} if retry_after else {}
        super().__init__(message, status_code=429, model=model, details=details)


class StockPhotoException(QuoteCraftException):
    """Raised when a stock photo search fails."""

    def __init__(self,
                 provider: str,
                 keyword: str,
                 status_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.provider = provider
        self.keyword = keyword
        self.status_code = status_code
        message = f"{provider} search failed for '{keyword}'"
        photo_details = details or {}
        if status_code:
            photo_details["status_code"] = status_code
        super().__init__(message, photo_details)


# HTTP Exception converters for FastAPI
def to_http_exception(exc: QuoteCraftException, status_code: int = 500) -> HTTPException:
    """Convert custom exception to HTTPException for FastAPI."""
    detail = {
        "error": exc.message,
        "type": exc.__class__.__name__,
        **exc.details
    }
    return HTTPException(status_code=status_code, detail=detail)


def invalid_input_to_http_exception(exc: InvalidInputException) -> HTTPException:
    """Invalid input keeps the flat error body the editor expects."""
    return HTTPException(status_code=400, detail={"error": exc.message})


# Exception handler registry
EXCEPTION_HANDLERS = {
    InvalidInputException: invalid_input_to_http_exception,
}
