"""
Custom exceptions for the sync pipeline with structured error context.

Each exception carries context information for debugging. Benign upstream
conditions (HTTP 400 on a listing, an unparsable pagination envelope, a
record with the wrong shape) never raise; everything in this module is
fatal for the current sync run.

Exception Hierarchy:
    SyncException (base)
    ├── ConfigurationError
    │   └── ObjectTypeNotFoundError (also an ExtractionError)
    ├── ExtractionError
    │   ├── FetchError
    │   └── AuthenticationError
    ├── LoadError
    │   └── SinkTransmissionError
    └── CrawlerError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class SyncException(Exception):
    """
    Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, url, status, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        # Add timestamp to context
        self.context["error_timestamp"] = self.timestamp.isoformat()

        # Chain original exception if provided
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(SyncException):
    """
    Exception raised when the sync is not configured correctly.

    Context should include:
        - variable: Name of the missing or invalid environment variable
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(SyncException):
    """Base exception for upstream extraction failures."""
    pass


class FetchError(ExtractionError):
    """
    Exception raised when a page request fails with anything but HTTP 400.

    Context should include:
        - url: The url that failed
        - status_code: HTTP status code (if a response was received)
        - response_body: Response body (truncated if large)
    """
    pass


class AuthenticationError(ExtractionError):
    """Exception raised when a bearer credential cannot be acquired."""
    pass


class ObjectTypeNotFoundError(ConfigurationError, ExtractionError):
    """
    Exception raised when a required object type is missing upstream.

    Context should include:
        - object_type: Name of the object type that was looked up
        - url: The object types listing url
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(SyncException):
    """Base exception for indexing failures."""
    pass


class SinkTransmissionError(LoadError):
    """
    Exception raised when a bulk request is rejected by the search backend.

    Batches sent before the failing one stay indexed.

    Context should include:
        - url: The documents endpoint
        - status_code: HTTP status code (if a response was received)
        - batch_number: 1-based number of the failing batch
    """
    pass


class CrawlerError(SyncException):
    """
    Exception raised when crawler provisioning or the crawl request fails.

    Context should include:
        - domain: The domain that was being crawled
        - status_code: HTTP status code
    """
    pass
