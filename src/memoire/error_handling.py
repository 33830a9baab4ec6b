"""
Centralized error handling and classification for memoire application.

This module provides error classification, handling, and user-friendly
error message generation for all application components.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .logging_config import get_logger, log_error, log_security_event

logger = get_logger(__name__)

GENERIC_UPLOAD_MESSAGE = "Error uploading files. Please try again."


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    UPLOAD = "upload"
    MEDIA_PROCESSING = "media_processing"
    DATABASE = "database"
    STORAGE = "storage"
    VALIDATION = "validation"
    NETWORK = "network"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_DEFAULT_USER_MESSAGES = {
    ErrorCategory.AUTHENTICATION: "Sign-in failed. Please check your credentials.",
    ErrorCategory.AUTHORIZATION: "You are not allowed to perform this action.",
    ErrorCategory.UPLOAD: GENERIC_UPLOAD_MESSAGE,
    ErrorCategory.MEDIA_PROCESSING: "The file could not be processed. Please check the file format.",
    ErrorCategory.DATABASE: "Could not reach the memory archive. Please try again.",
    ErrorCategory.STORAGE: "Could not reach file storage. Please try again.",
    ErrorCategory.VALIDATION: "Please check your input.",
    ErrorCategory.NETWORK: "A network error occurred. Please try again.",
    ErrorCategory.SYSTEM: "A system error occurred.",
    ErrorCategory.UNKNOWN: "An unexpected error occurred.",
}


@dataclass
class ErrorInfo:
    """Structured error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    code: str
    message: str
    user_message: str
    details: dict[str, Any]
    timestamp: datetime
    recoverable: bool = True
    retry_suggested: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "retry_suggested": self.retry_suggested,
        }


class MemoireError(Exception):
    """Base exception class for memoire application."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
        retry_suggested: bool = False,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.code = code or f"{category.value}_error"
        self.user_message = user_message or _DEFAULT_USER_MESSAGES.get(category, "An error occurred.")
        self.details = details or {}
        self.recoverable = recoverable
        self.retry_suggested = retry_suggested
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with its classification."""
        error_context = {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "recoverable": self.recoverable,
            "retry_suggested": self.retry_suggested,
            **self.details,
        }

        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        log_error(self, error_context)

        if self.category in [ErrorCategory.AUTHENTICATION, ErrorCategory.AUTHORIZATION]:
            log_security_event(self.category.value, context=error_context)

    def get_error_info(self) -> ErrorInfo:
        """Get structured error information."""
        return ErrorInfo(
            category=self.category,
            severity=self.severity,
            code=self.code,
            message=str(self),
            user_message=self.user_message,
            details=self.details,
            timestamp=self.timestamp,
            recoverable=self.recoverable,
            retry_suggested=self.retry_suggested,
        )


class AuthenticationError(MemoireError):
    """Sign-in and session errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.HIGH,
            code=code or "auth_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class AuthorizationError(MemoireError):
    """Raised when a session lacks the privilege an operation needs."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.HIGH,
            code=code or "access_denied",
            user_message=user_message,
            details=details,
            recoverable=False,
            retry_suggested=False,
            original_exception=original_exception,
        )


class ValidationError(MemoireError):
    """Local input errors. These block submission before any backend call."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            code=code or "validation_failed",
            # Validation messages are written for the user already
            user_message=user_message or message,
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class NetworkError(MemoireError):
    """Failures talking to a backend collaborator."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
        category: ErrorCategory = ErrorCategory.NETWORK,
    ):
        super().__init__(
            message=message,
            category=category,
            severity=ErrorSeverity.HIGH if category != ErrorCategory.NETWORK else ErrorSeverity.MEDIUM,
            code=code,
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class StorageError(NetworkError):
    """Object storage errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            code=code or "storage_error",
            user_message=user_message,
            details=details,
            original_exception=original_exception,
            category=ErrorCategory.STORAGE,
        )


class DatabaseError(NetworkError):
    """Record store errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            code=code or "database_error",
            user_message=user_message,
            details=details,
            original_exception=original_exception,
            category=ErrorCategory.DATABASE,
        )


class MediaProcessingError(MemoireError):
    """Thumbnail extraction and media decoding errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.MEDIA_PROCESSING,
            severity=ErrorSeverity.MEDIUM,
            code=code or "media_processing_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class UploadError(MemoireError):
    """
    An upload batch stopped part-way.

    ``written_records`` holds the records committed before the failure.
    They are not rolled back.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        written_records: list[Any] | None = None,
        original_exception: Exception | None = None,
    ):
        self.written_records = list(written_records or [])
        super().__init__(
            message=message,
            category=ErrorCategory.UPLOAD,
            severity=ErrorSeverity.MEDIUM,
            code=code or "upload_failed",
            user_message=user_message or GENERIC_UPLOAD_MESSAGE,
            details={**(details or {}), "records_written": len(self.written_records)},
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class ErrorHandler:
    """Centralized error handler for the application."""

    _KEYWORDS: list[tuple[tuple[str, ...], type[MemoireError]]] = [
        (("authentication", "login", "credential", "unauthorized", "password"), AuthenticationError),
        (("permission", "access denied", "forbidden", "not allowed", "admin"), AuthorizationError),
        (("upload",), UploadError),
        (("thumbnail", "video", "frame", "image", "codec", "pillow"), MediaProcessingError),
        (("database", "duckdb", "sql", "query"), DatabaseError),
        (("storage", "gcs", "bucket", "blob"), StorageError),
        (("validation", "invalid", "required", "missing"), ValidationError),
        (("network", "connection", "timeout", "unreachable"), NetworkError),
    ]

    def __init__(self) -> None:
        self.error_counts: dict[str, int] = {}
        self.logger = get_logger(__name__)

    def handle_error(
        self,
        error: Exception,
        context: dict[str, Any] | None = None,
    ) -> ErrorInfo:
        """
        Handle and classify errors.

        Args:
            error: Exception to handle
            context: Additional context information

        Returns:
            ErrorInfo: Structured error information
        """
        return self.classify(error, context).get_error_info()

    def classify(self, error: Exception, context: dict[str, Any] | None = None) -> MemoireError:
        """Return ``error`` itself if it is a MemoireError, otherwise the wrapped equivalent."""
        if isinstance(error, MemoireError):
            memoire_error = error
        else:
            memoire_error = self._classify_error(error, context or {})

        self._track_error(memoire_error.code)
        return memoire_error

    def _classify_error(self, error: Exception, context: dict[str, Any]) -> MemoireError:
        """Wrap a foreign exception into the matching MemoireError."""
        error_message = str(error)
        lowered = error_message.lower()
        details = {"original_type": type(error).__name__, **context}

        for keywords, error_class in self._KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return error_class(message=error_message, details=details, original_exception=error)

        if isinstance(error, (OSError, MemoryError)):
            return MemoireError(
                message=error_message,
                category=ErrorCategory.SYSTEM,
                severity=ErrorSeverity.CRITICAL,
                details=details,
                recoverable=False,
                original_exception=error,
            )

        return MemoireError(message=error_message, details=details, original_exception=error)

    def _track_error(self, error_code: str) -> None:
        """Track error occurrence for monitoring."""
        self.error_counts[error_code] = self.error_counts.get(error_code, 0) + 1

        if self.error_counts[error_code] % 10 == 0:
            self.logger.warning("frequent_error_detected", error_code=error_code, count=self.error_counts[error_code])

    def get_error_statistics(self) -> dict[str, int]:
        """Get error occurrence statistics."""
        return self.error_counts.copy()

    def reset_statistics(self) -> None:
        """Reset error statistics."""
        self.error_counts.clear()


error_handler = ErrorHandler()


def handle_error(error: Exception, context: dict[str, Any] | None = None) -> ErrorInfo:
    """
    Global error handling function.

    Args:
        error: Exception to handle
        context: Additional context information

    Returns:
        ErrorInfo: Structured error information
    """
    return error_handler.handle_error(error, context)


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    return error_handler
