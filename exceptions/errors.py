"""
Custom exception classes for the application.

Data-quality problems found while comparing sources are never raised;
they end up as conflict codes and remarks on the report. Exceptions are
reserved for defects that make the whole run meaningless.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "NO_LOCATION_SOURCES")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


# ===================
# CONFIGURATION ERRORS
# ===================

class ConfigurationError(ValidationError):
    """Run configuration is unusable; no partial result is produced."""

    def __init__(
        self,
        message: str,
        code: str = "CONFIGURATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details=details
        )


class NoLocationSourcesError(ConfigurationError):
    """At least one location source is required for a comparison."""

    def __init__(self):
        super().__init__(
            code="NO_LOCATION_SOURCES",
            message="Must provide at least one location file for comparison"
        )


class DuplicateSourceNameError(ConfigurationError):
    """Two sources resolve to the same name."""

    def __init__(self, name: str):
        super().__init__(
            code="DUPLICATE_SOURCE_NAME",
            message=f"Source name '{name}' is used more than once",
            details={"source": name}
        )


class SourceColumnsError(ConfigurationError):
    """Neither a SKU nor a Barcode column could be found in a source."""

    def __init__(self, source: str, headers: list[str]):
        super().__init__(
            code="SOURCE_MISSING_COLUMNS",
            message=f"Could not find SKU or Barcode columns in file: {source}",
            details={"source": source, "headers": headers}
        )


# ===================
# PARSER / UPLOAD ERRORS
# ===================

class SourceParseError(ValidationError):
    """Source file could not be read."""

    def __init__(
        self,
        source: str,
        message: str = "Failed to read source file",
        details: Optional[dict] = None
    ):
        super().__init__(
            code="SOURCE_PARSE_ERROR",
            message=message,
            details={"source": source, **(details or {})}
        )


class UploadTooLargeError(AppError):
    """Uploaded file exceeds the configured size limit (413)."""

    def __init__(self, filename: str, size: int, limit: int):
        super().__init__(
            code="UPLOAD_TOO_LARGE",
            message=f"File '{filename}' exceeds the upload limit",
            status_code=413,
            details={"filename": filename, "size": size, "limit": limit}
        )
