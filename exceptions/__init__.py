"""
Custom exceptions module.

Exports the application error hierarchy used by parsers, services and routes.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,

    # Run configuration
    ConfigurationError,
    NoLocationSourcesError,
    DuplicateSourceNameError,
    SourceColumnsError,

    # Parser / upload
    SourceParseError,
    UploadTooLargeError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",

    # Run configuration
    "ConfigurationError",
    "NoLocationSourcesError",
    "DuplicateSourceNameError",
    "SourceColumnsError",

    # Parser / upload
    "SourceParseError",
    "UploadTooLargeError",
]
