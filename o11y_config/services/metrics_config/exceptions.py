"""
Exceptions raised while loading metrics dashboard configuration.

Every failure is terminal for the load call: callers never receive a
partially-populated configuration.
"""

from typing import Optional


class MetricsConfigError(Exception):
    """Base exception for all metrics configuration errors."""

    pass


class DecodeError(MetricsConfigError):
    """
    The raw document could not be decoded using document field names.

    Raised for malformed JSON, a non-object top level, or any schema
    mismatch reported by validation.
    """

    pass


class OverlayError(MetricsConfigError):
    """
    Environment overlay resolution failed.

    Covers the generic re-parse of the document, the override-name decode
    and, under the strict policy, environment values that cannot be coerced
    to their target field type. ``variable`` names the offending
    environment variable when one is involved.
    """

    def __init__(self, message: str, variable: Optional[str] = None):
        super().__init__(message)
        self.variable = variable


class ConfigFileError(MetricsConfigError):
    """The configuration document could not be read from disk."""

    pass
