"""
Custom Exception Hierarchy

Distinguishes between:
1. Contract Violations (programming bugs that need fixing)
2. Business Logic Failures (expected runtime issues)

Per-layer data quality problems never surface here: they are defaulted or
logged by the transformer. Only batch-level misuse and service failures
are raised.

Exports:
    ContractViolationError, BusinessLogicError, ServiceFetchError,
    ValidationError, InvalidWebMapError, ConfigurationError
"""

from typing import Optional


class ContractViolationError(TypeError):
    """
    Raised when component contracts are violated (programming bugs).

    These indicate:
    - Wrong types passed to functions
    - Interface contract violations

    These should NEVER be caught and handled - they indicate bugs
    that need to be fixed in the code.

    Example:
        - Cache loader returns None instead of a layer list
    """
    pass


class BusinessLogicError(Exception):
    """
    Base class for expected runtime business logic failures.

    These are normal failures that occur during system operation
    and should be handled gracefully without crashing.
    """
    pass


class ServiceFetchError(BusinessLogicError):
    """
    Feature service or portal request failed.

    Examples:
        - Network timeout
        - Non-2xx HTTP status
        - Response body is not JSON
        - ArcGIS error payload returned with HTTP 200
    """

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ValidationError(BusinessLogicError):
    """
    Business validation failed.

    Note: This is different from ContractViolationError.
    This is for input document validation, not type contracts.
    """
    pass


class InvalidWebMapError(ValidationError):
    """
    Top-level WebMap document is unusable.

    Raised when the document is not a JSON object or has no
    operationalLayers list. Indicates caller misuse rather than
    per-layer data quality, so the batch fails loudly.
    """
    pass


class ConfigurationError(Exception):
    """
    System configuration error.

    These are typically fatal and indicate misconfiguration
    that prevents the system from operating.

    Examples:
        - Non-numeric WEBMAP_FETCH_TIMEOUT
        - WEBMAP_MAX_FETCH_WORKERS below 1
    """
    pass
