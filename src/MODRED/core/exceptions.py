"""
Custom exceptions for the ModredIP backend.

This module defines a hierarchy of domain-specific exceptions to provide
consistent error handling across the chain, pinning and Yakoa integrations.

Module Input:
    - Error conditions from service components
    - Optional error details as dictionaries

Module Output:
    - Structured exception objects with message and details
    - Consistent error interface for catch blocks
"""
from typing import Optional, Any


class ModredError(Exception):
    """
    Base exception for all ModredIP backend errors.

    Provides a common base class for all domain-specific exceptions so the
    HTTP layer can translate them to JSON error bodies in one place.

    Attributes:
        message (str): Human-readable error description
        details (dict[str, Any]): Optional structured error details
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """
        Initialize exception with message and optional details.

        Args:
            message (str): Human-readable error description
            details (Optional[dict[str, Any]]): Additional structured error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(ModredError):
    """
    Raised when configuration is invalid or missing.

    Common scenarios:
        - WALLET_PRIVATE_KEY not set when a contract write is requested
        - PINATA_JWT missing for uploads
        - Contract address absent from both request and settings
    """
    pass


class ValidationError(ModredError):
    """
    Raised when request input fails validation.

    Common scenarios:
        - Required request fields missing
        - Non-positive payment amounts
        - Malformed contract addresses
    """
    pass


class ChainError(ModredError):
    """
    Raised when a contract read or write fails.

    Common scenarios:
        - RPC endpoint unreachable
        - Simulation reverted
        - Receipt wait timed out
    """
    pass


class PinningError(ModredError):
    """
    Raised when an IPFS pinning upload fails.

    Common scenarios:
        - Pinata rejects the JWT
        - Network timeouts after retries
    """
    pass


class YakoaError(ModredError):
    """
    Raised when the Yakoa API returns an error or cannot be reached.

    Attributes:
        status_code (Optional[int]): Upstream HTTP status, if any
        response (Any): Upstream response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Any = None,
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.response = response


class BackendError(ModredError):
    """
    Raised by the UI client when the backend answers with an error.

    Attributes:
        status_code (Optional[int]): HTTP status, None when unreachable
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.status_code = status_code
