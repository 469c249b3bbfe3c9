# src/cfn_resource_provider/exceptions.py

"""
Shared custom exceptions for the CloudFormation custom resource provider.

Centralizing exception definitions in a separate module prevents circular
import errors between the request, response, client and orchestration modules.

Exception Hierarchy:
- CfnResourceProviderError (base)
  - RetryableError (the invocation may be retried by the Lambda runtime)
    - ResponseTransportError
  - NonRetryableError (retrying the invocation cannot help)
    - ValidationError
      - InvalidRequestError
      - ResponseDataError
    - PhysicalResourceIdUnassignedError
    - ResponseRejectedError
    - ConfigurationError
  - ResponseDeliveryError (base of both transport errors above)
"""

from typing import Any, Dict, Optional


class CfnResourceProviderError(Exception):
    """Base exception for all custom resource provider errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = dict(context) if context else {}  # Copy context to prevent mutation
        self.correlation_id = correlation_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "correlation_id": self.correlation_id,
            "retryable": isinstance(self, RetryableError),
        }


class RetryableError(CfnResourceProviderError):
    """Base class for errors where a retried invocation may succeed."""
    pass


class NonRetryableError(CfnResourceProviderError):
    """Base class for errors that should not be retried."""
    pass


# === Validation Errors ===

class ValidationError(NonRetryableError):
    """Base class for validation errors."""
    pass


class InvalidRequestError(ValidationError):
    """Raised when the invocation payload is not a valid custom resource request."""

    def __init__(self, message: str, **kwargs):
        if "error_code" not in kwargs:
            kwargs["error_code"] = "INVALID_REQUEST"
        super().__init__(message, **kwargs)


class ResponseDataError(ValidationError):
    """Raised when handler data cannot be turned into a response ``Data`` object."""

    def __init__(self, reason: str, **kwargs):
        message = f"Handler returned unusable response data: {reason}"
        context = {"reason": reason}
        super().__init__(message, error_code="INVALID_RESPONSE_DATA", context=context, **kwargs)


# === Request State Errors ===

class PhysicalResourceIdUnassignedError(NonRetryableError):
    """Raised when the physical resource id of a Create request is read before derivation."""

    def __init__(self, logical_resource_id: str, **kwargs):
        message = (
            f"Physical resource id of '{logical_resource_id}' is not yet assigned; "
            "Create requests only receive one through derive_physical_resource_id()"
        )
        context = {"logical_resource_id": logical_resource_id}
        super().__init__(
            message, error_code="PHYSICAL_RESOURCE_ID_UNASSIGNED", context=context, **kwargs
        )


# === Response Delivery Errors ===

class ResponseDeliveryError(CfnResourceProviderError):
    """Base class for failures delivering the response to the presigned URL."""
    pass


class ResponseTransportError(ResponseDeliveryError, RetryableError):
    """Raised when the PUT to the response URL fails at the connection level."""

    def __init__(self, response_url: str, reason: str, **kwargs):
        message = f"Failed to deliver response to {response_url}: {reason}"
        context = {"response_url": response_url, "reason": reason}
        super().__init__(message, error_code="RESPONSE_TRANSPORT_FAILED", context=context, **kwargs)


class ResponseRejectedError(ResponseDeliveryError, NonRetryableError):
    """Raised when the response URL answers the PUT with a non-2xx status."""

    def __init__(self, response_url: str, status_code: int, body: str = "", **kwargs):
        message = f"Response URL {response_url} rejected the response with HTTP {status_code}"
        context = {"response_url": response_url, "status_code": status_code, "body": body}
        super().__init__(message, error_code="RESPONSE_REJECTED", context=context, **kwargs)
        self.status_code = status_code


# === Configuration Errors ===

class ConfigurationError(NonRetryableError):
    """Raised when there's an error in the provider configuration."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)


# === Utility Functions ===

def is_retryable_error(error: Exception) -> bool:
    """Check if an error is retryable."""
    return isinstance(error, RetryableError)


def get_error_context(error: BaseException) -> Dict[str, Any]:
    """Extract error context for logging."""
    if isinstance(error, CfnResourceProviderError):
        return error.to_dict()
    else:
        return {
            "error_type": error.__class__.__name__,
            "message": str(error),
            "retryable": False  # Unknown errors default to non-retryable
        }
