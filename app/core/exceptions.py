from typing import Optional, Any


class VerificationServiceError(Exception):
    """
    Base exception for the verification service.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(VerificationServiceError):
    """
    Raised when request input is missing or malformed.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)


class RateLimitError(VerificationServiceError):
    """
    Raised when a destination has requested too many codes in the current window.
    """
    def __init__(
        self,
        message: str = "Too many SMS requests. Please try again later.",
        retry_after: int = 1,
        details: Optional[Any] = None
    ):
        self.retry_after = retry_after
        super().__init__(message, code="RATE_LIMITED", status_code=429, details=details)


class CodeNotFoundError(VerificationServiceError):
    """
    Raised when no pending code exists for a destination.
    """
    def __init__(self, message: str = "No verification code found", details: Optional[Any] = None):
        super().__init__(message, code="NO_CODE_FOUND", status_code=400, details=details)


class CodeExpiredError(VerificationServiceError):
    def __init__(self, message: str = "Verification code has expired", details: Optional[Any] = None):
        super().__init__(message, code="CODE_EXPIRED", status_code=400, details=details)


class AttemptsExhaustedError(VerificationServiceError):
    def __init__(self, message: str = "Too many failed attempts", details: Optional[Any] = None):
        super().__init__(message, code="ATTEMPTS_EXHAUSTED", status_code=400, details=details)


class InvalidCodeError(VerificationServiceError):
    """
    Raised when the supplied code does not match; the caller may retry.
    """
    def __init__(
        self,
        message: str = "Invalid verification code",
        attempts_remaining: int = 0,
        details: Optional[Any] = None
    ):
        self.attempts_remaining = attempts_remaining
        super().__init__(message, code="INVALID_CODE", status_code=400, details=details)


class TransportError(VerificationServiceError):
    """
    Raised when the SMS provider fails. Recovered internally via demo delivery.
    """
    def __init__(self, message: str = "SMS provider error", details: Optional[Any] = None):
        super().__init__(message, code="TRANSPORT_ERROR", status_code=502, details=details)


class DestinationRejectedError(VerificationServiceError):
    """
    Raised when the SMS provider permanently rejects the destination number.
    """
    def __init__(self, message: str = "Invalid phone number. Please check and try again.", details: Optional[Any] = None):
        super().__init__(message, code="DESTINATION_REJECTED", status_code=400, details=details)


class InternalError(VerificationServiceError):
    def __init__(self, message: str = "Internal server error", details: Optional[Any] = None):
        super().__init__(message, code="INTERNAL_ERROR", status_code=500, details=details)
