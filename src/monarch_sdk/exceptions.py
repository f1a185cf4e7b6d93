"""
Exception classes for Monarch Python SDK
"""

from typing import Optional, Dict, Any


class ErrorCodes:
    """Standard error codes for programmatic handling"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"
    BLANK_CREDENTIAL = "BLANK_CREDENTIAL"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"
    FILE_ERROR = "FILE_ERROR"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    ENVIRONMENT_NOT_FOUND = "ENVIRONMENT_NOT_FOUND"
    UNKNOWN_SCHEME = "UNKNOWN_SCHEME"
    MISSING_ENV_VAR = "MISSING_ENV_VAR"

    # Request errors
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_URL = "INVALID_URL"
    INVALID_METHOD = "INVALID_METHOD"
    MISSING_BODY = "MISSING_BODY"
    UNSIGNABLE_BODY = "UNSIGNABLE_BODY"

    # Authentication errors
    TOKEN_SOURCE_FAILED = "TOKEN_SOURCE_FAILED"
    DIGEST_UNAVAILABLE = "DIGEST_UNAVAILABLE"

    # Transport errors
    SERVER_ERROR = "SERVER_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"


class MonarchSDKError(Exception):
    """Base exception for all Monarch SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.error_code}, details: {self.details})"
        return f"{self.message} (code: {self.error_code})"


class ConfigurationError(MonarchSDKError):
    """Exception raised when a strategy or client is constructed with invalid settings"""

    def __init__(self, message: str, error_code: str = ErrorCodes.INVALID_CONFIG,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class UnsupportedAlgorithmError(ConfigurationError):
    """Exception raised for an HMAC algorithm identifier with no known digest"""

    def __init__(self, algorithm: str):
        super().__init__(
            f"Unsupported HMAC algorithm: {algorithm}",
            ErrorCodes.UNSUPPORTED_ALGORITHM,
            {"algorithm": algorithm}
        )
        self.algorithm = algorithm


class ValidationError(MonarchSDKError):
    """Exception raised for malformed requests"""

    def __init__(self, message: str, error_code: str = ErrorCodes.INVALID_REQUEST,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class AuthenticationError(MonarchSDKError):
    """
    Base class for failures while computing credentials for a request.

    A request that raised one of these was never sent, which is what
    separates it from a ServerCommunicationError carrying a 401.
    """
    pass


class AuthSourceError(AuthenticationError):
    """Exception raised when the access token source fails"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.TOKEN_SOURCE_FAILED, details)


class DigestUnavailableError(AuthenticationError):
    """Exception raised when a hash or HMAC primitive is missing from the runtime"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.DIGEST_UNAVAILABLE, details)


class ServerCommunicationError(MonarchSDKError):
    """Exception raised for server communication errors"""

    def __init__(self, message: str, error_code: str = ErrorCodes.SERVER_ERROR,
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status
