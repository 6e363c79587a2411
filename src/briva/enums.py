"""
Enumeration types for the BRIVA client.

These enums provide type-safe constants for response categories, error codes,
and logging options throughout the package.
"""

from enum import Enum


class Category(Enum):
    """Category of a BRIVA response code."""

    SUCCESS = "Success"
    BAD_REQUEST = "BadRequest"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    METHOD_NOT_ALLOWED = "MethodNotAllowed"
    CONFLICT = "Conflict"
    INTERNAL_SERVER_ERROR = "InternalServerError"
    BAD_GATEWAY = "BadGateway"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    PENDING = "Pending"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class TransportErrorCode(Enum):
    """Error codes for failures before a response was received."""

    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"


class AuthErrorCode(Enum):
    """Error codes for token exchange failures."""

    KEY_FORMAT = "key_format"
    KEY_TYPE = "key_type"
    SIGNING_FAILED = "signing_failed"
    TOKEN_REJECTED = "token_rejected"


class DecodingErrorCode(Enum):
    """Error codes for success responses that could not be decoded."""

    INVALID_JSON = "invalid_json"
    INVALID_SHAPE = "invalid_shape"
