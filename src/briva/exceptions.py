"""
Exception classes for the BRIVA client.

All exceptions inherit from BrivaError and provide structured error
information with codes, messages, and optional details. Callers branch on
the exception type to tell a transport failure, a bank rejection and a
malformed response apart.
"""

from datetime import datetime, timezone
from typing import Optional

from .enums import AuthErrorCode, Category
from .response_codes import ResponseCodeDefinition, category_for_status


class BrivaError(Exception):
    """Base exception for all BRIVA client errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(BrivaError):
    """Raised when client configuration is missing or invalid."""

    pass


class TransportError(BrivaError):
    """Raised when a request never completed (connection, DNS, timeout)."""

    pass


class DecodingError(BrivaError):
    """Raised when a 200 response body does not match the expected shape."""

    pass


class AuthenticationError(BrivaError):
    """Raised when the access token exchange cannot be completed."""

    pass


class KeyFormatError(AuthenticationError):
    """Raised when the private key PEM cannot be decoded or parsed."""

    pass


class KeyTypeError(AuthenticationError):
    """Raised when the private key parses but is not an RSA key."""

    pass


class SigningError(AuthenticationError):
    """Raised when the RSA signing operation fails."""

    pass


# Message prefixes the bank uses when naming the offending field
_FIELD_MESSAGE_PREFIXES = (
    "Invalid Mandatory Field ",
    "Invalid Field Format ",
    "Invalid field format ",
    "Invalid field value ",
)


class StructuredAPIResponse(BrivaError):
    """
    A request the bank processed and answered with a non-success status.

    Carries the bank's own response code and message, the HTTP status of the
    response, when it was received and, when resolvable, the catalog
    definition of the response code.
    """

    def __init__(
        self,
        response_code: str,
        response_message: str,
        http_status_code: int,
        timestamp: Optional[datetime] = None,
        definition: Optional[ResponseCodeDefinition] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.response_code = response_code
        self.response_message = response_message
        self.http_status_code = http_status_code
        self.timestamp = timestamp or datetime.now(timezone.utc)
        self.definition = definition
        super().__init__(
            code=response_code,
            message=response_message,
            details=details,
        )

    def __str__(self) -> str:
        text = f"BRI API Error [{self.response_code}]: {self.response_message}"
        field = self.field
        if field:
            text += f" (field: {field})"
        return text

    @property
    def category(self) -> Category:
        """Catalog category, falling back to the HTTP status band."""
        if self.definition is not None:
            return self.definition.category
        return category_for_status(self.http_status_code)

    @property
    def field(self) -> Optional[str]:
        """Name of the offending request field, if the bank named one."""
        for prefix in _FIELD_MESSAGE_PREFIXES:
            if self.response_message.startswith(prefix):
                return self.response_message[len(prefix):] or None
        if self.definition is not None and self.definition.field:
            return self.definition.field
        return None

    def is_success(self) -> bool:
        return 200 <= self.http_status_code < 300

    def is_client_error(self) -> bool:
        return 400 <= self.http_status_code < 500

    def is_server_error(self) -> bool:
        return self.http_status_code >= 500

    def is_pending(self) -> bool:
        """True when the outcome is unknown and needs manual verification."""
        return self.category == Category.PENDING

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "http_status_code": self.http_status_code,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
        })
        if self.definition is not None:
            data["description"] = self.definition.description
        return data


class TokenRejectedError(StructuredAPIResponse, AuthenticationError):
    """Raised when the bank answers the token exchange with a non-200 status."""

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["auth_error"] = AuthErrorCode.TOKEN_REJECTED.value
        return data
