"""
Response code catalog for the BRIVA API.

BRI response codes are seven digits: a 3-digit HTTP status, a 2-digit
service code and a 2-digit case code (e.g. "4002701" = HTTP 400, service 27,
case 01). This module holds the static table of known codes and synthesizes
a "pending" definition for codes the table does not know.
"""

from dataclasses import dataclass
from typing import Optional

from .enums import Category

DEFAULT_HTTP_STATUS = 500
RESPONSE_CODE_LENGTH = 7


@dataclass(frozen=True)
class ResponseCode:
    """A response code split into its HTTP status, service and case parts."""

    http_status: int
    service_code: int
    case_code: int
    full_code: str

    @classmethod
    def parse(cls, code: str) -> "ResponseCode":
        """
        Split a response code into its parts.

        Malformed codes keep their original text and fall back to HTTP 500
        with service and case code 0.
        """
        if not _is_well_formed(code):
            return cls(DEFAULT_HTTP_STATUS, 0, 0, code)
        return cls(
            http_status=int(code[0:3]),
            service_code=int(code[3:5]),
            case_code=int(code[5:7]),
            full_code=code,
        )

    def __str__(self) -> str:
        return self.full_code

    def is_success(self) -> bool:
        return 200 <= self.http_status < 300

    def is_client_error(self) -> bool:
        return 400 <= self.http_status < 500

    def is_server_error(self) -> bool:
        return self.http_status >= 500


@dataclass(frozen=True)
class ResponseCodeDefinition:
    """Detailed information about a BRIVA response code."""

    response_code: ResponseCode
    category: Category
    description: str
    field: Optional[str] = None  # Request field that caused the error

    @property
    def code(self) -> str:
        return self.response_code.full_code

    @property
    def http_status(self) -> int:
        return self.response_code.http_status


def _is_well_formed(code: str) -> bool:
    # str.isdigit() accepts non-ASCII digits, so check the range explicitly
    return len(code) == RESPONSE_CODE_LENGTH and all("0" <= c <= "9" for c in code)


def _define(
    code: str,
    category: Category,
    description: str,
    field: Optional[str] = None,
) -> ResponseCodeDefinition:
    return ResponseCodeDefinition(ResponseCode.parse(code), category, description, field)


# ============================================================================
# SUCCESS (200xxxx)
# ============================================================================
SUCCESS_CODES = [
    _define("2002600", Category.SUCCESS, "Inquiry status successful"),
    _define("2002700", Category.SUCCESS, "Request processed successfully"),
    _define("2002701", Category.SUCCESS, "Virtual Account created successfully"),
    _define("2002800", Category.SUCCESS, "Virtual Account updated successfully"),
    _define("2002900", Category.SUCCESS, "Virtual Account status updated successfully"),
    _define("2003000", Category.SUCCESS, "Virtual Account inquiry successful"),
    _define("2003100", Category.SUCCESS, "Virtual Account deleted successfully"),
    _define("2003500", Category.SUCCESS, "Report generated successfully"),
]


# ============================================================================
# CLIENT ERRORS (4xxxxxx)
# ============================================================================
BAD_REQUEST_CODES = [
    _define("4002701", Category.BAD_REQUEST, "Invalid field format", "virtualAccountNo"),
    _define("4002702", Category.BAD_REQUEST, "Invalid mandatory field", "partnerServiceId"),
    _define("4002703", Category.BAD_REQUEST, "Invalid field value"),
    _define("4002704", Category.BAD_REQUEST, "Invalid amount format or value", "totalAmount"),
    _define("4002705", Category.BAD_REQUEST, "Invalid account information"),
    _define("4002706", Category.BAD_REQUEST, "Invalid date format", "expiredDate"),
    _define("4002707", Category.BAD_REQUEST, "Invalid time format"),
    _define("4002708", Category.BAD_REQUEST, "Invalid currency code", "currency"),
    _define("4002709", Category.BAD_REQUEST, "Invalid partner service ID", "partnerServiceId"),
    _define("4002710", Category.BAD_REQUEST, "Invalid customer number", "customerNo"),
    _define("4002711", Category.BAD_REQUEST, "Invalid virtual account number", "virtualAccountNo"),
    _define("4002712", Category.BAD_REQUEST, "Invalid virtual account name", "virtualAccountName"),
    _define("4002713", Category.BAD_REQUEST, "Invalid transaction ID", "trxId"),
    _define("4002714", Category.BAD_REQUEST, "Invalid paid status", "paidStatus"),
    _define("4002715", Category.BAD_REQUEST, "Invalid inquiry request ID", "inquiryRequestId"),
    _define("4002716", Category.BAD_REQUEST, "Invalid report date range", "startDate"),
    _define("4002717", Category.BAD_REQUEST, "Invalid report time range", "startTime"),
    _define("4002600", Category.BAD_REQUEST, "Bad Request"),
    _define("4002601", Category.BAD_REQUEST, "Invalid Field Format"),
    _define("4002602", Category.BAD_REQUEST, "Invalid Mandatory Field"),
]

UNAUTHORIZED_CODES = [
    _define("4012701", Category.UNAUTHORIZED, "Invalid signature"),
    _define("4012702", Category.UNAUTHORIZED, "Invalid timestamp"),
    _define("4012703", Category.UNAUTHORIZED, "Invalid access token"),
    _define("4012704", Category.UNAUTHORIZED, "Access token expired"),
    _define("4012705", Category.UNAUTHORIZED, "Invalid credentials"),
    _define("4012706", Category.UNAUTHORIZED, "Invalid client key"),
    _define("4012707", Category.UNAUTHORIZED, "Invalid private key"),
    _define("4012600", Category.UNAUTHORIZED, "Unauthorized. Client Forbidden Access API"),
]

FORBIDDEN_CODES = [
    _define("4032701", Category.FORBIDDEN, "Insufficient permission"),
    _define("4032702", Category.FORBIDDEN, "Access denied"),
    _define("4032703", Category.FORBIDDEN, "Partner not active"),
    _define("4032704", Category.FORBIDDEN, "Channel not allowed"),
    _define("4032705", Category.FORBIDDEN, "IP not whitelisted"),
]

NOT_FOUND_CODES = [
    _define("4042701", Category.NOT_FOUND, "Virtual Account not found"),
    _define("4042702", Category.NOT_FOUND, "Customer not found"),
    _define("4042703", Category.NOT_FOUND, "Partner service not found"),
    _define("4042704", Category.NOT_FOUND, "Transaction not found"),
    _define("4042612", Category.NOT_FOUND, "Invalid Bill/Virtual Account"),
    _define("4042613", Category.NOT_FOUND, "Invalid Amount"),
]

METHOD_NOT_ALLOWED_CODES = [
    _define("4052701", Category.METHOD_NOT_ALLOWED, "HTTP method not allowed"),
    _define("4052702", Category.METHOD_NOT_ALLOWED, "HTTP method not allowed for this endpoint"),
]

CONFLICT_CODES = [
    _define("4092701", Category.CONFLICT, "Virtual Account already exists"),
    _define("4092702", Category.CONFLICT, "Virtual Account number already exists"),
    _define("4092703", Category.CONFLICT, "Transaction ID already exists"),
    _define("4092704", Category.CONFLICT, "Customer number already exists"),
    _define("4092601", Category.CONFLICT, "Conflict"),
]


# ============================================================================
# SERVER ERRORS (5xxxxxx)
# ============================================================================
SERVER_ERROR_CODES = [
    _define("5002701", Category.INTERNAL_SERVER_ERROR, "Internal server error"),
    _define("5002702", Category.INTERNAL_SERVER_ERROR, "Database error"),
    _define("5002703", Category.INTERNAL_SERVER_ERROR, "External service error"),
    _define("5002704", Category.INTERNAL_SERVER_ERROR, "System under maintenance"),
    _define("5002705", Category.INTERNAL_SERVER_ERROR, "System unavailable"),
    _define("5002600", Category.INTERNAL_SERVER_ERROR, "General Error"),
    _define("5022701", Category.BAD_GATEWAY, "Bad gateway"),
    _define("5022702", Category.BAD_GATEWAY, "External service timeout"),
    _define("5032701", Category.SERVICE_UNAVAILABLE, "Service unavailable"),
    _define("5032702", Category.SERVICE_UNAVAILABLE, "Rate limit exceeded"),
    _define("5032703", Category.SERVICE_UNAVAILABLE, "Circuit breaker open"),
    # Gateway timeouts are reported as service unavailable
    _define("5042700", Category.SERVICE_UNAVAILABLE, "Timeout"),
    _define("5042600", Category.SERVICE_UNAVAILABLE, "Timeout"),
]


RESPONSE_DEFINITIONS: dict[str, ResponseCodeDefinition] = {
    definition.code: definition
    for group in (
        SUCCESS_CODES,
        BAD_REQUEST_CODES,
        UNAUTHORIZED_CODES,
        FORBIDDEN_CODES,
        NOT_FOUND_CODES,
        METHOD_NOT_ALLOWED_CODES,
        CONFLICT_CODES,
        SERVER_ERROR_CODES,
    )
    for definition in group
}


def category_for_status(http_status: int) -> Category:
    """Map an HTTP status to a category by its hundreds band."""
    if 200 <= http_status < 300:
        return Category.SUCCESS
    if 400 <= http_status < 500:
        return Category.BAD_REQUEST
    if 500 <= http_status < 600:
        return Category.INTERNAL_SERVER_ERROR
    return Category.PENDING


def get_response_definition(code: str) -> ResponseCodeDefinition:
    """
    Look up a response code, synthesizing a definition for unknown codes.

    Args:
        code: Seven-digit response code as returned by the API

    Returns:
        The catalog definition, or a pending definition derived from the
        leading HTTP status digits. Never raises.
    """
    definition = RESPONSE_DEFINITIONS.get(code)
    if definition is not None:
        return definition
    return _pending_definition(code)


def _pending_definition(code: str) -> ResponseCodeDefinition:
    """Build a definition for a code that is not in the catalog."""
    response_code = ResponseCode(
        http_status=ResponseCode.parse(code).http_status,
        service_code=0,
        case_code=0,
        full_code=code,
    )
    return ResponseCodeDefinition(
        response_code=response_code,
        category=category_for_status(response_code.http_status),
        description=(
            f"Unknown response code: {code} - "
            "Status pending, requires manual verification"
        ),
    )
