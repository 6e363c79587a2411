"""
BRIVA - Async client for the BRI virtual account (SNAP) API.

This package signs and dispatches virtual account requests, manages the
OAuth2 access token, and classifies bank response codes into a typed
catalog so failures can be handled by category.
"""

__version__ = "0.1.0"
__author__ = "BRIVA Client Team"

from briva.exceptions import (
    BrivaError,
    ConfigurationError,
    TransportError,
    DecodingError,
    AuthenticationError,
    KeyFormatError,
    KeyTypeError,
    SigningError,
    StructuredAPIResponse,
    TokenRejectedError,
)
from briva.enums import (
    Category,
    LogLevel,
    TransportErrorCode,
    AuthErrorCode,
    DecodingErrorCode,
)
from briva.response_codes import (
    ResponseCode,
    ResponseCodeDefinition,
    RESPONSE_DEFINITIONS,
    category_for_status,
    get_response_definition,
)
from briva.signing import (
    body_hash,
    sign_request,
    build_assertion,
    load_rsa_private_key,
)
from briva.config import (
    Credentials,
    LoggingConfig,
    ClientConfig,
    PRODUCTION_BASE_URL,
    SANDBOX_BASE_URL,
)
from briva.audit_logger import (
    AuditLogger,
    LogEntry,
)
from briva.transport import (
    HttpTransport,
)
from briva.auth import (
    AccessToken,
    Authenticator,
    TokenManager,
    format_timestamp,
)
from briva.models import (
    Amount,
    AdditionalInfo,
    FreeText,
    VirtualAccountData,
    VirtualAccountTransaction,
    CreateVirtualAccountRequest,
    CreateVirtualAccountResponse,
    UpdateVirtualAccountRequest,
    UpdateVirtualAccountResponse,
    UpdateVirtualAccountStatusRequest,
    UpdateVirtualAccountStatusResponse,
    InquiryVirtualAccountRequest,
    InquiryVirtualAccountResponse,
    InquiryVirtualAccountStatusRequest,
    InquiryVirtualAccountStatusResponse,
    DeleteVirtualAccountRequest,
    DeleteVirtualAccountResponse,
    VirtualAccountReportRequest,
    VirtualAccountReportResponse,
    pad_left_space,
)
from briva.client import (
    BrivaClient,
)
from briva.cli import (
    main as cli_main,
    create_parser,
    load_config_from_file,
)

__all__ = [
    # Exceptions
    "BrivaError",
    "ConfigurationError",
    "TransportError",
    "DecodingError",
    "AuthenticationError",
    "KeyFormatError",
    "KeyTypeError",
    "SigningError",
    "StructuredAPIResponse",
    "TokenRejectedError",
    # Enums
    "Category",
    "LogLevel",
    "TransportErrorCode",
    "AuthErrorCode",
    "DecodingErrorCode",
    # Response Codes
    "ResponseCode",
    "ResponseCodeDefinition",
    "RESPONSE_DEFINITIONS",
    "category_for_status",
    "get_response_definition",
    # Signing
    "body_hash",
    "sign_request",
    "build_assertion",
    "load_rsa_private_key",
    # Configuration
    "Credentials",
    "LoggingConfig",
    "ClientConfig",
    "PRODUCTION_BASE_URL",
    "SANDBOX_BASE_URL",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Transport
    "HttpTransport",
    # Auth
    "AccessToken",
    "Authenticator",
    "TokenManager",
    "format_timestamp",
    # Models
    "Amount",
    "AdditionalInfo",
    "FreeText",
    "VirtualAccountData",
    "VirtualAccountTransaction",
    "CreateVirtualAccountRequest",
    "CreateVirtualAccountResponse",
    "UpdateVirtualAccountRequest",
    "UpdateVirtualAccountResponse",
    "UpdateVirtualAccountStatusRequest",
    "UpdateVirtualAccountStatusResponse",
    "InquiryVirtualAccountRequest",
    "InquiryVirtualAccountResponse",
    "InquiryVirtualAccountStatusRequest",
    "InquiryVirtualAccountStatusResponse",
    "DeleteVirtualAccountRequest",
    "DeleteVirtualAccountResponse",
    "VirtualAccountReportRequest",
    "VirtualAccountReportResponse",
    "pad_left_space",
    # Client
    "BrivaClient",
    # CLI
    "cli_main",
    "create_parser",
    "load_config_from_file",
]
