"""
BRIVA API client.

BrivaClient signs and dispatches requests to the BRI SNAP virtual account
API and classifies the result:

- a 200 response is decoded into the operation's response type
  (DecodingError if the body does not fit);
- any other status becomes a StructuredAPIResponse carrying the bank's
  response code and its catalog definition;
- a request that never completed raises TransportError.
"""

import json
import random
from typing import Any, Optional, Type, TypeVar

import httpx

from .audit_logger import AuditLogger
from .auth import Authenticator, Clock, TokenManager, format_timestamp, utc_now
from .config import ClientConfig
from .enums import DecodingErrorCode
from .exceptions import DecodingError, StructuredAPIResponse
from .models import (
    CreateVirtualAccountRequest,
    CreateVirtualAccountResponse,
    DeleteVirtualAccountRequest,
    DeleteVirtualAccountResponse,
    InquiryVirtualAccountRequest,
    InquiryVirtualAccountResponse,
    InquiryVirtualAccountStatusRequest,
    InquiryVirtualAccountStatusResponse,
    UpdateVirtualAccountRequest,
    UpdateVirtualAccountResponse,
    UpdateVirtualAccountStatusRequest,
    UpdateVirtualAccountStatusResponse,
    VirtualAccountReportRequest,
    VirtualAccountReportResponse,
)
from .response_codes import get_response_definition
from .signing import sign_request
from .transport import HttpTransport, truncate_body

VA_BASE_PATH = "/snap/v1.0/transfer-va"

CREATE_VA_PATH = VA_BASE_PATH + "/create-va"
UPDATE_VA_PATH = VA_BASE_PATH + "/update-va"
UPDATE_STATUS_PATH = VA_BASE_PATH + "/update-status"
INQUIRY_VA_PATH = VA_BASE_PATH + "/inquiry-va"
DELETE_VA_PATH = VA_BASE_PATH + "/delete-va"
INQUIRY_STATUS_PATH = VA_BASE_PATH + "/status"
REPORT_PATH = VA_BASE_PATH + "/report"

# Raw body kept on errors whose body could not be parsed
ERROR_BODY_EXCERPT = 512

ResponseT = TypeVar("ResponseT")


def generate_external_id() -> str:
    """Nine-digit, zero-padded pseudo-random X-EXTERNAL-ID value."""
    return f"{random.randrange(1_000_000_000):09d}"


class BrivaClient:
    """
    Async client for the BRIVA virtual account API.

    Usage:
        async with BrivaClient(ClientConfig.from_env()) as client:
            response = await client.create_virtual_account(request)
    """

    COMPONENT = "client"

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[HttpTransport] = None,
        authenticator: Optional[Authenticator] = None,
        logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Client configuration
            transport: Optional HTTP transport; built from config if omitted
            authenticator: Optional token provider; a TokenManager by default
            logger: Optional audit logger
            clock: Optional source of the current time (aware datetimes)
        """
        self._config = config
        self._logger = logger
        self._clock = clock or utc_now
        self._transport = transport or HttpTransport(
            base_url=config.base_url,
            timeout=config.timeout,
            verify_tls=config.verify_tls,
            debug=config.debug,
            logger=logger,
        )
        self._authenticator = authenticator or TokenManager(
            config,
            self._transport,
            clock=self._clock,
            logger=logger,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def authenticator(self) -> Authenticator:
        return self._authenticator

    async def __aenter__(self) -> "BrivaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.close()

    async def authenticate(self) -> None:
        """Obtain a fresh access token."""
        await self._authenticator.authenticate()

    def is_authenticated(self) -> bool:
        return self._authenticator.is_authenticated()

    async def execute(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
    ) -> httpx.Response:
        """
        Sign and send one API request.

        The caller is responsible for ensuring a token is available first.

        Args:
            method: HTTP method
            path: API path, e.g. "/snap/v1.0/transfer-va/create-va"
            body: JSON-serializable payload, or None for no body

        Returns:
            The 200 response

        Raises:
            TransportError: If no response was received
            StructuredAPIResponse: If the bank answered with a non-200 status
        """
        method = method.upper()
        content = json.dumps(body, separators=(",", ":")) if body is not None else ""
        timestamp = format_timestamp(self._clock())
        access_token = self._authenticator.access_token
        creds = self._config.credentials

        headers = {
            "Content-Type": "application/json",
            "X-PARTNER-ID": creds.partner_id,
            "X-EXTERNAL-ID": generate_external_id(),
            "CHANNEL-ID": creds.channel_id,
            "X-SIGNATURE": sign_request(
                method, path, content, access_token, creds.client_secret, timestamp
            ),
            "X-TIMESTAMP": timestamp,
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        response = await self._transport.request(
            method,
            path,
            headers,
            content if body is not None else None,
        )

        if response.status_code != 200:
            raise self._api_error(path, response)

        return response

    async def _call(
        self,
        method: str,
        path: str,
        request: Any,
        response_type: Type[ResponseT],
    ) -> ResponseT:
        await self._authenticator.ensure_authenticated()
        response = await self.execute(method, path, request.to_dict())

        try:
            data = json.loads(response.text)
        except ValueError as e:
            raise DecodingError(
                code=DecodingErrorCode.INVALID_JSON.value,
                message=f"Response from {path} is not valid JSON: {e}",
                details={"path": path, "body": truncate_body(response.text, ERROR_BODY_EXCERPT)},
            ) from e

        try:
            return response_type.from_dict(data)
        except (TypeError, ValueError) as e:
            raise DecodingError(
                code=DecodingErrorCode.INVALID_SHAPE.value,
                message=f"Response from {path} has an unexpected shape: {e}",
                details={"path": path},
            ) from e

    def _api_error(self, path: str, response: httpx.Response) -> StructuredAPIResponse:
        """Build the structured error for a non-200 response."""
        code, message = "", ""
        details = {"path": path}
        try:
            data = json.loads(response.text)
        except ValueError:
            data = None

        if isinstance(data, dict):
            code = str(data.get("responseCode") or "")
            message = str(data.get("responseMessage") or "")
        else:
            details["body"] = truncate_body(response.text, ERROR_BODY_EXCERPT)

        error = StructuredAPIResponse(
            response_code=code,
            response_message=message,
            http_status_code=response.status_code,
            timestamp=self._clock(),
            definition=get_response_definition(code) if code else None,
            details=details,
        )

        if self._logger:
            self._logger.log_error(
                self.COMPONENT,
                "BRI API request failed",
                error=error,
                request_url=path,
                response_status_code=response.status_code,
                additional_data={
                    "response_code": code,
                    "category": error.category.value,
                },
            )
        return error

    # ------------------------------------------------------------------------
    # Virtual account operations
    # ------------------------------------------------------------------------

    async def create_virtual_account(
        self, request: CreateVirtualAccountRequest
    ) -> CreateVirtualAccountResponse:
        return await self._call("POST", CREATE_VA_PATH, request, CreateVirtualAccountResponse)

    async def update_virtual_account(
        self, request: UpdateVirtualAccountRequest
    ) -> UpdateVirtualAccountResponse:
        return await self._call("PUT", UPDATE_VA_PATH, request, UpdateVirtualAccountResponse)

    async def update_virtual_account_status(
        self, request: UpdateVirtualAccountStatusRequest
    ) -> UpdateVirtualAccountStatusResponse:
        """Mark a virtual account as paid ("Y") or unpaid ("N")."""
        return await self._call(
            "PUT", UPDATE_STATUS_PATH, request, UpdateVirtualAccountStatusResponse
        )

    async def inquiry_virtual_account(
        self, request: InquiryVirtualAccountRequest
    ) -> InquiryVirtualAccountResponse:
        return await self._call("POST", INQUIRY_VA_PATH, request, InquiryVirtualAccountResponse)

    async def delete_virtual_account(
        self, request: DeleteVirtualAccountRequest
    ) -> DeleteVirtualAccountResponse:
        return await self._call("DELETE", DELETE_VA_PATH, request, DeleteVirtualAccountResponse)

    async def inquiry_virtual_account_status(
        self, request: InquiryVirtualAccountStatusRequest
    ) -> InquiryVirtualAccountStatusResponse:
        """Check whether a virtual account has been paid."""
        return await self._call(
            "POST", INQUIRY_STATUS_PATH, request, InquiryVirtualAccountStatusResponse
        )

    async def get_virtual_account_report(
        self, request: VirtualAccountReportRequest
    ) -> VirtualAccountReportResponse:
        """List paid transactions in the requested window."""
        return await self._call("POST", REPORT_PATH, request, VirtualAccountReportResponse)
