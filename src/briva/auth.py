"""
Access token lifecycle for the BRIVA SNAP API.

The bank issues short-lived bearer tokens in exchange for an RSA-signed
assertion over the client id and a timestamp. TokenManager obtains a token
on demand and reuses it until it expires; concurrent callers that find the
token missing or stale share a single refresh.
"""

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

import httpx

from .audit_logger import AuditLogger
from .config import ClientConfig
from .enums import DecodingErrorCode, LogLevel
from .exceptions import DecodingError, TokenRejectedError
from .response_codes import get_response_definition
from .signing import build_assertion
from .transport import HttpTransport

TOKEN_PATH = "/snap/v1.0/access-token/b2b"
GRANT_TYPE = "client_credentials"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """
    Format a datetime as the X-TIMESTAMP header value.

    ISO-8601 with millisecond precision and an explicit offset: "Z" for UTC,
    otherwise "+HH:MM". Naive datetimes are treated as UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    base = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}"
    offset = moment.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return base + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{base}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and the moment it stops being usable."""

    token: str
    expires_at: datetime
    token_type: str = "Bearer"

    def is_valid(self, now: datetime) -> bool:
        return bool(self.token) and now < self.expires_at


class Authenticator(Protocol):
    """Anything that can supply a bearer token to the client."""

    @property
    def access_token(self) -> str: ...

    def is_authenticated(self) -> bool: ...

    async def authenticate(self) -> None: ...

    async def ensure_authenticated(self) -> None: ...


class TokenManager:
    """
    Default Authenticator: exchanges a signed assertion for a bearer token.

    Keys are parsed on every exchange, so a malformed key surfaces as
    KeyFormatError or KeyTypeError before any request is sent.
    """

    COMPONENT = "auth"

    def __init__(
        self,
        config: ClientConfig,
        transport: HttpTransport,
        clock: Optional[Clock] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._clock = clock or utc_now
        self._logger = logger
        self._token: Optional[AccessToken] = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> Optional[AccessToken]:
        return self._token

    @property
    def access_token(self) -> str:
        return self._token.token if self._token else ""

    def is_authenticated(self) -> bool:
        return self._token is not None and self._token.is_valid(self._clock())

    async def ensure_authenticated(self) -> None:
        """Refresh the token if it is missing or expired."""
        if self.is_authenticated():
            return
        async with self._lock:
            # Another caller may have refreshed while we waited
            if self.is_authenticated():
                return
            await self._exchange()

    async def authenticate(self) -> None:
        """
        Unconditionally obtain a new token.

        Raises:
            KeyFormatError: If the private key cannot be decoded
            KeyTypeError: If the private key is not RSA
            SigningError: If signing the assertion fails
            TransportError: If the token endpoint could not be reached
            TokenRejectedError: If the bank refused the exchange
            DecodingError: If a 200 response has an unexpected body
        """
        async with self._lock:
            await self._exchange()

    async def _exchange(self) -> None:
        creds = self._config.credentials
        timestamp = format_timestamp(self._clock())
        signature = build_assertion(creds.client_id, timestamp, creds.private_key)

        headers = {
            "Content-Type": "application/json",
            "X-SIGNATURE": signature,
            "X-CLIENT-KEY": creds.client_id,
            "X-TIMESTAMP": timestamp,
        }
        body = json.dumps({"grantType": GRANT_TYPE}, separators=(",", ":"))

        response = await self._transport.request("POST", TOKEN_PATH, headers, body)

        if response.status_code != 200:
            raise self._rejected(response)

        self._token = self._parse_token(response.text)

        if self._logger:
            self._logger.log(
                LogLevel.INFO,
                self.COMPONENT,
                "Access token issued",
                {
                    "type": self._token.token_type,
                    "expires_at": self._token.expires_at.isoformat(),
                },
            )

    def _parse_token(self, text: str) -> AccessToken:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise DecodingError(
                code=DecodingErrorCode.INVALID_JSON.value,
                message=f"Token response is not valid JSON: {e}",
                details={"path": TOKEN_PATH},
            ) from e

        if not isinstance(data, dict):
            raise self._bad_shape("Token response is not a JSON object")

        token = data.get("accessToken")
        if not isinstance(token, str) or not token:
            raise self._bad_shape("Token response has no accessToken")

        expires_in = data.get("expiresIn", 0)
        if isinstance(expires_in, str) and expires_in.isdigit():
            expires_in = int(expires_in)
        if isinstance(expires_in, bool) or not isinstance(expires_in, int):
            raise self._bad_shape("Token response has a non-integer expiresIn")

        token_type = data.get("tokenType") or "Bearer"
        if not isinstance(token_type, str):
            raise self._bad_shape("Token response has a non-string tokenType")

        return AccessToken(
            token=token,
            expires_at=self._clock() + timedelta(seconds=expires_in),
            token_type=token_type,
        )

    def _bad_shape(self, message: str) -> DecodingError:
        return DecodingError(
            code=DecodingErrorCode.INVALID_SHAPE.value,
            message=message,
            details={"path": TOKEN_PATH},
        )

    def _rejected(self, response: httpx.Response) -> TokenRejectedError:
        code, message = "", ""
        try:
            data = json.loads(response.text)
        except ValueError:
            data = None
        if isinstance(data, dict):
            code = str(data.get("responseCode") or "")
            message = str(data.get("responseMessage") or "")

        error = TokenRejectedError(
            response_code=code,
            response_message=message,
            http_status_code=response.status_code,
            definition=get_response_definition(code) if code else None,
            details={"path": TOKEN_PATH},
            timestamp=self._clock(),
        )
        if self._logger:
            self._logger.log_error(
                self.COMPONENT,
                "Token exchange rejected",
                error=error,
                request_url=TOKEN_PATH,
                response_status_code=response.status_code,
                additional_data={"response_code": code},
            )
        return error
