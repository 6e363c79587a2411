"""
HTTP transport for the BRIVA client.

Wraps an httpx.AsyncClient bound to the API base URL. Network failures are
mapped to TransportError so they can never be mistaken for a bank response,
and in debug mode every exchange is dumped to the audit logger with secrets
masked and large bodies truncated.
"""

import json
import time
from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .enums import LogLevel, TransportErrorCode
from .exceptions import TransportError

# Bodies longer than this are cut in debug dumps
DEBUG_BODY_LIMIT = 8 * 1024


def truncate_body(text: str, limit: int = DEBUG_BODY_LIMIT) -> str:
    """
    Cut a body to at most `limit` bytes of UTF-8.

    The dropped tail is replaced by a "...[truncated N bytes]" marker.
    """
    raw = text.encode("utf-8")
    if len(raw) <= limit:
        return text
    head = raw[:limit].decode("utf-8", errors="ignore")
    return f"{head}...[truncated {len(raw) - limit} bytes]"


class HttpTransport:
    """
    Async HTTP transport bound to one base URL.

    The underlying httpx client is created lazily so the transport can be
    constructed outside a running event loop.
    """

    COMPONENT = "transport"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        verify_tls: bool = True,
        debug: bool = False,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            base_url: API base URL, e.g. https://partner.api.bri.co.id
            timeout: Per-request timeout in seconds
            verify_tls: Verify server certificates
            debug: Dump requests and responses at DEBUG level
            logger: Optional audit logger
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._verify_tls = verify_tls
        self._debug = debug
        self._logger = logger
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "HttpTransport":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                verify=self._verify_tls,
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        content: Optional[str] = None,
    ) -> httpx.Response:
        """
        Send one request and return the fully read response.

        Any HTTP status is returned as-is; classifying it is up to the caller.

        Raises:
            TransportError: If no response was received (code "timeout" or
                "network_error")
        """
        client = self._ensure_client()
        url = self._base_url + path

        if self._debug:
            self._dump_request(method, url, headers, content)

        start_time = time.perf_counter()
        try:
            response = await client.request(
                method,
                path,
                headers=headers,
                content=content.encode("utf-8") if content is not None else None,
            )
        except httpx.TimeoutException as e:
            raise self._failure(TransportErrorCode.TIMEOUT, method, url, e) from e
        except httpx.RequestError as e:
            raise self._failure(TransportErrorCode.NETWORK_ERROR, method, url, e) from e

        if self._debug:
            self._dump_response(response, self._elapsed_ms(start_time))

        return response

    def _failure(
        self,
        code: TransportErrorCode,
        method: str,
        url: str,
        error: Exception,
    ) -> TransportError:
        failure = TransportError(
            code=code.value,
            message=f"{method} {url} failed: {error}",
            details={"method": method, "url": url, "error_type": type(error).__name__},
        )
        if self._logger:
            self._logger.log_error(
                self.COMPONENT,
                "Request did not complete",
                error=failure,
                request_url=url,
                additional_data={"code": code.value},
            )
        return failure

    def _render_body(self, body: Optional[str]) -> str:
        """Render a body for debug output, masking JSON secrets."""
        if not body:
            return ""
        try:
            parsed = json.loads(body)
        except ValueError:
            return truncate_body(body)
        if isinstance(parsed, dict) and self._logger:
            parsed = self._logger.mask_sensitive_data(parsed)
        return truncate_body(json.dumps(parsed, ensure_ascii=False))

    def _dump_request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: Optional[str],
    ) -> None:
        if not self._logger or not self._logger.is_enabled_for(LogLevel.DEBUG):
            return
        self._logger.log(
            LogLevel.DEBUG,
            self.COMPONENT,
            f"HTTP request {method} {url}",
            {
                "method": method,
                "url": url,
                "headers": dict(headers),
                "body": self._render_body(content),
            },
        )

    def _dump_response(self, response: httpx.Response, duration_ms: float) -> None:
        if not self._logger or not self._logger.is_enabled_for(LogLevel.DEBUG):
            return
        self._logger.log(
            LogLevel.DEBUG,
            self.COMPONENT,
            f"HTTP response {response.status_code}",
            {
                "status_code": response.status_code,
                "headers": dict(response.headers),
                "body": self._render_body(response.text),
                "duration_ms": round(duration_ms, 2),
            },
        )

    def _elapsed_ms(self, start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000
