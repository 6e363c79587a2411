"""
Property-based tests for the BRIVA client dispatcher.

All requests go to httpx.MockTransport; the token endpoint is answered by
the same handler so operations exercise the full authenticate-then-call path.
"""

import asyncio
import json
from datetime import datetime, timezone
from io import StringIO

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from hypothesis import given, settings
from hypothesis import strategies as st

from briva.audit_logger import AuditLogger
from briva.auth import TOKEN_PATH
from briva.client import (
    CREATE_VA_PATH,
    DELETE_VA_PATH,
    INQUIRY_STATUS_PATH,
    INQUIRY_VA_PATH,
    REPORT_PATH,
    UPDATE_STATUS_PATH,
    UPDATE_VA_PATH,
    BrivaClient,
)
from briva.config import ClientConfig, Credentials
from briva.enums import Category, LogLevel
from briva.exceptions import DecodingError, StructuredAPIResponse, TransportError
from briva.models import (
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
    pad_left_space,
)
from briva.signing import sign_request
from briva.transport import HttpTransport


RSA_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
PRIVATE_KEY_PEM = RSA_KEY.private_bytes(
    serialization.Encoding.PEM,
    serialization.PrivateFormat.TraditionalOpenSSL,
    serialization.NoEncryption(),
).decode("ascii")

BASE_URL = "https://sandbox.partner.api.bri.co.id"
NOW = datetime(2025, 6, 1, 8, 30, 0, 123000, tzinfo=timezone.utc)
TIMESTAMP = "2025-06-01T08:30:00.123Z"
ACCESS_TOKEN = "access-token-xyz"


def make_config(debug: bool = False) -> ClientConfig:
    return ClientConfig(
        credentials=Credentials(
            partner_id="partner-1",
            client_id="client-1",
            client_secret="secret-1",
            private_key=PRIVATE_KEY_PEM,
            channel_id="95221",
        ),
        is_sandbox=True,
        debug=debug,
    )


class Recorder:
    """MockTransport handler: answers token requests, records the rest."""

    def __init__(self, status: int = 200, body=None, text: str = None) -> None:
        self.status = status
        self.body = body if body is not None else {
            "responseCode": "2002700",
            "responseMessage": "Successful",
        }
        self.text = text
        self.requests: list[httpx.Request] = []
        self.token_requests = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == TOKEN_PATH:
            self.token_requests += 1
            return httpx.Response(
                200,
                json={"accessToken": ACCESS_TOKEN, "tokenType": "Bearer", "expiresIn": 899},
            )
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status, text=self.text)
        return httpx.Response(self.status, json=self.body)


def make_client(recorder, logger=None, debug: bool = False) -> BrivaClient:
    config = make_config(debug)
    transport = HttpTransport(
        config.base_url,
        debug=debug,
        logger=logger,
        transport=httpx.MockTransport(recorder),
    )
    return BrivaClient(config, transport=transport, logger=logger, clock=lambda: NOW)


def run(client: BrivaClient, operation: str, request):
    async def run_test():
        async with client:
            return await getattr(client, operation)(request)
    return asyncio.run(run_test())


def create_request() -> CreateVirtualAccountRequest:
    return CreateVirtualAccountRequest.build(
        partner_service_id=pad_left_space("22416", 8),
        customer_no=pad_left_space("1234567890", 20),
        virtual_account_no=pad_left_space("22416" + "1234567890", 28),
        virtual_account_name="John Doe",
        trx_id="1234567890",
        amount=10000,
        currency="IDR",
        expired_date="2025-06-02T08:30:00+07:00",
        description="Invoice 1",
    )


LOOKUP = dict(
    partner_service_id="   22416",
    customer_no="0001",
    virtual_account_no="   224160001",
    trx_id="TRX1",
)

OPERATIONS = [
    ("create_virtual_account", create_request(), "POST", CREATE_VA_PATH,
     CreateVirtualAccountResponse),
    ("update_virtual_account", UpdateVirtualAccountRequest.build(
        "   22416", "0001", "   224160001", "Jane", "TRX2", 150000.0, "IDR",
        "2025-12-31T23:59:59+07:00"),
     "PUT", UPDATE_VA_PATH, UpdateVirtualAccountResponse),
    ("update_virtual_account_status", UpdateVirtualAccountStatusRequest(
        paid_status="Y", **LOOKUP), "PUT", UPDATE_STATUS_PATH,
     UpdateVirtualAccountStatusResponse),
    ("inquiry_virtual_account", InquiryVirtualAccountRequest(**LOOKUP), "POST",
     INQUIRY_VA_PATH, InquiryVirtualAccountResponse),
    ("delete_virtual_account", DeleteVirtualAccountRequest(**LOOKUP), "DELETE",
     DELETE_VA_PATH, DeleteVirtualAccountResponse),
    ("inquiry_virtual_account_status", InquiryVirtualAccountStatusRequest(
        partner_service_id="   22416", customer_no="0001",
        virtual_account_no="   224160001", inquiry_request_id="INQ1"),
     "POST", INQUIRY_STATUS_PATH, InquiryVirtualAccountStatusResponse),
    ("get_virtual_account_report", VirtualAccountReportRequest(
        partner_service_id="   22416", start_date="2025-06-01",
        start_time="00:00:00+07:00", end_time="23:59:59+07:00"),
     "POST", REPORT_PATH, VirtualAccountReportResponse),
]


class TestDispatchProperty:
    """Every operation sends a correctly signed request to its endpoint."""

    @given(operation=st.sampled_from(OPERATIONS))
    @settings(max_examples=30, deadline=None)
    def test_operation_routing_and_headers(self, operation) -> None:
        name, request, method, path, response_type = operation
        recorder = Recorder()

        response = run(make_client(recorder), name, request)

        assert isinstance(response, response_type)
        assert recorder.token_requests == 1
        assert len(recorder.requests) == 1

        sent = recorder.requests[0]
        body = sent.content.decode("utf-8")
        assert sent.method == method
        assert sent.url == BASE_URL + path
        assert json.loads(body) == request.to_dict()
        assert sent.headers["Content-Type"] == "application/json"
        assert sent.headers["X-PARTNER-ID"] == "partner-1"
        assert sent.headers["CHANNEL-ID"] == "95221"
        assert sent.headers["Authorization"] == f"Bearer {ACCESS_TOKEN}"
        assert sent.headers["X-TIMESTAMP"] == TIMESTAMP

        external_id = sent.headers["X-EXTERNAL-ID"]
        assert len(external_id) == 9 and external_id.isdigit()

        # The signed timestamp is the one that was sent
        assert sent.headers["X-SIGNATURE"] == sign_request(
            method, path, body, ACCESS_TOKEN, "secret-1", TIMESTAMP
        )

    def test_body_is_compact_json(self) -> None:
        recorder = Recorder()

        run(make_client(recorder), "create_virtual_account", create_request())

        body = recorder.requests[0].content.decode("utf-8")
        assert ", " not in body and ": " not in body
        assert json.loads(body)["totalAmount"] == {"value": "10000.00", "currency": "IDR"}

    def test_token_reused_across_calls(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        async def run_test():
            async with client:
                await client.inquiry_virtual_account(InquiryVirtualAccountRequest(**LOOKUP))
                await client.inquiry_virtual_account(InquiryVirtualAccountRequest(**LOOKUP))

        asyncio.run(run_test())

        assert recorder.token_requests == 1
        assert len(recorder.requests) == 2

    def test_execute_without_body(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        async def run_test():
            async with client:
                await client.authenticate()
                return await client.execute("get", "/snap/v1.0/ping")

        response = asyncio.run(run_test())

        sent = recorder.requests[0]
        assert response.status_code == 200
        assert sent.method == "GET"
        assert sent.content == b""
        assert sent.headers["X-SIGNATURE"] == sign_request(
            "GET", "/snap/v1.0/ping", "", ACCESS_TOKEN, "secret-1", TIMESTAMP
        )

    def test_empty_token_omits_authorization(self) -> None:
        class NoTokenAuthenticator:
            access_token = ""

            def is_authenticated(self) -> bool:
                return True

            async def authenticate(self) -> None:
                pass

            async def ensure_authenticated(self) -> None:
                pass

        recorder = Recorder()
        config = make_config()
        client = BrivaClient(
            config,
            transport=HttpTransport(config.base_url, transport=httpx.MockTransport(recorder)),
            authenticator=NoTokenAuthenticator(),
            clock=lambda: NOW,
        )

        run(client, "inquiry_virtual_account", InquiryVirtualAccountRequest(**LOOKUP))

        assert recorder.token_requests == 0
        assert "Authorization" not in recorder.requests[0].headers


class TestEndToEndProperty:
    """Decoded responses carry what the bank sent."""

    def test_create_echoes_fields(self) -> None:
        request = create_request()
        recorder = Recorder(body={
            "responseCode": "2002700",
            "responseMessage": "Successful",
            "virtualAccountData": {
                **request.to_dict(),
                "institutionCode": "J104408",
            },
        })

        response = run(make_client(recorder), "create_virtual_account", request)

        assert response.response_code == "2002700"
        assert response.response_message == "Successful"
        data = response.virtual_account_data
        assert data.partner_service_id == request.partner_service_id
        assert data.customer_no == request.customer_no
        assert data.virtual_account_no == request.virtual_account_no
        assert data.virtual_account_name == "John Doe"
        assert data.trx_id == request.trx_id
        assert data.total_amount.value == "10000.00"
        assert data.total_amount.currency == "IDR"
        assert data.expired_date == request.expired_date
        assert data.additional_info.description == "Invoice 1"
        assert data.institution_code == "J104408"

    def test_report_decodes_transactions(self) -> None:
        recorder = Recorder(body={
            "responseCode": "2003500",
            "responseMessage": "Successful",
            "virtualAccountData": [{
                "partnerServiceId": "   22416",
                "customerNo": "0001",
                "virtualAccountNo": "   224160001",
                "virtualAccountName": "John Doe",
                "sourceAccountNo": "888801000157508",
                "paidAmount": {"value": "10000.00", "currency": "IDR"},
                "trxDateTime": "2025-06-01T10:00:00+07:00",
                "trxId": "TRX1",
                "inquiryRequestId": "INQ1",
                "paymentRequestId": "PAY1",
                "totalAmount": {"value": "10000.00", "currency": "IDR"},
                "freeTexts": [{"english": "Paid", "indonesia": "Lunas"}],
            }],
        })

        response = run(make_client(recorder), "get_virtual_account_report", OPERATIONS[-1][1])

        assert len(response.virtual_account_data) == 1
        transaction = response.virtual_account_data[0]
        assert transaction.paid_amount.value == "10000.00"
        assert transaction.free_texts[0].indonesia == "Lunas"


class TestApiErrorProperty:
    """Non-200 responses become StructuredAPIResponse errors."""

    def test_bad_request_classified(self) -> None:
        recorder = Recorder(400, {"responseCode": "4002701", "responseMessage": "Invalid Field Format"})

        with pytest.raises(StructuredAPIResponse) as exc_info:
            run(make_client(recorder), "create_virtual_account", create_request())

        error = exc_info.value
        assert error.response_code == "4002701"
        assert error.response_message == "Invalid Field Format"
        assert error.http_status_code == 400
        assert error.category == Category.BAD_REQUEST
        assert error.is_client_error()
        assert not error.is_server_error()
        assert error.field == "virtualAccountNo"
        assert error.timestamp == NOW

    def test_unknown_code_is_pending(self) -> None:
        recorder = Recorder(400, {"responseCode": "9999999", "responseMessage": "Unknown"})

        with pytest.raises(StructuredAPIResponse) as exc_info:
            run(make_client(recorder), "inquiry_virtual_account", InquiryVirtualAccountRequest(**LOOKUP))

        assert exc_info.value.category == Category.PENDING
        assert exc_info.value.is_pending()

    @given(
        status=st.sampled_from([400, 401, 403, 404, 409, 500, 502, 503, 504]),
        field=st.sampled_from(["virtualAccountNo", "customerNo", "trxId"]),
        prefix=st.sampled_from(["Invalid Mandatory Field", "Invalid Field Format"]),
    )
    @settings(max_examples=30, deadline=None)
    def test_field_taken_from_message(self, status: int, field: str, prefix: str) -> None:
        recorder = Recorder(status, {
            "responseCode": f"{status}2702",
            "responseMessage": f"{prefix} {field}",
        })

        with pytest.raises(StructuredAPIResponse) as exc_info:
            run(make_client(recorder), "delete_virtual_account", DeleteVirtualAccountRequest(**LOOKUP))

        error = exc_info.value
        assert error.field == field
        assert f"(field: {field})" in str(error)
        assert error.http_status_code == status

    def test_unparseable_error_body(self) -> None:
        recorder = Recorder(503, text="<html>Service Unavailable</html>")

        with pytest.raises(StructuredAPIResponse) as exc_info:
            run(make_client(recorder), "create_virtual_account", create_request())

        error = exc_info.value
        assert error.response_code == ""
        assert error.response_message == ""
        assert error.definition is None
        assert error.category == Category.INTERNAL_SERVER_ERROR
        assert "Service Unavailable" in error.details["body"]

    def test_api_error_logged(self) -> None:
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        recorder = Recorder(404, {"responseCode": "4042701", "responseMessage": "Not found"})

        with pytest.raises(StructuredAPIResponse):
            run(make_client(recorder, logger), "inquiry_virtual_account",
                InquiryVirtualAccountRequest(**LOOKUP))

        errors = [entry for entry in logger.entries if entry.level == LogLevel.ERROR]
        assert len(errors) == 1
        assert errors[0].data["response_status_code"] == 404
        assert errors[0].data["category"] == "NotFound"


class TestDecodingErrorProperty:
    """A 200 whose body does not fit is a DecodingError, never an API error."""

    @pytest.mark.parametrize("text", [
        "not json",
        "[1, 2, 3]",
        '{"responseCode": 2002700}',
        '{"responseCode": "2002700", "virtualAccountData": "nope"}',
        '{"responseCode": "2002700", "virtualAccountData": {"totalAmount": 5}}',
    ])
    def test_invalid_200_body(self, text: str) -> None:
        recorder = Recorder(200, text=text)

        with pytest.raises(DecodingError) as exc_info:
            run(make_client(recorder), "create_virtual_account", create_request())

        assert not isinstance(exc_info.value, StructuredAPIResponse)


class TestTransportErrorProperty:
    """Requests that never completed are TransportErrors."""

    @pytest.mark.parametrize("exc_type,code", [
        (httpx.ConnectError, "network_error"),
        (httpx.ConnectTimeout, "timeout"),
        (httpx.ReadTimeout, "timeout"),
    ])
    def test_transport_failure(self, exc_type, code: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == TOKEN_PATH:
                return httpx.Response(
                    200, json={"accessToken": ACCESS_TOKEN, "expiresIn": 899}
                )
            raise exc_type("boom", request=request)

        logger = AuditLogger(output_format="json", output_stream=StringIO())

        with pytest.raises(TransportError) as exc_info:
            run(make_client(handler, logger), "create_virtual_account", create_request())

        assert exc_info.value.code == code
        assert not isinstance(exc_info.value, StructuredAPIResponse)
        assert isinstance(exc_info.value.__cause__, exc_type)
        assert any(entry.level == LogLevel.ERROR for entry in logger.entries)


class TestDebugLoggingProperty:
    """Debug mode dumps exchanges with secrets masked and bodies truncated."""

    def test_debug_dump_masks_secrets(self) -> None:
        output = StringIO()
        logger = AuditLogger(output_format="json", output_stream=output)
        recorder = Recorder()

        run(make_client(recorder, logger, debug=True), "create_virtual_account", create_request())

        text = output.getvalue()
        assert ACCESS_TOKEN not in text
        assert "secret-1" not in text

        dumps = [entry for entry in logger.entries if entry.level == LogLevel.DEBUG]
        # token request, token response, call request, call response
        assert len(dumps) == 4
        call_request = dumps[2].data
        assert call_request["method"] == "POST"
        assert call_request["url"] == BASE_URL + CREATE_VA_PATH
        assert call_request["headers"]["Authorization"] == "***MASKED***"
        assert call_request["headers"]["X-SIGNATURE"] == "***MASKED***"
        assert json.loads(call_request["body"])["trxId"] == "1234567890"
        assert "duration_ms" in dumps[3].data

    def test_debug_body_truncated(self) -> None:
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        long_name = "x" * 20000
        recorder = Recorder(body={
            "responseCode": "2002700",
            "responseMessage": "Successful",
            "virtualAccountData": {"virtualAccountName": long_name},
        })

        response = run(make_client(recorder, logger, debug=True), "create_virtual_account", create_request())

        # The caller still sees the whole body
        assert response.virtual_account_data.virtual_account_name == long_name

        body = logger.entries[-1].data["body"]
        assert "...[truncated " in body
        assert body.endswith(" bytes]")
        assert len(body) < 8 * 1024 + 64

    def test_no_dump_without_debug(self) -> None:
        logger = AuditLogger(output_format="json", output_stream=StringIO())

        run(make_client(Recorder(), logger), "create_virtual_account", create_request())

        assert not any(entry.level == LogLevel.DEBUG for entry in logger.entries)
