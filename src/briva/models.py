"""
Data models for the BRIVA virtual account API.

Attribute names are snake_case; to_dict() and from_dict() translate to and
from the camelCase keys used on the wire. from_dict() checks the shape of
what it reads and raises TypeError for values of the wrong type, so a
malformed response never turns into a half-filled object.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


def pad_left_space(value: str, width: int) -> str:
    """Right-align a value in a field of spaces, e.g. partner service ids."""
    return value.rjust(width)


def _expect_dict(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise TypeError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _get_str(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _get_obj(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    return _expect_dict(value, key)


def _get_list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{key} must be a JSON array, got {type(value).__name__}")
    return value


# ============================================================================
# Shared value types
# ============================================================================

@dataclass
class Amount:
    """Monetary amount; value is a decimal string such as "10000.00"."""

    value: str = ""
    currency: str = ""

    @classmethod
    def of(cls, amount: float, currency: str = "IDR") -> "Amount":
        return cls(value=f"{amount:.2f}", currency=currency)

    def to_dict(self) -> dict:
        return {"value": self.value, "currency": self.currency}

    @classmethod
    def from_dict(cls, data: Any) -> "Amount":
        data = _expect_dict(data, "amount")
        return cls(value=_get_str(data, "value"), currency=_get_str(data, "currency"))


@dataclass
class AdditionalInfo:
    description: str = ""

    def to_dict(self) -> dict:
        return {"description": self.description} if self.description else {}

    @classmethod
    def from_dict(cls, data: Any) -> "AdditionalInfo":
        data = _expect_dict(data, "additionalInfo")
        return cls(description=_get_str(data, "description"))


@dataclass
class FreeText:
    """Free text in both languages the bank supports."""

    english: str = ""
    indonesia: str = ""

    def to_dict(self) -> dict:
        return {"english": self.english, "indonesia": self.indonesia}

    @classmethod
    def from_dict(cls, data: Any) -> "FreeText":
        data = _expect_dict(data, "freeText")
        return cls(english=_get_str(data, "english"), indonesia=_get_str(data, "indonesia"))


@dataclass
class VirtualAccountData:
    """A virtual account as returned by the bank."""

    partner_service_id: str = ""
    customer_no: str = ""
    virtual_account_no: str = ""
    virtual_account_name: str = ""
    trx_id: str = ""
    institution_code: str = ""
    total_amount: Amount = field(default_factory=Amount)
    expired_date: str = ""
    additional_info: AdditionalInfo = field(default_factory=AdditionalInfo)
    paid_status: str = ""

    def to_dict(self) -> dict:
        data = {
            "partnerServiceId": self.partner_service_id,
            "customerNo": self.customer_no,
            "virtualAccountNo": self.virtual_account_no,
            "virtualAccountName": self.virtual_account_name,
            "trxId": self.trx_id,
            "totalAmount": self.total_amount.to_dict(),
            "additionalInfo": self.additional_info.to_dict(),
        }
        if self.institution_code:
            data["institutionCode"] = self.institution_code
        if self.expired_date:
            data["expiredDate"] = self.expired_date
        if self.paid_status:
            data["paidStatus"] = self.paid_status
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "VirtualAccountData":
        data = _expect_dict(data, "virtualAccountData")
        return cls(
            partner_service_id=_get_str(data, "partnerServiceId"),
            customer_no=_get_str(data, "customerNo"),
            virtual_account_no=_get_str(data, "virtualAccountNo"),
            virtual_account_name=_get_str(data, "virtualAccountName"),
            trx_id=_get_str(data, "trxId"),
            institution_code=_get_str(data, "institutionCode"),
            total_amount=Amount.from_dict(_get_obj(data, "totalAmount")),
            expired_date=_get_str(data, "expiredDate"),
            additional_info=AdditionalInfo.from_dict(_get_obj(data, "additionalInfo")),
            paid_status=_get_str(data, "paidStatus"),
        )


@dataclass
class VirtualAccountTransaction:
    """One paid transaction in a virtual account report."""

    partner_service_id: str = ""
    customer_no: str = ""
    virtual_account_no: str = ""
    virtual_account_name: str = ""
    source_account_no: str = ""
    paid_amount: Amount = field(default_factory=Amount)
    trx_date_time: str = ""
    trx_id: str = ""
    inquiry_request_id: str = ""
    payment_request_id: str = ""
    total_amount: Amount = field(default_factory=Amount)
    free_texts: list[FreeText] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "partnerServiceId": self.partner_service_id,
            "customerNo": self.customer_no,
            "virtualAccountNo": self.virtual_account_no,
            "virtualAccountName": self.virtual_account_name,
            "sourceAccountNo": self.source_account_no,
            "paidAmount": self.paid_amount.to_dict(),
            "trxDateTime": self.trx_date_time,
            "trxId": self.trx_id,
            "inquiryRequestId": self.inquiry_request_id,
            "paymentRequestId": self.payment_request_id,
            "totalAmount": self.total_amount.to_dict(),
        }
        if self.free_texts:
            data["freeTexts"] = [text.to_dict() for text in self.free_texts]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "VirtualAccountTransaction":
        data = _expect_dict(data, "transaction")
        return cls(
            partner_service_id=_get_str(data, "partnerServiceId"),
            customer_no=_get_str(data, "customerNo"),
            virtual_account_no=_get_str(data, "virtualAccountNo"),
            virtual_account_name=_get_str(data, "virtualAccountName"),
            source_account_no=_get_str(data, "sourceAccountNo"),
            paid_amount=Amount.from_dict(_get_obj(data, "paidAmount")),
            trx_date_time=_get_str(data, "trxDateTime"),
            trx_id=_get_str(data, "trxId"),
            inquiry_request_id=_get_str(data, "inquiryRequestId"),
            payment_request_id=_get_str(data, "paymentRequestId"),
            total_amount=Amount.from_dict(_get_obj(data, "totalAmount")),
            free_texts=[FreeText.from_dict(item) for item in _get_list(data, "freeTexts")],
        )


# ============================================================================
# Requests
# ============================================================================

@dataclass
class VirtualAccountRequest:
    """Full virtual account payload, shared by create and update."""

    partner_service_id: str
    customer_no: str
    virtual_account_no: str
    virtual_account_name: str
    total_amount: Amount
    expired_date: str
    trx_id: str
    additional_info: AdditionalInfo = field(default_factory=AdditionalInfo)

    @classmethod
    def build(
        cls,
        partner_service_id: str,
        customer_no: str,
        virtual_account_no: str,
        virtual_account_name: str,
        trx_id: str,
        amount: float,
        currency: str,
        expired_date: str,
        description: str = "",
    ):
        """Build a request from a float amount, formatted with two decimals."""
        return cls(
            partner_service_id=partner_service_id,
            customer_no=customer_no,
            virtual_account_no=virtual_account_no,
            virtual_account_name=virtual_account_name,
            total_amount=Amount.of(amount, currency),
            expired_date=expired_date,
            trx_id=trx_id,
            additional_info=AdditionalInfo(description),
        )

    def to_dict(self) -> dict:
        return {
            "partnerServiceId": self.partner_service_id,
            "customerNo": self.customer_no,
            "virtualAccountNo": self.virtual_account_no,
            "virtualAccountName": self.virtual_account_name,
            "totalAmount": self.total_amount.to_dict(),
            "expiredDate": self.expired_date,
            "trxId": self.trx_id,
            "additionalInfo": self.additional_info.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any):
        data = _expect_dict(data, "request")
        return cls(
            partner_service_id=_get_str(data, "partnerServiceId"),
            customer_no=_get_str(data, "customerNo"),
            virtual_account_no=_get_str(data, "virtualAccountNo"),
            virtual_account_name=_get_str(data, "virtualAccountName"),
            total_amount=Amount.from_dict(_get_obj(data, "totalAmount")),
            expired_date=_get_str(data, "expiredDate"),
            trx_id=_get_str(data, "trxId"),
            additional_info=AdditionalInfo.from_dict(_get_obj(data, "additionalInfo")),
        )


class CreateVirtualAccountRequest(VirtualAccountRequest):
    pass


class UpdateVirtualAccountRequest(VirtualAccountRequest):
    pass


@dataclass
class VirtualAccountLookup:
    """Identifies a virtual account by number and transaction id."""

    partner_service_id: str
    customer_no: str
    virtual_account_no: str
    trx_id: str

    def to_dict(self) -> dict:
        return {
            "partnerServiceId": self.partner_service_id,
            "customerNo": self.customer_no,
            "virtualAccountNo": self.virtual_account_no,
            "trxId": self.trx_id,
        }

    @classmethod
    def from_dict(cls, data: Any):
        data = _expect_dict(data, "request")
        return cls(
            partner_service_id=_get_str(data, "partnerServiceId"),
            customer_no=_get_str(data, "customerNo"),
            virtual_account_no=_get_str(data, "virtualAccountNo"),
            trx_id=_get_str(data, "trxId"),
        )


class InquiryVirtualAccountRequest(VirtualAccountLookup):
    pass


class DeleteVirtualAccountRequest(VirtualAccountLookup):
    pass


@dataclass
class UpdateVirtualAccountStatusRequest:
    partner_service_id: str
    customer_no: str
    virtual_account_no: str
    trx_id: str
    paid_status: str  # "Y" or "N"

    def to_dict(self) -> dict:
        return {
            "partnerServiceId": self.partner_service_id,
            "customerNo": self.customer_no,
            "virtualAccountNo": self.virtual_account_no,
            "trxId": self.trx_id,
            "paidStatus": self.paid_status,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "UpdateVirtualAccountStatusRequest":
        data = _expect_dict(data, "request")
        return cls(
            partner_service_id=_get_str(data, "partnerServiceId"),
            customer_no=_get_str(data, "customerNo"),
            virtual_account_no=_get_str(data, "virtualAccountNo"),
            trx_id=_get_str(data, "trxId"),
            paid_status=_get_str(data, "paidStatus"),
        )


@dataclass
class InquiryVirtualAccountStatusRequest:
    partner_service_id: str
    customer_no: str
    virtual_account_no: str
    inquiry_request_id: str

    def to_dict(self) -> dict:
        return {
            "partnerServiceId": self.partner_service_id,
            "customerNo": self.customer_no,
            "virtualAccountNo": self.virtual_account_no,
            "inquiryRequestId": self.inquiry_request_id,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "InquiryVirtualAccountStatusRequest":
        data = _expect_dict(data, "request")
        return cls(
            partner_service_id=_get_str(data, "partnerServiceId"),
            customer_no=_get_str(data, "customerNo"),
            virtual_account_no=_get_str(data, "virtualAccountNo"),
            inquiry_request_id=_get_str(data, "inquiryRequestId"),
        )


@dataclass
class VirtualAccountReportRequest:
    """Report of paid transactions in a date and time window."""

    partner_service_id: str
    start_date: str  # YYYY-MM-DD
    start_time: str  # HH:MM:SS+07:00
    end_time: str
    end_date: str = ""

    def to_dict(self) -> dict:
        data = {
            "partnerServiceId": self.partner_service_id,
            "startDate": self.start_date,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }
        if self.end_date:
            data["endDate"] = self.end_date
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "VirtualAccountReportRequest":
        data = _expect_dict(data, "request")
        return cls(
            partner_service_id=_get_str(data, "partnerServiceId"),
            start_date=_get_str(data, "startDate"),
            start_time=_get_str(data, "startTime"),
            end_time=_get_str(data, "endTime"),
            end_date=_get_str(data, "endDate"),
        )


# ============================================================================
# Responses
# ============================================================================

@dataclass
class VirtualAccountResponse:
    """Response carrying the bank's code, message and one virtual account."""

    response_code: str = ""
    response_message: str = ""
    virtual_account_data: Optional[VirtualAccountData] = None

    def to_dict(self) -> dict:
        data = {
            "responseCode": self.response_code,
            "responseMessage": self.response_message,
        }
        if self.virtual_account_data is not None:
            data["virtualAccountData"] = self.virtual_account_data.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any):
        data = _expect_dict(data, "response")
        raw = data.get("virtualAccountData")
        return cls(
            response_code=_get_str(data, "responseCode"),
            response_message=_get_str(data, "responseMessage"),
            virtual_account_data=VirtualAccountData.from_dict(raw) if raw is not None else None,
        )


class CreateVirtualAccountResponse(VirtualAccountResponse):
    pass


class UpdateVirtualAccountResponse(VirtualAccountResponse):
    pass


class UpdateVirtualAccountStatusResponse(VirtualAccountResponse):
    pass


class InquiryVirtualAccountResponse(VirtualAccountResponse):
    pass


class DeleteVirtualAccountResponse(VirtualAccountResponse):
    pass


@dataclass
class InquiryVirtualAccountStatusResponse(VirtualAccountResponse):
    additional_info: AdditionalInfo = field(default_factory=AdditionalInfo)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["additionalInfo"] = self.additional_info.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "InquiryVirtualAccountStatusResponse":
        response = super().from_dict(data)
        response.additional_info = AdditionalInfo.from_dict(_get_obj(data, "additionalInfo"))
        return response


@dataclass
class VirtualAccountReportResponse:
    response_code: str = ""
    response_message: str = ""
    virtual_account_data: list[VirtualAccountTransaction] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "responseCode": self.response_code,
            "responseMessage": self.response_message,
        }
        if self.virtual_account_data:
            data["virtualAccountData"] = [t.to_dict() for t in self.virtual_account_data]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "VirtualAccountReportResponse":
        data = _expect_dict(data, "response")
        return cls(
            response_code=_get_str(data, "responseCode"),
            response_message=_get_str(data, "responseMessage"),
            virtual_account_data=[
                VirtualAccountTransaction.from_dict(item)
                for item in _get_list(data, "virtualAccountData")
            ],
        )

