import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from charterdesk.config import settings
from charterdesk.models.inquiry import InquiryStatus

_CAMEL = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "str_strip_whitespace": True,
}


class CharterRequest(BaseModel):
    """A guest's charter request. Immutable once parsed."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    yacht_id: str = Field(min_length=1, max_length=64)
    yacht_name: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: date
    guests: int | None = Field(default=None, ge=1)
    message: str | None = None
    currency: str = Field(default_factory=lambda: settings.default_currency, pattern=r"^[A-Za-z]{3}$")
    tax_percentage: Decimal = Field(default=Decimal("21"), ge=0, le=100)
    apa_percentage: Decimal = Field(default=Decimal("30"), ge=0, le=100)

    model_config = {**_CAMEL, "frozen": True}

    @field_validator("phone", "message")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _check_range(self) -> "CharterRequest":
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self


class ClientPriceBreakdown(BaseModel):
    """Price figures the browser calculated before submitting."""

    base_charter_fee: Decimal
    tax_amount: Decimal
    apa_amount: Decimal
    fixed_fees: Decimal = Decimal("0")
    total_estimate: Decimal
    nights: int | None = None

    model_config = {**_CAMEL, "extra": "ignore", "frozen": True}


class BookingSubmission(CharterRequest):
    price_breakdown: ClientPriceBreakdown | None = None

    def charter_request(self) -> CharterRequest:
        return CharterRequest(**self.model_dump(exclude={"price_breakdown"}))


class StatusUpdateRequest(BaseModel):
    status: InquiryStatus


class InquiryResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str | None
    yacht_id: str
    yacht_name: str
    start_date: date
    end_date: date
    guests: int | None
    message: str | None
    currency: str
    tax_percentage: Decimal
    apa_percentage: Decimal
    status: str
    total_estimate: Decimal | None
    price_breakdown: dict | None
    created_at: datetime | None

    model_config = {"from_attributes": True}
