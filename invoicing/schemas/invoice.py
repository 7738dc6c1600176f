from datetime import date
from decimal import Decimal
from typing import List

from pydantic import Field, field_validator, model_validator

from invoicing.models.invoice import InvoiceStatus
from invoicing.schemas.common import CamelModel
from invoicing.services.money import MAX_CENTS, line_total_cents, sum_cents, to_ymd

# column ranges: INTEGER quantity, NUMERIC(12, 2) unit price
MAX_QUANTITY = 2**31 - 1
MAX_UNIT_PRICE = Decimal("9999999999.99")


class InvoiceItemCreate(CamelModel):
    model_config = {"str_strip_whitespace": True}

    description: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY)
    unit_price: Decimal = Field(..., ge=0, le=MAX_UNIT_PRICE)

    @field_validator("unit_price", mode="before")
    @classmethod
    def float_via_str(cls, v):
        # 10.005 must stay 10.005, not its binary approximation
        if isinstance(v, float):
            return str(v)
        return v

    @model_validator(mode="after")
    def check_line_total(self):
        if line_total_cents(self.quantity, self.unit_price) > MAX_CENTS:
            raise ValueError("Line total is too large")
        return self


class InvoiceCreate(CamelModel):
    model_config = {"str_strip_whitespace": True}

    client_name: str = Field(..., min_length=1, max_length=255)
    client_address: str = Field(..., min_length=1)
    issue_date: date
    due_date: date
    items: List[InvoiceItemCreate] = Field(..., min_length=1, max_length=500)
    status: InvoiceStatus = InvoiceStatus.DRAFT

    @field_validator("issue_date", "due_date", mode="before")
    @classmethod
    def normalize_date(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Date is required")
        if isinstance(v, str):
            return to_ymd(v) or v
        return v

    @model_validator(mode="after")
    def check_due_date(self):
        if self.due_date < self.issue_date:
            raise ValueError("Due date must be on or after issue date")
        return self

    @model_validator(mode="after")
    def check_invoice_total(self):
        if sum_cents(line_total_cents(i.quantity, i.unit_price) for i in self.items) > MAX_CENTS:
            raise ValueError("Invoice total is too large")
        return self


class InvoiceUpdate(InvoiceCreate):
    status: InvoiceStatus


class InvoiceItemResponse(CamelModel):
    id: str
    line_number: int
    description: str
    quantity: int
    unit_price: str
    line_total: str


class InvoiceResponse(CamelModel):
    id: str
    invoice_number: str
    client_name: str
    client_address: str
    issue_date: str
    due_date: str
    status: str
    total_amount: str
    created_at: str
    updated_at: str


class InvoiceDetailResponse(InvoiceResponse):
    items: List[InvoiceItemResponse] = []
