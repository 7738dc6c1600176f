from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from invoicing.database import get_db, get_session_factory
from invoicing.errors import NotFoundError
from invoicing.models.invoice import Invoice, InvoiceLineItem
from invoicing.schemas.common import PaginatedResponse, SuccessResponse, build_pagination
from invoicing.schemas.invoice import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceResponse,
    InvoiceDetailResponse,
    InvoiceItemResponse,
)
from invoicing.services import invoice_query_service, invoice_service
from invoicing.services.invoice_service import WriteOutcome
from invoicing.services.money import format_cents, to_ymd

logger = structlog.get_logger()
router = APIRouter()


def _line_to_response(li: InvoiceLineItem) -> InvoiceItemResponse:
    return InvoiceItemResponse(
        id=str(li.id),
        line_number=li.line_number,
        description=li.description,
        quantity=li.quantity,
        unit_price=format_cents(li.unit_price_cents),
        line_total=format_cents(li.line_total_cents),
    )


def _to_response(inv: Invoice) -> InvoiceResponse:
    return InvoiceResponse(
        id=str(inv.id),
        invoice_number=inv.invoice_number,
        client_name=inv.client_name,
        client_address=inv.client_address,
        issue_date=to_ymd(inv.issue_date),
        due_date=to_ymd(inv.due_date),
        status=inv.status,
        total_amount=format_cents(inv.total_cents),
        created_at=inv.created_at.isoformat() if inv.created_at else "",
        updated_at=inv.updated_at.isoformat() if inv.updated_at else "",
    )


def _to_detail_response(inv: Invoice, line_items: list[InvoiceLineItem]) -> InvoiceDetailResponse:
    return InvoiceDetailResponse(
        **_to_response(inv).model_dump(),
        items=[_line_to_response(li) for li in line_items],
    )


@router.get(
    "",
    response_model=PaginatedResponse[InvoiceResponse],
    response_model_exclude_none=True,
)
async def list_invoices(
    page: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None, alias="perPage"),
    q: Optional[str] = Query(None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    result = await invoice_query_service.list_invoices(
        session_factory, page=page, per_page=per_page, q=q
    )
    return PaginatedResponse[InvoiceResponse](
        data=[_to_response(inv) for inv in result.invoices],
        meta=build_pagination(result.page, result.per_page, result.total, result.q),
    )


@router.get("/{invoice_id}", response_model=InvoiceDetailResponse)
async def get_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
):
    found = await invoice_query_service.get_invoice(db, invoice_id)
    if found is None:
        raise NotFoundError()

    inv, line_items = found
    return _to_detail_response(inv, line_items)


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    body: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
):
    inv = await invoice_service.create_invoice(db, body)
    return _to_response(inv)


@router.put("/{invoice_id}", response_model=SuccessResponse)
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
):
    outcome = await invoice_service.update_invoice(db, invoice_id, body)
    if outcome is WriteOutcome.NOT_FOUND:
        raise NotFoundError()
    return SuccessResponse()


@router.delete("/{invoice_id}", response_model=SuccessResponse)
async def delete_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
):
    outcome = await invoice_service.delete_invoice(db, invoice_id)
    if outcome is WriteOutcome.NOT_FOUND:
        raise NotFoundError()
    return SuccessResponse()
