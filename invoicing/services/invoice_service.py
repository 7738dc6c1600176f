"""
Invoice write service: create, replace-on-update, delete.

All functions use the caller's session (no commit). get_db() commits once the
route returns, or rolls the whole request back on any error, so an invoice row
and its item rows are always written together.
"""

import enum
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from invoicing.config import settings
from invoicing.errors import ConflictError, map_db_error
from invoicing.models.invoice import Invoice, InvoiceLineItem
from invoicing.schemas.invoice import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate
from invoicing.services.invoice_query_service import parse_invoice_id
from invoicing.services.money import line_total_cents, sum_cents, to_cents

logger = structlog.get_logger()


class WriteOutcome(str, enum.Enum):
    UPDATED = "UPDATED"
    DELETED = "DELETED"
    NOT_FOUND = "NOT_FOUND"


@dataclass
class PricedItem:
    line_number: int
    description: str
    quantity: int
    unit_price_cents: int
    line_total_cents: int


def price_items(items: Iterable[InvoiceItemCreate]) -> tuple[list[PricedItem], int]:
    """Price every line in cents and return (lines, invoice total in cents)."""
    priced = [
        PricedItem(
            line_number=idx,
            description=item.description,
            quantity=item.quantity,
            unit_price_cents=to_cents(item.unit_price),
            line_total_cents=line_total_cents(item.quantity, item.unit_price),
        )
        for idx, item in enumerate(items, start=1)
    ]
    return priced, sum_cents(p.line_total_cents for p in priced)


def generate_invoice_number() -> str:
    return (
        f"{settings.INVOICE_NUMBER_PREFIX}-{datetime.utcnow().strftime('%Y%m%d')}-"
        f"{secrets.token_hex(4).upper()}"
    )


async def allocate_invoice_number(
    session: AsyncSession,
    number_factory: Callable[[], str],
) -> str:
    """
    Draw candidates until one is unused, up to INVOICE_NUMBER_MAX_ATTEMPTS.

    The unique constraint on invoice_number still guards the insert, so a
    concurrent writer taking the same number surfaces as UNIQUE_VIOLATION.
    """
    for attempt in range(1, settings.INVOICE_NUMBER_MAX_ATTEMPTS + 1):
        candidate = number_factory()
        result = await session.execute(
            select(Invoice.id).where(Invoice.invoice_number == candidate)
        )
        if result.scalar_one_or_none() is None:
            return candidate
        logger.warning("invoice_number_collision", invoice_number=candidate, attempt=attempt)

    raise ConflictError("Could not allocate a unique invoice number.")


def _add_line_items(session: AsyncSession, invoice: Invoice, priced: list[PricedItem]) -> None:
    for p in priced:
        session.add(
            InvoiceLineItem(
                invoice_id=invoice.id,
                line_number=p.line_number,
                description=p.description,
                quantity=p.quantity,
                unit_price_cents=p.unit_price_cents,
                line_total_cents=p.line_total_cents,
            )
        )


async def create_invoice(
    session: AsyncSession,
    body: InvoiceCreate,
    number_factory: Optional[Callable[[], str]] = None,
) -> Invoice:
    priced, total_cents = price_items(body.items)
    number_factory = number_factory or generate_invoice_number

    try:
        invoice_number = await allocate_invoice_number(session, number_factory)
        inv = Invoice(
            invoice_number=invoice_number,
            client_name=body.client_name,
            client_address=body.client_address,
            issue_date=body.issue_date,
            due_date=body.due_date,
            status=body.status.value,
            total_cents=total_cents,
        )
        session.add(inv)
        await session.flush()

        _add_line_items(session, inv, priced)
        await session.flush()
    except SQLAlchemyError as e:
        raise map_db_error(e) from e

    logger.info(
        "invoice_created",
        invoice_id=str(inv.id),
        invoice_number=inv.invoice_number,
        items=len(priced),
        total_cents=total_cents,
    )
    return inv


async def update_invoice(session: AsyncSession, invoice_id, body: InvoiceUpdate) -> WriteOutcome:
    """Overwrite the invoice fields and replace its whole item set."""
    inv_id = parse_invoice_id(invoice_id)
    priced, total_cents = price_items(body.items)

    try:
        result = await session.execute(select(Invoice).where(Invoice.id == inv_id))
        inv = result.scalar_one_or_none()
        if inv is None:
            logger.info("invoice_update_not_found", invoice_id=str(inv_id))
            return WriteOutcome.NOT_FOUND

        inv.client_name = body.client_name
        inv.client_address = body.client_address
        inv.issue_date = body.issue_date
        inv.due_date = body.due_date
        inv.status = body.status.value
        inv.total_cents = total_cents
        inv.updated_at = datetime.utcnow()

        await session.execute(
            delete(InvoiceLineItem).where(InvoiceLineItem.invoice_id == inv.id)
        )
        _add_line_items(session, inv, priced)
        await session.flush()
    except SQLAlchemyError as e:
        raise map_db_error(e) from e

    logger.info(
        "invoice_updated",
        invoice_id=str(inv.id),
        items=len(priced),
        total_cents=total_cents,
    )
    return WriteOutcome.UPDATED


async def delete_invoice(session: AsyncSession, invoice_id) -> WriteOutcome:
    inv_id = parse_invoice_id(invoice_id)

    try:
        # Items go first so backends without enforced FKs match the cascade.
        await session.execute(
            delete(InvoiceLineItem).where(InvoiceLineItem.invoice_id == inv_id)
        )
        result = await session.execute(delete(Invoice).where(Invoice.id == inv_id))
    except SQLAlchemyError as e:
        raise map_db_error(e) from e

    if not result.rowcount:
        logger.info("invoice_delete_not_found", invoice_id=str(inv_id))
        return WriteOutcome.NOT_FOUND

    logger.info("invoice_deleted", invoice_id=str(inv_id))
    return WriteOutcome.DELETED
