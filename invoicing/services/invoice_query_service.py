"""
Invoice listing and lookup. Read-only.

Paging inputs are normalized, never rejected. The count and page queries are
independent, so they run concurrently on two sessions from the same factory.
"""

import asyncio
import math
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from invoicing.config import settings
from invoicing.errors import InvalidLiteralError, map_db_error
from invoicing.models.invoice import Invoice, InvoiceLineItem

logger = structlog.get_logger()

LIKE_ESCAPE = "\\"


@dataclass
class InvoicePage:
    invoices: list[Invoice]
    page: int
    per_page: int
    total: int
    q: str = ""

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def _positive_int(raw, default: int) -> int:
    if raw is None:
        return default
    try:
        value = math.floor(float(str(raw).strip()))
    except (TypeError, ValueError, OverflowError):
        return default
    return value if value > 0 else default


def max_page() -> int:
    # largest page whose OFFSET still fits a signed 64-bit integer
    return (2**63 - 1) // settings.MAX_PER_PAGE


def normalize_page(raw) -> int:
    return min(_positive_int(raw, 1), max_page())


def normalize_per_page(raw) -> int:
    value = _positive_int(raw, settings.DEFAULT_PER_PAGE)
    return max(1, min(settings.MAX_PER_PAGE, value))


def normalize_search(raw) -> str:
    return (raw or "").strip()


def _escape_like(text: str) -> str:
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def search_filter(q: str):
    """Case-insensitive substring match on invoice number or client name."""
    if not q:
        return None
    pattern = f"%{_escape_like(q)}%"
    return or_(
        Invoice.invoice_number.ilike(pattern, escape=LIKE_ESCAPE),
        Invoice.client_name.ilike(pattern, escape=LIKE_ESCAPE),
    )


def parse_invoice_id(invoice_id) -> uuid.UUID:
    if isinstance(invoice_id, uuid.UUID):
        return invoice_id
    try:
        return uuid.UUID(str(invoice_id))
    except ValueError:
        raise InvalidLiteralError("Invalid invoice id.")


async def list_invoices(
    session_factory: async_sessionmaker[AsyncSession],
    page=None,
    per_page=None,
    q: Optional[str] = None,
) -> InvoicePage:
    page = normalize_page(page)
    per_page = normalize_per_page(per_page)
    search = normalize_search(q)
    where = search_filter(search)

    async def _count() -> int:
        stmt = select(func.count(Invoice.id))
        if where is not None:
            stmt = stmt.where(where)
        async with session_factory() as session:
            return int((await session.execute(stmt)).scalar() or 0)

    async def _rows() -> list[Invoice]:
        stmt = select(Invoice)
        if where is not None:
            stmt = stmt.where(where)
        stmt = (
            stmt.order_by(Invoice.created_at.desc(), Invoice.invoice_number.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        async with session_factory() as session:
            return list((await session.execute(stmt)).scalars().all())

    try:
        total, invoices = await asyncio.gather(_count(), _rows())
    except SQLAlchemyError as e:
        raise map_db_error(e) from e

    logger.debug("invoices_listed", page=page, per_page=per_page, total=total, q=search or None)
    return InvoicePage(invoices=invoices, page=page, per_page=per_page, total=total, q=search)


async def get_line_items(session: AsyncSession, invoice_id: uuid.UUID) -> list[InvoiceLineItem]:
    result = await session.execute(
        select(InvoiceLineItem)
        .where(InvoiceLineItem.invoice_id == invoice_id)
        .order_by(InvoiceLineItem.line_number)
    )
    return list(result.scalars().all())


async def get_invoice(
    session: AsyncSession, invoice_id
) -> Optional[tuple[Invoice, list[InvoiceLineItem]]]:
    """Invoice plus its items in insertion order, or None."""
    inv_id = parse_invoice_id(invoice_id)
    try:
        result = await session.execute(select(Invoice).where(Invoice.id == inv_id))
        inv = result.scalar_one_or_none()
        if inv is None:
            return None
        line_items = await get_line_items(session, inv.id)
    except SQLAlchemyError as e:
        raise map_db_error(e) from e
    return inv, line_items
