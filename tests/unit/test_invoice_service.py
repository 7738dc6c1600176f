"""
Unit tests for invoicing/services/invoice_service.py

Uses AsyncMock to isolate from the database.
Tests: price_items, generate_invoice_number, allocate_invoice_number,
       update_invoice / delete_invoice not-found outcomes.
"""

import re
import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from invoicing.config import settings
from invoicing.errors import ConflictError, InvalidLiteralError
from invoicing.schemas.invoice import InvoiceItemCreate, InvoiceUpdate
from invoicing.services.invoice_service import (
    WriteOutcome,
    allocate_invoice_number,
    delete_invoice,
    generate_invoice_number,
    price_items,
    update_invoice,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _mock_session() -> AsyncMock:
    session = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


def _execute_result(scalar_value=None, rowcount: int = 0):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar_value
    result.rowcount = rowcount
    return result


def _update_body(**overrides) -> InvoiceUpdate:
    data = {
        "client_name": "Acme Corporation",
        "client_address": "1 Market Street",
        "issue_date": date(2026, 3, 1),
        "due_date": date(2026, 3, 31),
        "status": "Sent",
        "items": [{"description": "Consulting", "quantity": 2, "unit_price": "10.005"}],
    }
    data.update(overrides)
    return InvoiceUpdate(**data)


# ---------------------------------------------------------------------------
# price_items
# ---------------------------------------------------------------------------


def test_price_items_uses_cents_and_line_numbers():
    priced, total = price_items(
        [
            InvoiceItemCreate(description="A", quantity=2, unit_price=10.005),
            InvoiceItemCreate(description="B", quantity=7, unit_price="1.115"),
        ]
    )

    assert [p.line_number for p in priced] == [1, 2]
    assert priced[0].line_total_cents == 2001
    assert priced[0].unit_price_cents == 1001
    assert priced[1].line_total_cents == 781
    assert total == 2001 + 781


def test_price_items_total_is_sum_of_lines():
    items = [InvoiceItemCreate(description=f"L{i}", quantity=1, unit_price=0.1) for i in range(10)]
    priced, total = price_items(items)
    assert total == sum(p.line_total_cents for p in priced) == 100


# ---------------------------------------------------------------------------
# invoice numbers
# ---------------------------------------------------------------------------


def test_generate_invoice_number_format():
    number = generate_invoice_number()
    assert re.fullmatch(rf"{settings.INVOICE_NUMBER_PREFIX}-\d{{8}}-[0-9A-F]{{8}}", number)
    assert len(number) <= 50


def test_generate_invoice_number_is_not_just_a_timestamp():
    numbers = {generate_invoice_number() for _ in range(50)}
    assert len(numbers) == 50


@pytest.mark.asyncio
async def test_allocate_retries_on_collision():
    session = _mock_session()
    session.execute.side_effect = [
        _execute_result(uuid.uuid4()),  # first candidate taken
        _execute_result(None),
    ]
    candidates = iter(["INV-1", "INV-2"])

    number = await allocate_invoice_number(session, lambda: next(candidates))

    assert number == "INV-2"
    assert session.execute.await_count == 2


@pytest.mark.asyncio
async def test_allocate_gives_up_after_max_attempts():
    session = _mock_session()
    session.execute.return_value = _execute_result(uuid.uuid4())

    with pytest.raises(ConflictError):
        await allocate_invoice_number(session, lambda: "INV-SAME")

    assert session.execute.await_count == settings.INVOICE_NUMBER_MAX_ATTEMPTS


# ---------------------------------------------------------------------------
# update / delete outcomes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_unknown_invoice_is_not_found():
    session = _mock_session()
    session.execute.return_value = _execute_result(None)

    outcome = await update_invoice(session, str(uuid.uuid4()), _update_body())

    assert outcome is WriteOutcome.NOT_FOUND
    session.add.assert_not_called()
    session.flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_replaces_items_and_recomputes_total():
    inv = MagicMock()
    inv.id = uuid.uuid4()
    inv.total_cents = 0
    session = _mock_session()
    session.execute.side_effect = [
        _execute_result(inv),  # SELECT invoice
        _execute_result(None),  # DELETE items
    ]

    outcome = await update_invoice(session, str(inv.id), _update_body())

    assert outcome is WriteOutcome.UPDATED
    assert inv.total_cents == 2001
    assert inv.status == "Sent"
    assert session.add.call_count == 1
    added = session.add.call_args.args[0]
    assert added.invoice_id == inv.id
    assert added.line_number == 1
    assert added.line_total_cents == 2001
    session.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_unknown_invoice_is_not_found():
    session = _mock_session()
    session.execute.side_effect = [
        _execute_result(rowcount=0),  # DELETE items
        _execute_result(rowcount=0),  # DELETE invoice
    ]

    outcome = await delete_invoice(session, str(uuid.uuid4()))

    assert outcome is WriteOutcome.NOT_FOUND


@pytest.mark.asyncio
async def test_delete_existing_invoice():
    session = _mock_session()
    session.execute.side_effect = [
        _execute_result(rowcount=3),
        _execute_result(rowcount=1),
    ]

    outcome = await delete_invoice(session, str(uuid.uuid4()))

    assert outcome is WriteOutcome.DELETED


@pytest.mark.asyncio
async def test_malformed_id_is_rejected_before_any_query():
    session = _mock_session()

    with pytest.raises(InvalidLiteralError):
        await delete_invoice(session, "1234")

    session.execute.assert_not_awaited()
