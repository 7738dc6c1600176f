"""
Seed script: creates a handful of sample invoices through the write service.
Run from the project root: python -m scripts.seed
"""
import asyncio
import os
import sys
from datetime import date, timedelta

# Ensure the project root is on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select, func
import structlog

from invoicing.database import get_session_factory, close_db
from invoicing.logging_config import setup_logging
from invoicing.models.invoice import Invoice, InvoiceStatus
from invoicing.schemas.invoice import InvoiceCreate
from invoicing.services.invoice_service import create_invoice

logger = structlog.get_logger()

SAMPLE_CLIENTS = [
    ("PT Nusantara Digital", "Jl. Sudirman No. 10, Jakarta", InvoiceStatus.PAID),
    ("Acme Corporation", "1 Market Street, San Francisco, CA", InvoiceStatus.SENT),
    ("Globex Ltd", "42 Harbour Road, Singapore", InvoiceStatus.DRAFT),
    ("Initech", "4120 Freidrich Lane, Austin, TX", InvoiceStatus.OVERDUE),
    ("Umbrella Trading", "7 Rue de Rivoli, Paris", InvoiceStatus.CANCELLED),
]

SAMPLE_ITEMS = [
    {"description": "Website design", "quantity": 1, "unit_price": "1500.00"},
    {"description": "Hosting (monthly)", "quantity": 12, "unit_price": "19.99"},
    {"description": "Support hours", "quantity": 3, "unit_price": "10.005"},
]


async def seed():
    async with get_session_factory()() as db:
        existing = (await db.execute(select(func.count(Invoice.id)))).scalar() or 0
        if existing:
            print("Seed data already exists. Skipping.")
            return

        today = date.today()
        for offset, (client_name, client_address, status) in enumerate(SAMPLE_CLIENTS):
            issue_date = today - timedelta(days=30 - offset * 5)
            body = InvoiceCreate(
                client_name=client_name,
                client_address=client_address,
                issue_date=issue_date,
                due_date=issue_date + timedelta(days=14),
                status=status,
                items=SAMPLE_ITEMS[: 1 + offset % len(SAMPLE_ITEMS)],
            )
            inv = await create_invoice(db, body)
            print(f"  {inv.invoice_number}  {client_name}")

        await db.commit()
        logger.info("seed_complete", invoices=len(SAMPLE_CLIENTS))


async def main():
    setup_logging()
    try:
        await seed()
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
