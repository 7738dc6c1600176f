"""Central model registry. Import all models so Alembic autodiscover works."""

from invoicing.database import Base  # noqa: F401

from invoicing.models.invoice import Invoice, InvoiceLineItem, InvoiceStatus  # noqa: F401
