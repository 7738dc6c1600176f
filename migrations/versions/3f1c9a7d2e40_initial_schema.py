"""initial_schema

Revision ID: 3f1c9a7d2e40
Revises:
Create Date: 2026-10-19 09:12:04.118402+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1. invoices
    op.create_table('invoices',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('invoice_number', sa.String(length=50), nullable=False),
    sa.Column('client_name', sa.String(length=255), nullable=False),
    sa.Column('client_address', sa.Text(), nullable=False),
    sa.Column('issue_date', sa.Date(), nullable=False),
    sa.Column('due_date', sa.Date(), nullable=False),
    sa.Column('total_cents', sa.BigInteger(), nullable=False),
    sa.Column('status', sa.String(length=50), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.CheckConstraint('due_date >= issue_date', name='chk_invoices_due_after_issue'),
    sa.CheckConstraint('total_cents >= 0', name='chk_invoices_total'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('invoice_number', name='uq_invoices_invoice_number')
    )
    op.create_index('idx_invoices_created_at', 'invoices', ['created_at'], unique=False)
    op.create_index('idx_invoices_client_name', 'invoices', ['client_name'], unique=False)

    # 2. invoice_items
    op.create_table('invoice_items',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('invoice_id', sa.Uuid(), nullable=False),
    sa.Column('line_number', sa.Integer(), nullable=False),
    sa.Column('description', sa.String(length=255), nullable=False),
    sa.Column('quantity', sa.Integer(), nullable=False),
    sa.Column('unit_price_cents', sa.BigInteger(), nullable=False),
    sa.Column('line_total_cents', sa.BigInteger(), nullable=False),
    sa.CheckConstraint('quantity > 0', name='chk_invoice_items_qty'),
    sa.CheckConstraint('unit_price_cents >= 0', name='chk_invoice_items_price'),
    sa.CheckConstraint('line_total_cents >= 0', name='chk_invoice_items_total'),
    sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('invoice_id', 'line_number', name='uq_invoice_items_line')
    )
    op.create_index('idx_invoice_items_invoice', 'invoice_items', ['invoice_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_invoice_items_invoice', table_name='invoice_items')
    op.drop_table('invoice_items')
    op.drop_index('idx_invoices_client_name', table_name='invoices')
    op.drop_index('idx_invoices_created_at', table_name='invoices')
    op.drop_table('invoices')
