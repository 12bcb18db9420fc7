"""Initial ERP schema

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

Creates:
1. Access control: departments, roles, permissions, users, login_throttles
2. Master data: items, locations, customers, suppliers
3. Inventory: stock_ledger (append-only) and item_stock (cache)
4. Document numbering: document_sequences
5. Purchasing: requisitions, letters of credit, purchase orders, supplier bills
6. Sales: quotations, sales orders, delivery challans, invoices
7. Accounts: chart_of_accounts, vouchers, voucher_entries, payments
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def _created_at(name='created_at'):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False)


def _document_totals():
    return [
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('discount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('net_cents', sa.Integer(), nullable=False, server_default='0'),
    ]


def _priced_line(parent_column, parent_table):
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column(parent_column, sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('discount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_rate_bps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('line_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint([parent_column], [f'{parent_table}.id'], ),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.PrimaryKeyConstraint('id'),
    ]


def _index(table, *columns, unique=False, name=None):
    with op.batch_alter_table(table, schema=None) as batch_op:
        batch_op.create_index(name or f"ix_{table}_{columns[0]}", list(columns), unique=unique)


def upgrade():
    # ==========================================================================
    # 1. ACCESS CONTROL
    # ==========================================================================
    op.create_table('departments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('departments', 'code', unique=True)

    op.create_table('roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('roles', 'name', unique=True)

    op.create_table('permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('module', sa.String(length=32), nullable=False),
        sa.Column('action', sa.String(length=16), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('role_id', 'module', 'action', name='uq_permissions_role_module_action'),
        sqlite_autoincrement=True
    )
    _index('permissions', 'role_id')

    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('role_id', sa.Integer(), nullable=True),
        sa.Column('department_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('users', 'email', unique=True)
    _index('users', 'role_id')

    op.create_table('login_throttles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('failure_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('window_started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('locked_until', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('login_throttles', 'email', unique=True)

    # ==========================================================================
    # 2. MASTER DATA
    # ==========================================================================
    op.create_table('items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit', sa.String(length=16), nullable=False, server_default='pcs'),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('cost_price_cents', sa.Integer(), nullable=True),
        sa.Column('sale_price_cents', sa.Integer(), nullable=True),
        sa.Column('reorder_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        _created_at('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barcode'),
        sqlite_autoincrement=True
    )
    _index('items', 'code', unique=True)
    _index('items', 'is_active', 'name', name='ix_items_active_name')

    op.create_table('locations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('type', sa.String(length=16), nullable=False, server_default='warehouse'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('locations', 'code', unique=True)

    op.create_table('customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('credit_limit_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('balance_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('customers', 'code', unique=True)

    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('balance_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('suppliers', 'code', unique=True)

    # ==========================================================================
    # 3. INVENTORY
    # ==========================================================================
    op.create_table('stock_ledger',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('transaction_type', sa.String(length=16), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_cost_cents', sa.Integer(), nullable=True),
        sa.Column('reference_type', sa.String(length=32), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('remarks', sa.String(length=255), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        _created_at('transaction_date'),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('stock_ledger', 'item_id')
    _index('stock_ledger', 'location_id')
    _index('stock_ledger', 'transaction_type')
    _index('stock_ledger', 'transaction_date')
    _index('stock_ledger', 'item_id', 'location_id', name='ix_stock_ledger_item_location')
    _index('stock_ledger', 'reference_type', 'reference_id', name='ix_stock_ledger_reference')

    op.create_table('item_stock',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        _created_at('updated_at'),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_id', 'location_id', name='uq_item_stock_item_location'),
        sqlite_autoincrement=True
    )
    _index('item_stock', 'item_id')
    _index('item_stock', 'location_id')

    # ==========================================================================
    # 4. DOCUMENT NUMBERING
    # ==========================================================================
    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_type'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 5. PURCHASING
    # ==========================================================================
    op.create_table('purchase_requisitions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pr_number', sa.String(length=32), nullable=False),
        sa.Column('requested_by_user_id', sa.Integer(), nullable=True),
        sa.Column('department_id', sa.Integer(), nullable=True),
        sa.Column('required_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('approved_by_user_id', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['requested_by_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['approved_by_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pr_number'),
        sqlite_autoincrement=True
    )
    _index('purchase_requisitions', 'status')

    op.create_table('purchase_requisition_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('requisition_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('remarks', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['requisition_id'], ['purchase_requisitions.id'], ),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('purchase_requisition_lines', 'requisition_id')

    op.create_table('letters_of_credit',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lc_number', sa.String(length=32), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('bank_name', sa.String(length=120), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('exchange_rate_e4', sa.Integer(), nullable=False, server_default='10000'),
        sa.Column('issue_date', sa.Date(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=24), nullable=False, server_default='open'),
        sa.Column('remarks', sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('lc_number'),
        sqlite_autoincrement=True
    )
    _index('letters_of_credit', 'supplier_id')
    _index('letters_of_credit', 'status')

    op.create_table('lc_costs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lc_id', sa.Integer(), nullable=False),
        sa.Column('cost_type', sa.String(length=32), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='BDT'),
        sa.Column('exchange_rate_e4', sa.Integer(), nullable=False, server_default='10000'),
        sa.Column('reference_doc', sa.String(length=64), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['lc_id'], ['letters_of_credit.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('lc_costs', 'lc_id')

    op.create_table('purchase_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('po_number', sa.String(length=32), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('requisition_id', sa.Integer(), nullable=True),
        sa.Column('lc_id', sa.Integer(), nullable=True),
        sa.Column('order_type', sa.String(length=16), nullable=False, server_default='local'),
        sa.Column('expected_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='issued'),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_document_totals(),
        _created_at(),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.ForeignKeyConstraint(['requisition_id'], ['purchase_requisitions.id'], ),
        sa.ForeignKeyConstraint(['lc_id'], ['letters_of_credit.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('po_number'),
        sqlite_autoincrement=True
    )
    _index('purchase_orders', 'supplier_id')
    _index('purchase_orders', 'status')

    op.create_table('purchase_order_lines',
        *_priced_line('purchase_order_id', 'purchase_orders'),
        sa.Column('quantity_received', sa.Integer(), nullable=False, server_default='0'),
        sqlite_autoincrement=True
    )
    _index('purchase_order_lines', 'purchase_order_id')

    op.create_table('supplier_bills',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bill_number', sa.String(length=32), nullable=False),
        sa.Column('supplier_reference', sa.String(length=64), nullable=True),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('purchase_order_id', sa.Integer(), nullable=True),
        sa.Column('bill_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('paid_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='unpaid'),
        *_document_totals(),
        _created_at(),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.ForeignKeyConstraint(['purchase_order_id'], ['purchase_orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bill_number'),
        sqlite_autoincrement=True
    )
    _index('supplier_bills', 'supplier_id')
    _index('supplier_bills', 'status')
    _index('supplier_bills', 'status', 'due_date', name='ix_supplier_bills_status_due')

    op.create_table('supplier_bill_lines',
        *_priced_line('bill_id', 'supplier_bills'),
        sqlite_autoincrement=True
    )
    _index('supplier_bill_lines', 'bill_id')

    # ==========================================================================
    # 6. SALES
    # ==========================================================================
    op.create_table('quotations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('quote_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('valid_until', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        *_document_totals(),
        _created_at(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quote_number'),
        sqlite_autoincrement=True
    )
    _index('quotations', 'customer_id')
    _index('quotations', 'status')

    op.create_table('quotation_lines',
        *_priced_line('quotation_id', 'quotations'),
        sqlite_autoincrement=True
    )
    _index('quotation_lines', 'quotation_id')

    op.create_table('sales_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('so_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('quotation_id', sa.Integer(), nullable=True),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='confirmed'),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_document_totals(),
        _created_at(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.ForeignKeyConstraint(['quotation_id'], ['quotations.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('so_number'),
        sqlite_autoincrement=True
    )
    _index('sales_orders', 'customer_id')
    _index('sales_orders', 'status')

    op.create_table('sales_order_lines',
        *_priced_line('sales_order_id', 'sales_orders'),
        sa.Column('quantity_delivered', sa.Integer(), nullable=False, server_default='0'),
        sqlite_autoincrement=True
    )
    _index('sales_order_lines', 'sales_order_id')

    op.create_table('delivery_challans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('challan_number', sa.String(length=32), nullable=False),
        sa.Column('sales_order_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('driver_name', sa.String(length=120), nullable=True),
        sa.Column('vehicle_number', sa.String(length=32), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        _created_at('delivery_date'),
        sa.ForeignKeyConstraint(['sales_order_id'], ['sales_orders.id'], ),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('challan_number'),
        sqlite_autoincrement=True
    )
    _index('delivery_challans', 'sales_order_id')

    op.create_table('delivery_challan_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('challan_id', sa.Integer(), nullable=False),
        sa.Column('sales_order_line_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('quantity_delivered', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['challan_id'], ['delivery_challans.id'], ),
        sa.ForeignKeyConstraint(['sales_order_line_id'], ['sales_order_lines.id'], ),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('delivery_challan_lines', 'challan_id')

    op.create_table('sales_invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('sales_order_id', sa.Integer(), nullable=True),
        sa.Column('challan_id', sa.Integer(), nullable=True),
        sa.Column('invoice_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('paid_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='unpaid'),
        *_document_totals(),
        _created_at(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.ForeignKeyConstraint(['sales_order_id'], ['sales_orders.id'], ),
        sa.ForeignKeyConstraint(['challan_id'], ['delivery_challans.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number'),
        sqlite_autoincrement=True
    )
    _index('sales_invoices', 'customer_id')
    _index('sales_invoices', 'status')
    _index('sales_invoices', 'status', 'due_date', name='ix_sales_invoices_status_due')

    op.create_table('sales_invoice_lines',
        *_priced_line('invoice_id', 'sales_invoices'),
        sqlite_autoincrement=True
    )
    _index('sales_invoice_lines', 'invoice_id')

    # ==========================================================================
    # 7. ACCOUNTS
    # ==========================================================================
    op.create_table('chart_of_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('account_type', sa.String(length=16), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        sa.ForeignKeyConstraint(['parent_id'], ['chart_of_accounts.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('chart_of_accounts', 'code', unique=True)

    op.create_table('vouchers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('voucher_number', sa.String(length=32), nullable=False),
        sa.Column('voucher_type', sa.String(length=16), nullable=False),
        sa.Column('narrative', sa.Text(), nullable=True),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('approved_by_user_id', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['approved_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('voucher_number'),
        sqlite_autoincrement=True
    )
    _index('vouchers', 'voucher_type')
    _index('vouchers', 'status')

    op.create_table('voucher_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('voucher_id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('debit_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('credit_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('narration', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['voucher_id'], ['vouchers.id'], ),
        sa.ForeignKeyConstraint(['account_id'], ['chart_of_accounts.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    _index('voucher_entries', 'voucher_id')
    _index('voucher_entries', 'account_id')

    op.create_table('payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('payment_number', sa.String(length=32), nullable=False),
        sa.Column('payment_type', sa.String(length=16), nullable=False),
        sa.Column('party_type', sa.String(length=16), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.Column('bill_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('payment_mode', sa.String(length=16), nullable=False, server_default='cash'),
        sa.Column('reference_number', sa.String(length=64), nullable=True),
        sa.Column('bank_name', sa.String(length=120), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        _created_at('payment_date'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.ForeignKeyConstraint(['invoice_id'], ['sales_invoices.id'], ),
        sa.ForeignKeyConstraint(['bill_id'], ['supplier_bills.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_number'),
        sqlite_autoincrement=True
    )
    _index('payments', 'payment_type')


def downgrade():
    for table in (
        'payments',
        'voucher_entries',
        'vouchers',
        'chart_of_accounts',
        'sales_invoice_lines',
        'sales_invoices',
        'delivery_challan_lines',
        'delivery_challans',
        'sales_order_lines',
        'sales_orders',
        'quotation_lines',
        'quotations',
        'supplier_bill_lines',
        'supplier_bills',
        'purchase_order_lines',
        'purchase_orders',
        'lc_costs',
        'letters_of_credit',
        'purchase_requisition_lines',
        'purchase_requisitions',
        'document_sequences',
        'item_stock',
        'stock_ledger',
        'suppliers',
        'customers',
        'locations',
        'items',
        'login_throttles',
        'users',
        'permissions',
        'roles',
        'departments',
    ):
        op.drop_table(table)
