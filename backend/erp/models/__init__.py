from .auth import Department, Role, Permission, User, LoginThrottle
from .master import Item, Location, Customer, Supplier
from .inventory import StockLedger, ItemStock
from .documents import DocumentSequence
from .sales import (
    Quotation, QuotationLine, SalesOrder, SalesOrderLine,
    DeliveryChallan, DeliveryChallanLine, SalesInvoice, SalesInvoiceLine,
)
from .purchase import (
    PurchaseRequisition, PurchaseRequisitionLine, LetterOfCredit, LCCost,
    PurchaseOrder, PurchaseOrderLine, SupplierBill, SupplierBillLine,
)
from .accounts import ChartOfAccount, Voucher, VoucherEntry, Payment

__all__ = [
    'Department', 'Role', 'Permission', 'User', 'LoginThrottle',
    'Item', 'Location', 'Customer', 'Supplier',
    'StockLedger', 'ItemStock',
    'DocumentSequence',
    'Quotation', 'QuotationLine', 'SalesOrder', 'SalesOrderLine',
    'DeliveryChallan', 'DeliveryChallanLine', 'SalesInvoice', 'SalesInvoiceLine',
    'PurchaseRequisition', 'PurchaseRequisitionLine', 'LetterOfCredit', 'LCCost',
    'PurchaseOrder', 'PurchaseOrderLine', 'SupplierBill', 'SupplierBillLine',
    'ChartOfAccount', 'Voucher', 'VoucherEntry', 'Payment',
]
