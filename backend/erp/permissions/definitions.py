# Overview: Default role matrix and the static route -> (module, action) table.
# Each permission is a (module, action) tuple.

from .categories import PermissionModule as M, PermissionAction as A


ADMIN_PERMISSIONS = [
    (M.DASHBOARD, A.READ),
    (M.MASTER_DATA, A.READ),
    (M.MASTER_DATA, A.WRITE),
    (M.MASTER_DATA, A.DELETE),
    (M.INVENTORY, A.READ),
    (M.INVENTORY, A.WRITE),
    (M.INVENTORY, A.DELETE),
    (M.INVENTORY, A.APPROVE),
    (M.PURCHASE, A.READ),
    (M.PURCHASE, A.WRITE),
    (M.PURCHASE, A.DELETE),
    (M.PURCHASE, A.APPROVE),
    (M.SALES, A.READ),
    (M.SALES, A.WRITE),
    (M.SALES, A.DELETE),
    (M.SALES, A.APPROVE),
    (M.ACCOUNTS, A.READ),
    (M.ACCOUNTS, A.WRITE),
    (M.ACCOUNTS, A.DELETE),
    (M.ACCOUNTS, A.APPROVE),
    (M.REPORTS, A.READ),
    (M.SETTINGS, A.READ),
    (M.SETTINGS, A.WRITE),
    (M.ADMIN, A.READ),
    (M.ADMIN, A.WRITE),
    (M.ADMIN, A.DELETE),
]

MANAGER_PERMISSIONS = [
    (M.DASHBOARD, A.READ),
    (M.MASTER_DATA, A.READ),
    (M.MASTER_DATA, A.WRITE),
    (M.INVENTORY, A.READ),
    (M.INVENTORY, A.WRITE),
    (M.INVENTORY, A.APPROVE),
    (M.PURCHASE, A.READ),
    (M.PURCHASE, A.WRITE),
    (M.PURCHASE, A.APPROVE),
    (M.SALES, A.READ),
    (M.SALES, A.WRITE),
    (M.SALES, A.APPROVE),
    (M.ACCOUNTS, A.READ),
    (M.ACCOUNTS, A.WRITE),
    (M.REPORTS, A.READ),
]

USER_PERMISSIONS = [
    (M.DASHBOARD, A.READ),
    (M.MASTER_DATA, A.READ),
    (M.INVENTORY, A.READ),
    (M.INVENTORY, A.WRITE),
    (M.PURCHASE, A.READ),
    (M.PURCHASE, A.WRITE),
    (M.SALES, A.READ),
    (M.SALES, A.WRITE),
]

DEFAULT_ROLE_PERMISSIONS = {
    "Admin": ADMIN_PERMISSIONS,
    "Manager": MANAGER_PERMISSIONS,
    "User": USER_PERMISSIONS,
}

DEFAULT_ROLE_DESCRIPTIONS = {
    "Admin": "System Administrator with full access",
    "Manager": "Department Manager with approval rights",
    "User": "Regular user with limited access",
}

# Role assigned on self-registration
DEFAULT_SIGNUP_ROLE = "User"


# Page routes and API routes share one table. Lookups pick the longest
# registered prefix; paths with no registered prefix are allowed.
ROUTE_PERMISSIONS = {
    "/dashboard": (M.DASHBOARD, A.READ),
    "/master/items": (M.MASTER_DATA, A.READ),
    "/master/customers": (M.MASTER_DATA, A.READ),
    "/master/suppliers": (M.MASTER_DATA, A.READ),
    "/inventory/stock": (M.INVENTORY, A.READ),
    "/inventory/receive": (M.INVENTORY, A.WRITE),
    "/inventory/issue": (M.INVENTORY, A.WRITE),
    "/inventory/ledger": (M.INVENTORY, A.READ),
    "/purchase/requisitions": (M.PURCHASE, A.READ),
    "/purchase/orders": (M.PURCHASE, A.READ),
    "/purchase/lc": (M.PURCHASE, A.READ),
    "/sales/quotations": (M.SALES, A.READ),
    "/sales/orders": (M.SALES, A.READ),
    "/sales/delivery": (M.SALES, A.READ),
    "/sales/invoices": (M.SALES, A.READ),
    "/accounts/chart": (M.ACCOUNTS, A.READ),
    "/accounts/vouchers": (M.ACCOUNTS, A.READ),
    "/accounts/receivables": (M.ACCOUNTS, A.READ),
    "/accounts/payables": (M.ACCOUNTS, A.READ),
    "/settings": (M.SETTINGS, A.READ),
    "/admin": (M.ADMIN, A.READ),
    "/admin/users": (M.ADMIN, A.READ),
    "/admin/roles": (M.ADMIN, A.READ),
    "/api/items": (M.MASTER_DATA, A.READ),
    "/api/locations": (M.MASTER_DATA, A.READ),
    "/api/customers": (M.MASTER_DATA, A.READ),
    "/api/suppliers": (M.MASTER_DATA, A.READ),
    "/api/inventory": (M.INVENTORY, A.READ),
    "/api/inventory/receive": (M.INVENTORY, A.WRITE),
    "/api/inventory/issue": (M.INVENTORY, A.WRITE),
    "/api/inventory/transfer": (M.INVENTORY, A.WRITE),
    "/api/purchase": (M.PURCHASE, A.READ),
    "/api/sales": (M.SALES, A.READ),
    "/api/accounts": (M.ACCOUNTS, A.READ),
    "/api/admin": (M.ADMIN, A.READ),
}
