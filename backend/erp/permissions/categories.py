# Overview: Module and action constants for the (module, action) permission key.


class PermissionModule:
    """Functional areas a permission can be scoped to."""
    DASHBOARD = "dashboard"
    MASTER_DATA = "master_data"
    INVENTORY = "inventory"
    PURCHASE = "purchase"
    SALES = "sales"
    ACCOUNTS = "accounts"
    REPORTS = "reports"
    SETTINGS = "settings"
    ADMIN = "admin"


class PermissionAction:
    """Verbs a permission can grant within a module."""
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    APPROVE = "approve"


MODULES = (
    PermissionModule.DASHBOARD,
    PermissionModule.MASTER_DATA,
    PermissionModule.INVENTORY,
    PermissionModule.PURCHASE,
    PermissionModule.SALES,
    PermissionModule.ACCOUNTS,
    PermissionModule.REPORTS,
    PermissionModule.SETTINGS,
    PermissionModule.ADMIN,
)

ACTIONS = (
    PermissionAction.READ,
    PermissionAction.WRITE,
    PermissionAction.DELETE,
    PermissionAction.APPROVE,
)
