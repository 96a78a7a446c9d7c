from rest_framework.permissions import BasePermission

from apps.accounts.models import UserRole


ROLE_CAPABILITIES = {
    UserRole.ADMIN: {
        "payments.view",
        "payments.manage",
        "sales.view",
        "sales.create",
        "sales.cancel",
        "sales.delete",
        "cash.view",
        "cash.operate",
        "receivables.view",
        "receivables.manage",
        "payables.view",
        "payables.manage",
        "banking.view",
        "banking.manage",
        "reconciliation.view",
        "reconciliation.manage",
    },
    UserRole.FINANCE: {
        "payments.view",
        "sales.view",
        "cash.view",
        "receivables.view",
        "receivables.manage",
        "payables.view",
        "payables.manage",
        "banking.view",
        "banking.manage",
        "reconciliation.view",
        "reconciliation.manage",
    },
    UserRole.CASHIER: {
        "payments.view",
        "sales.view",
        "sales.create",
        "sales.cancel",
        "cash.view",
        "cash.operate",
    },
}


def resolve_role(user):
    group_names = set(user.groups.values_list("name", flat=True))
    for role in (UserRole.ADMIN, UserRole.FINANCE, UserRole.CASHIER):
        if role in group_names:
            return role
    return getattr(user, "role", UserRole.CASHIER)


class RolePermission(BasePermission):
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        capability_map = getattr(view, "capability_map", {})
        action = getattr(view, "action", None) or request.method.lower()
        required = capability_map.get(action) or capability_map.get(request.method.lower()) or set()
        if not required:
            return True

        user_caps = ROLE_CAPABILITIES.get(resolve_role(request.user), set())
        return all(cap in user_caps for cap in required)
