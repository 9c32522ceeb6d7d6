"""Request principals supplied by the upstream identity provider.

Credentials are verified before requests reach this service; the gateway
forwards the authenticated identity in headers and these dependencies trust
them as given.
"""

from dataclasses import dataclass, field

from fastapi import Depends, Header, HTTPException

from storefront.utils.logging import bind_request_context

MANAGE_ORDERS = "orders:manage"
MANAGE_PRODUCTS = "products:manage"


@dataclass(frozen=True)
class Customer:
    customer_id: str
    email: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class Admin:
    admin_id: str
    permissions: frozenset[str] = field(default_factory=frozenset)

    def can(self, permission: str) -> bool:
        return "*" in self.permissions or permission in self.permissions


def current_customer(
    x_customer_id: str | None = Header(None),
    x_customer_email: str | None = Header(None),
    x_customer_name: str | None = Header(None),
) -> Customer:
    if not x_customer_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    bind_request_context(customer_id=x_customer_id)
    return Customer(customer_id=x_customer_id, email=x_customer_email, name=x_customer_name)


def current_admin(
    x_admin_id: str | None = Header(None),
    x_admin_permissions: str | None = Header(None),
) -> Admin:
    if not x_admin_id:
        raise HTTPException(status_code=401, detail="Admin authentication required")
    permissions = frozenset(p.strip() for p in (x_admin_permissions or "").split(",") if p.strip())
    bind_request_context(admin_id=x_admin_id)
    return Admin(admin_id=x_admin_id, permissions=permissions)


def require_permission(permission: str):
    """Dependency factory: an admin holding ``permission``, else 403."""

    def _dependency(admin: Admin = Depends(current_admin)) -> Admin:
        if not admin.can(permission):
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission}")
        return admin

    return _dependency
