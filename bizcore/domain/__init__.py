"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  business.py  — Business (the tenant) and User
  customer.py  — REFERENCE tenant-owned resource (copy when adding invoices, expenses, etc.)
  access.py    — Role grants and per-user permission toggles
  audit.py     — Append-only audit log (never updated or deleted)
  mixins.py    — Shared TimestampMixin, TenantMixin
"""

from bizcore.domain.access import RolePermission, UserFeatureToggle
from bizcore.domain.audit import AuditLog
from bizcore.domain.business import Business, User
from bizcore.domain.customer import Customer

__all__ = [
    "AuditLog",
    "Business",
    "Customer",
    "RolePermission",
    "User",
    "UserFeatureToggle",
]
