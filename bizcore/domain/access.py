"""SQLAlchemy ORM models for role grants and per-user permission overrides."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bizcore.db.base import Base
from bizcore.domain.mixins import TenantMixin, TimestampMixin


class RolePermission(Base, TenantMixin, TimestampMixin):
    """Grants `permission` (e.g. "customer:create") to every user with `role`."""

    __tablename__ = "role_permissions"
    __table_args__ = (UniqueConstraint("business_id", "role", "permission"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    permission: Mapped[str] = mapped_column(String(100), nullable=False, index=True)


class UserFeatureToggle(Base, TenantMixin, TimestampMixin):
    """Per-user override: is_allowed=True grants, is_allowed=False denies."""

    __tablename__ = "user_feature_toggles"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    is_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    # NULL = never expires
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
