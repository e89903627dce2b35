from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from core.database import Base

class OrganizationType(str, Enum):
    admin = "admin"
    hr = "hr"
    operations_manager = "operations_manager"
    manager = "manager"
    supervisor = "supervisor"
    branch = "branch"
    staff = "staff"

class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[OrganizationType] = mapped_column(
        SAEnum(OrganizationType, name="organization_type"),
        nullable=False,
        index=True,
    )
    # no ondelete: a node with children is refused by the service instead
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("organizations.id"), nullable=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    branch_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
