"""SQLAlchemy model for the permissions bookkeeping table."""

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from recordgate.infrastructure.persistence.database import Base

PERMISSIONS_TABLE = "gate_permissions"


class PermissionModel(Base):
    """SQLAlchemy model for the permissions table.

    Capability columns hold one of ``none``, ``mine``, ``group`` or
    ``full``; blacklists are comma-separated field names.
    """

    __tablename__ = PERMISSIONS_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    group_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    status: Mapped[str | None] = mapped_column(String(64), nullable=True)
    create: Mapped[str] = mapped_column(String(8), nullable=False, default="none")
    read: Mapped[str] = mapped_column(String(8), nullable=False, default="none")
    update: Mapped[str] = mapped_column(String(8), nullable=False, default="none")
    delete: Mapped[str] = mapped_column(String(8), nullable=False, default="none")
    alter: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_field_blacklist: Mapped[str | None] = mapped_column(Text, nullable=True)
    write_field_blacklist: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Permission(collection={self.collection}, group_id={self.group_id}, status={self.status})>"
