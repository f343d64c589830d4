"""SQLAlchemy model for the fields bookkeeping table.

Each row describes one field of a collection, physical column or alias.
"""

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from recordgate.infrastructure.persistence.database import Base

FIELDS_TABLE = "gate_fields"


class FieldModel(Base):
    """SQLAlchemy model for the fields table."""

    __tablename__ = FIELDS_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    field: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="string")
    datatype: Mapped[str | None] = mapped_column(String(64), nullable=True)
    length: Mapped[str | None] = mapped_column(String(255), nullable=True)
    default_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    interface: Mapped[str | None] = mapped_column(String(64), nullable=True)
    nullable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    primary_key: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_increment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    unique: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    system_date: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status_field: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    owner_field: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    relationship_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    related_collection: Mapped[str | None] = mapped_column(String(64), nullable=True)
    junction_table: Mapped[str | None] = mapped_column(String(64), nullable=True)
    junction_key_left: Mapped[str | None] = mapped_column(String(64), nullable=True)
    junction_key_right: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sort: Mapped[int | None] = mapped_column(Integer, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Field(collection={self.collection}, field={self.field})>"
