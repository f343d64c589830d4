"""SQLAlchemy model for the collections bookkeeping table.

One row per collection managed by the layer, holding collection-level
metadata. Field definitions live in the fields table.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from recordgate.infrastructure.persistence.database import Base

COLLECTIONS_TABLE = "gate_collections"


class CollectionModel(Base):
    """SQLAlchemy model for the collections table.

    Attributes:
        collection: Collection (table) name, primary key.
        hidden: Whether the collection is hidden from listings.
        status_mapping: JSON status mapping overriding the global one.
        note: Free text description.
        created_on: Timestamp when the collection was registered.
    """

    __tablename__ = COLLECTIONS_TABLE

    collection: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Collection (table) name",
    )
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status_mapping: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        info={"json": True},
        comment="JSON status mapping",
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_on: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        info={"system_date": True},
    )

    def __repr__(self) -> str:
        return f"<Collection(collection={self.collection})>"
