"""SQLAlchemy model for saved collection presets (listing views)."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from recordgate.infrastructure.persistence.database import Base

COLLECTION_PRESETS_TABLE = "gate_collection_presets"


class CollectionPresetModel(Base):
    """SQLAlchemy model for the collection presets table."""

    __tablename__ = COLLECTION_PRESETS_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    group_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sort: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sort_order: Mapped[str] = mapped_column(String(4), nullable=False, default="ASC")

    def __repr__(self) -> str:
        return f"<CollectionPreset(id={self.id}, collection={self.collection})>"
