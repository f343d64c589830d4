"""SQLAlchemy model for the settings bookkeeping table."""

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from recordgate.infrastructure.persistence.database import Base

SETTINGS_TABLE = "gate_settings"


class SettingModel(Base):
    """SQLAlchemy model for the settings table.

    Values are stored as text; JSON values are decoded by the repository.
    """

    __tablename__ = SETTINGS_TABLE
    __table_args__ = (UniqueConstraint("scope", "key", name="uq_gate_settings_scope_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scope: Mapped[str] = mapped_column(String(64), nullable=False, default="global")
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Setting(scope={self.scope}, key={self.key})>"
