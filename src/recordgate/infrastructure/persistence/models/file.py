"""SQLAlchemy model for the files bookkeeping table.

Rows describe uploaded files kept in file storage. Writes to this table
trigger thumbnail and file renaming side effects in the record gateway.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from recordgate.infrastructure.persistence.database import Base

FILES_TABLE = "gate_files"


class FileModel(Base):
    """SQLAlchemy model for the files table."""

    __tablename__ = FILES_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    filesize: Mapped[int | None] = mapped_column(Integer, nullable=True)
    storage: Mapped[str] = mapped_column(String(50), nullable=False, default="local")
    uploaded_by: Mapped[int | None] = mapped_column(Integer, nullable=True, info={"owner": True})
    uploaded_on: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        info={"system_date": True},
    )

    def __repr__(self) -> str:
        return f"<File(id={self.id}, filename={self.filename})>"
