"""SQLAlchemy model for the users bookkeeping table."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from recordgate.infrastructure.persistence.database import Base

USERS_TABLE = "gate_users"


class UserModel(Base):
    """SQLAlchemy model for the users table.

    Only identity and group membership are kept; authentication is handled
    outside the record layer.
    """

    __tablename__ = USERS_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    group_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
