"""User model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from handoff.database import Base
from handoff.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """A parent or caregiver who can be assigned events."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    timezone: Mapped[str] = mapped_column(String(50), default="UTC")
    # Extra minutes this user wants on top of any drive-time estimate
    comfort_buffer_minutes: Mapped[int] = mapped_column(Integer, default=5)

    # Relationships
    assigned_events: Mapped[list["Event"]] = relationship(back_populates="assigned_to")  # noqa: F821

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name='{self.name}')>"
