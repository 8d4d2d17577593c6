import uuid

from sqlalchemy import ForeignKey, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class StudioScopedBase(Base):
    """Abstract base for all studio-scoped tables. Adds studio_id FK + index."""

    __abstract__ = True

    studio_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("studios.id"),
        nullable=False,
        index=True,
    )
