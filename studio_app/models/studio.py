import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_app.db.base import Base


class Studio(Base):
    __tablename__ = "studios"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("user_profiles.id"), nullable=False, index=True
    )
    invite_token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    invite_token_created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    # Legacy shared join password; superseded by invite tokens.
    join_password_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    join_password_salt: Mapped[str | None] = mapped_column(String(64), nullable=True)
    join_password_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    owner: Mapped["UserProfile"] = relationship(lazy="raise")  # noqa: F821
    memberships: Mapped[list["StudioMembership"]] = relationship(  # noqa: F821
        back_populates="studio",
        lazy="raise",
        order_by="StudioMembership.created_at.desc()",
    )
