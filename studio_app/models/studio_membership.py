import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_app.db.base import StudioScopedBase
from studio_app.models.enums import MembershipRole, MembershipStatus, enum_column


class StudioMembership(StudioScopedBase):
    __tablename__ = "studio_memberships"
    __table_args__ = (
        # One membership per profile system-wide, whatever the studio.
        UniqueConstraint("user_id", name="uq_studio_memberships_user"),
        Index("ix_studio_memberships_studio_created", "studio_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    # studio_id inherited from StudioScopedBase
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("user_profiles.id"), nullable=False)
    role: Mapped[MembershipRole] = mapped_column(
        enum_column(MembershipRole, "ck_studio_memberships_role"),
        nullable=False,
        default=MembershipRole.MEMBER,
    )
    status: Mapped[MembershipStatus] = mapped_column(
        enum_column(MembershipStatus, "ck_studio_memberships_status"),
        nullable=False,
        default=MembershipStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    studio: Mapped["Studio"] = relationship(back_populates="memberships", lazy="raise")  # noqa: F821
    user: Mapped["UserProfile"] = relationship(lazy="raise")  # noqa: F821
