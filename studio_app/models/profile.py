import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from studio_app.db.base import Base
from studio_app.models.enums import GlobalRole, enum_column


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    external_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    global_role: Mapped[GlobalRole] = mapped_column(
        enum_column(GlobalRole, "ck_user_profiles_global_role"),
        nullable=False,
        default=GlobalRole.USER,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=lambda: datetime.now(UTC)
    )

    @property
    def is_site_admin(self) -> bool:
        match self.global_role:
            case GlobalRole.SITE_ADMIN:
                return True
            case GlobalRole.USER:
                return False
