"""Closed role/status vocabularies shared by models, services and schemas."""

from enum import StrEnum

from sqlalchemy import Enum


class MembershipRole(StrEnum):
    ADMIN = "Admin"
    MEMBER = "Member"


class MembershipStatus(StrEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"
    REMOVED = "Removed"


class GlobalRole(StrEnum):
    USER = "User"
    SITE_ADMIN = "SiteAdmin"


def enum_column(enum_cls: type[StrEnum], name: str) -> Enum:
    """VARCHAR + CHECK constraint storing the enum *values* ("Pending", not "PENDING")."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        length=20,
        values_callable=lambda cls: [member.value for member in cls],
    )
