# console_core/organizations/selectors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from console_core.organizations.models import Organization


@dataclass(frozen=True)
class OrganizationUsage:
    organization_id: UUID
    workspaces: int
    facilities: int
    users: int
    max_workspaces: int | None
    max_facilities: int | None
    max_users: int | None

    def as_dict(self) -> dict:
        return {
            "organization_id": str(self.organization_id),
            "workspaces": {"used": self.workspaces, "limit": self.max_workspaces},
            "facilities": {"used": self.facilities, "limit": self.max_facilities},
            "users": {"used": self.users, "limit": self.max_users},
        }


def organization_qs() -> QuerySet[Organization]:
    return Organization.objects.select_related("owner").all()


def get_organization(*, organization_id: UUID) -> Organization:
    return Organization.objects.get(id=organization_id)


def get_organization_or_none(*, organization_id: UUID) -> Optional[Organization]:
    return Organization.objects.filter(id=organization_id).first()


def organizations_owned_by(*, user_id: int) -> QuerySet[Organization]:
    return Organization.objects.filter(owner_id=user_id).order_by("name")


def count_workspaces(*, organization_id: UUID) -> int:
    from console_core.workspaces.models import Workspace

    return Workspace.objects.filter(organization_id=organization_id).count()


def count_facilities(*, organization_id: UUID) -> int:
    """Facilities across every workspace of the organization."""
    from console_core.facilities.models import Facility

    return Facility.objects.filter(workspace__organization_id=organization_id).count()


def count_users(*, organization_id: UUID) -> int:
    """Distinct users holding at least one role scoped to one of the organization's workspaces."""
    from console_core.iam.models import UserRole

    return (
        UserRole.objects.filter(workspace__organization_id=organization_id)
        .values("user_id")
        .distinct()
        .count()
    )


def is_user_in_organization(*, organization_id: UUID, user_id: int) -> bool:
    from console_core.iam.models import UserRole

    return UserRole.objects.filter(workspace__organization_id=organization_id, user_id=user_id).exists()


def organization_usage(*, organization_id: UUID) -> OrganizationUsage:
    org = get_organization(organization_id=organization_id)
    return OrganizationUsage(
        organization_id=org.id,
        workspaces=count_workspaces(organization_id=org.id),
        facilities=count_facilities(organization_id=org.id),
        users=count_users(organization_id=org.id),
        max_workspaces=org.max_workspaces,
        max_facilities=org.max_facilities,
        max_users=org.max_users,
    )
