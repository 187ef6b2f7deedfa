# console_core/iam/selectors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from django.db.models import Q, QuerySet

from console_core.iam.models import AppRole, Profile, UserRole
from console_core.iam.roles import get_highest_role


def profiles_qs(
    *,
    search: str | None = None,
    is_active: bool | None = None,
    organization_id: UUID | None = None,
    workspace_id: UUID | None = None,
    facility_id: UUID | None = None,
) -> QuerySet[Profile]:
    qs = Profile.objects.select_related("user")
    if search:
        qs = qs.filter(Q(full_name__icontains=search) | Q(email__icontains=search))
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    if organization_id:
        qs = qs.filter(user__console_roles__workspace__organization_id=organization_id)
    if workspace_id:
        qs = qs.filter(user__console_roles__workspace_id=workspace_id)
    if facility_id:
        qs = qs.filter(user__console_roles__facility_id=facility_id)
    return qs.distinct().order_by("full_name")


def get_profile(*, user_id: int) -> Optional[Profile]:
    return Profile.objects.filter(user_id=user_id).first()


def user_roles_qs(*, user_id: int) -> QuerySet[UserRole]:
    return (
        UserRole.objects.filter(user_id=user_id)
        .select_related("workspace", "facility", "department", "specialty")
        .order_by("created_at")
    )


def role_names_for_user(user) -> List[str]:
    """
    Role strings held by the user. A Django superuser always counts as super_admin.
    """
    roles = list(UserRole.objects.filter(user_id=user.id).values_list("role", flat=True).distinct())
    if getattr(user, "is_superuser", False) and AppRole.SUPER_ADMIN not in roles:
        roles.append(AppRole.SUPER_ADMIN)
    return roles


def highest_role_for_user(user) -> Optional[str]:
    return get_highest_role(role_names_for_user(user))


def workspace_ids_for_user(*, user_id: int) -> set:
    return set(
        UserRole.objects.filter(user_id=user_id, workspace__isnull=False)
        .values_list("workspace_id", flat=True)
        .distinct()
    )


def is_profile_active(*, user_id: int) -> bool:
    """
    Users without a console profile (e.g. bootstrap superusers) count as active.
    """
    profile = Profile.objects.filter(user_id=user_id).only("is_active").first()
    return profile is None or profile.is_active


@dataclass(frozen=True)
class VisibleScope:
    """
    Units a user can see through their roles. unrestricted covers superusers and super admins.
    """
    unrestricted: bool = False
    organization_ids: frozenset = frozenset()
    workspace_ids: frozenset = frozenset()
    facility_ids: frozenset = frozenset()


def visible_scope(user) -> VisibleScope:
    if getattr(user, "is_superuser", False):
        return VisibleScope(unrestricted=True)

    from console_core.facilities.models import Facility
    from console_core.organizations.models import Organization
    from console_core.workspaces.models import Workspace

    rows = list(UserRole.objects.filter(user_id=user.id).select_related("workspace"))
    if any(r.role == AppRole.SUPER_ADMIN for r in rows):
        return VisibleScope(unrestricted=True)

    org_ids = set(Organization.objects.filter(owner_id=user.id).values_list("id", flat=True))
    ws_ids = set(Workspace.objects.filter(organization_id__in=org_ids).values_list("id", flat=True))
    facility_ids = set()

    for r in rows:
        if r.role in (AppRole.GENERAL_ADMIN, AppRole.WORKPLACE_SUPERVISOR) and r.workspace_id:
            ws_ids.add(r.workspace_id)
            org_ids.add(r.workspace.organization_id)
        elif r.facility_id:
            facility_ids.add(r.facility_id)
            if r.workspace_id:
                org_ids.add(r.workspace.organization_id)

    facility_ids |= set(Facility.objects.filter(workspace_id__in=ws_ids).values_list("id", flat=True))
    ws_ids |= set(Facility.objects.filter(id__in=facility_ids).values_list("workspace_id", flat=True))

    return VisibleScope(
        organization_ids=frozenset(org_ids),
        workspace_ids=frozenset(ws_ids),
        facility_ids=frozenset(facility_ids),
    )
