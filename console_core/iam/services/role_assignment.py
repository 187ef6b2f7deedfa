# console_core/iam/services/role_assignment.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import PermissionDenied, ValidationError

from console_core.audit.services import AuditService
from console_core.common.api.exceptions import InvalidScope
from console_core.departments.models import Department
from console_core.facilities.models import Facility
from console_core.iam.models import AppRole, UserRole
from console_core.iam.roles import (
    DepartmentHeadScope,
    FacilitySupervisorScope,
    GeneralAdminScope,
    OrganizationAdminScope,
    RoleScope,
    StaffScope,
    WorkplaceSupervisorScope,
    can_grant,
)
from console_core.iam.selectors import role_names_for_user
from console_core.organizations.limits import assert_can_add_user
from console_core.organizations.models import Organization
from console_core.workspaces.models import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedScope:
    """Scope rows after lookup; workspace is derived from the facility when not given."""
    organization_id: Optional[UUID] = None
    workspace_id: Optional[UUID] = None
    facility_id: Optional[UUID] = None
    department_id: Optional[UUID] = None


def resolve_scope(scope: RoleScope) -> ResolvedScope:
    """
    Checks that every referenced row exists and that the department fits the role.
    """
    if isinstance(scope, OrganizationAdminScope):
        if not Organization.objects.filter(id=scope.organization_id).exists():
            raise ValidationError({"organization_id": "Organization not found."})
        return ResolvedScope(organization_id=scope.organization_id)

    if isinstance(scope, (GeneralAdminScope, WorkplaceSupervisorScope)):
        ws = Workspace.objects.filter(id=scope.workspace_id).first()
        if not ws:
            raise ValidationError({"workspace_id": "Workspace not found."})
        return ResolvedScope(organization_id=ws.organization_id, workspace_id=ws.id)

    if isinstance(scope, (FacilitySupervisorScope, DepartmentHeadScope, StaffScope)):
        facility = Facility.objects.select_related("workspace").filter(id=scope.facility_id).first()
        if not facility:
            raise ValidationError({"facility_id": "Facility not found."})

        department_id = None
        if isinstance(scope, (DepartmentHeadScope, StaffScope)):
            dept = Department.objects.filter(id=scope.department_id).first()
            if not dept:
                raise ValidationError({"department_id": "Department not found."})
            if dept.facility_id != facility.id:
                raise InvalidScope(f"Department '{dept.name}' does not belong to facility '{facility.name}'.")
            if isinstance(scope, DepartmentHeadScope) and not dept.is_main:
                raise InvalidScope(
                    f"Department heads must be assigned to a main department; '{dept.name}' is a subdepartment."
                )
            if isinstance(scope, StaffScope) and dept.is_main:
                raise InvalidScope(
                    f"Staff must be assigned to a subdepartment; '{dept.name}' is a main department."
                )
            department_id = dept.id

        return ResolvedScope(
            organization_id=facility.workspace.organization_id,
            workspace_id=facility.workspace_id,
            facility_id=facility.id,
            department_id=department_id,
        )

    # super_admin
    return ResolvedScope()


def _creator_covers(creator, target: ResolvedScope) -> bool:
    """
    Whether one of the creator's own role rows contains the target unit.
    """
    if getattr(creator, "is_superuser", False):
        return True

    rows = UserRole.objects.filter(user_id=creator.id).select_related("department")
    for row in rows:
        if row.role == AppRole.SUPER_ADMIN:
            return True
        if row.role == AppRole.ORGANIZATION_ADMIN:
            if target.organization_id and Organization.objects.filter(
                id=target.organization_id, owner_id=creator.id
            ).exists():
                return True
        elif row.role in (AppRole.GENERAL_ADMIN, AppRole.WORKPLACE_SUPERVISOR):
            if target.workspace_id and row.workspace_id == target.workspace_id:
                return True
        elif row.role == AppRole.FACILITY_SUPERVISOR:
            if target.facility_id and row.facility_id == target.facility_id:
                return True
        elif row.role == AppRole.DEPARTMENT_HEAD:
            if target.department_id and row.department_id and (
                Department.objects.filter(id=target.department_id, parent_department_id=row.department_id).exists()
                or target.department_id == row.department_id
            ):
                return True
    return False


def assert_can_grant(creator, role: str, target: ResolvedScope, *, verb: str = "grant") -> None:
    """
    Creator authority: the role must be below the creator's highest role,
    and the target unit must lie inside one of the creator's own scopes.
    """
    if creator is None:
        return
    if not can_grant(role_names_for_user(creator), role):
        logger.info("role %s denied creator=%s role=%s", verb, creator.id, role)
        raise PermissionDenied(f"You are not allowed to {verb} the role '{role}'.")
    if not _creator_covers(creator, target):
        logger.info("role %s outside creator scope creator=%s role=%s", verb, creator.id, role)
        raise PermissionDenied("The requested scope is outside of your own scope.")


class RoleAssignmentService:
    @staticmethod
    @transaction.atomic
    def add_role(*, user_id: int, scope: RoleScope, granted_by=None) -> UserRole:
        if not get_user_model().objects.filter(id=user_id).exists():
            raise ValidationError({"user_id": "User not found."})

        role = scope.role
        target = resolve_scope(scope)
        assert_can_grant(granted_by, role, target)

        granted_by_id = getattr(granted_by, "id", None)

        if role == AppRole.ORGANIZATION_ADMIN:
            from console_core.organizations.services import OrganizationService

            OrganizationService.set_owner(
                organization_id=target.organization_id,
                user_id=user_id,
                actor_user_id=granted_by_id,
            )
            # one scope-less row regardless of how many organizations the user owns
            existing = UserRole.objects.filter(user_id=user_id, role=role).first()
            if existing:
                return existing
        else:
            duplicate = UserRole.objects.filter(
                user_id=user_id,
                role=role,
                workspace_id=target.workspace_id,
                facility_id=target.facility_id,
                department_id=target.department_id,
            ).exists()
            if duplicate:
                raise ValidationError({"role": "The user already holds this role with this scope."})

        if target.workspace_id:
            org = Organization.objects.select_for_update().get(id=target.organization_id)
            assert_can_add_user(org, user_id=user_id)

        row = UserRole.objects.create(
            user_id=user_id,
            role=role,
            workspace_id=target.workspace_id,
            facility_id=target.facility_id,
            department_id=target.department_id,
            # staff attach to a subdepartment, which is also their specialty
            specialty_id=target.department_id if role == AppRole.STAFF else None,
            created_by_id=granted_by_id,
        )

        AuditService.log(
            event_code="role.granted",
            entity_type="UserRole",
            entity_id=row.id,
            organization_id=target.organization_id,
            actor_user_id=granted_by_id,
            metadata={
                "user_id": user_id,
                "role": role,
                "workspace_id": str(target.workspace_id) if target.workspace_id else None,
                "facility_id": str(target.facility_id) if target.facility_id else None,
                "department_id": str(target.department_id) if target.department_id else None,
            },
        )
        logger.info("role granted user=%s role=%s row=%s", user_id, role, row.id)
        return row

    @staticmethod
    @transaction.atomic
    def remove_role(*, role_id: UUID, removed_by=None) -> None:
        row = UserRole.objects.select_related("workspace").get(id=role_id)

        row_id, user_id, role = row.id, row.user_id, row.role
        org_id = row.workspace.organization_id if row.workspace_id else None
        if removed_by is not None and not getattr(removed_by, "is_superuser", False):
            target = ResolvedScope(
                organization_id=org_id,
                workspace_id=row.workspace_id,
                facility_id=row.facility_id,
                department_id=row.department_id,
            )
            assert_can_grant(removed_by, role, target, verb="revoke")

        row.delete()

        AuditService.log(
            event_code="role.revoked",
            entity_type="UserRole",
            entity_id=row_id,
            organization_id=org_id,
            actor_user_id=getattr(removed_by, "id", None),
            metadata={"user_id": user_id, "role": role},
        )
        logger.info("role revoked user=%s role=%s row=%s", user_id, role, row_id)
