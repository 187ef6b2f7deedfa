import pytest
from rest_framework.exceptions import PermissionDenied, ValidationError

from console_core.audit.models import AuditEvent
from console_core.common.api.exceptions import InvalidScope, LimitExceeded
from console_core.departments.models import Department
from console_core.facilities.models import Facility
from console_core.iam.models import AppRole, UserRole
from console_core.iam.roles import assignable_roles, build_scope
from console_core.iam.selectors import role_names_for_user, visible_scope
from console_core.iam.services.role_assignment import RoleAssignmentService
from console_core.modules.selectors import effective_access
from console_core.organizations.models import Organization
from console_core.workspaces.models import Workspace

pytestmark = pytest.mark.django_db


def _staff(facility, department):
    return build_scope("staff", facility_id=facility.id, department_id=department.id)


def test_staff_on_main_department_fails_and_on_subdepartment_succeeds(
    facility, main_department, subdepartment, make_user
):
    user = make_user("nurse@example.com")

    with pytest.raises(InvalidScope):
        RoleAssignmentService.add_role(user_id=user.id, scope=_staff(facility, main_department))

    row = RoleAssignmentService.add_role(user_id=user.id, scope=_staff(facility, subdepartment))
    assert row.department_id == subdepartment.id
    assert row.specialty_id == subdepartment.id
    assert row.workspace_id == facility.workspace_id
    assert AuditEvent.objects.filter(event_code="role.granted", entity_id=str(row.id)).exists()


def test_department_head_needs_main_department(facility, main_department, subdepartment, make_user):
    user = make_user("head@example.com")
    scope = build_scope("department_head", facility_id=facility.id, department_id=subdepartment.id)
    with pytest.raises(InvalidScope):
        RoleAssignmentService.add_role(user_id=user.id, scope=scope)

    scope = build_scope("department_head", facility_id=facility.id, department_id=main_department.id)
    row = RoleAssignmentService.add_role(user_id=user.id, scope=scope)
    assert (row.role, row.department_id, row.specialty_id) == (AppRole.DEPARTMENT_HEAD, main_department.id, None)


def test_department_from_other_facility_is_invalid(workspace, facility, subdepartment, make_user):
    other = Facility.objects.create(workspace=workspace, name="Satellite")
    user = make_user("nurse@example.com")
    with pytest.raises(InvalidScope):
        RoleAssignmentService.add_role(user_id=user.id, scope=_staff(other, subdepartment))


def test_exact_duplicate_is_rejected(facility, subdepartment, make_user):
    user = make_user("nurse@example.com")
    RoleAssignmentService.add_role(user_id=user.id, scope=_staff(facility, subdepartment))
    with pytest.raises(ValidationError):
        RoleAssignmentService.add_role(user_id=user.id, scope=_staff(facility, subdepartment))


def test_organization_admin_sets_owner_once(organization, make_user):
    user = make_user("owner@example.com")
    scope = build_scope("organization_admin", organization_id=organization.id)

    first = RoleAssignmentService.add_role(user_id=user.id, scope=scope)
    second = RoleAssignmentService.add_role(user_id=user.id, scope=scope)

    organization.refresh_from_db()
    assert organization.owner_id == user.id
    assert first.id == second.id
    assert first.workspace_id is None
    assert UserRole.objects.filter(user=user, role=AppRole.ORGANIZATION_ADMIN).count() == 1


def test_user_limit_applies_to_new_members(workspace, make_user):
    org = workspace.organization
    org.max_users = 1
    org.save()

    first = make_user("one@example.com")
    RoleAssignmentService.add_role(user_id=first.id, scope=build_scope("general_admin", workspace_id=workspace.id))
    # a second role for the same user is fine
    RoleAssignmentService.add_role(
        user_id=first.id, scope=build_scope("workplace_supervisor", workspace_id=workspace.id)
    )

    second = make_user("two@example.com")
    with pytest.raises(LimitExceeded):
        RoleAssignmentService.add_role(
            user_id=second.id, scope=build_scope("general_admin", workspace_id=workspace.id)
        )


def test_creator_cannot_grant_own_level(facility, make_user):
    supervisor = make_user("fs@example.com")
    UserRole.objects.create(
        user=supervisor, role=AppRole.FACILITY_SUPERVISOR, workspace=facility.workspace, facility=facility
    )
    target = make_user("other@example.com")

    with pytest.raises(PermissionDenied):
        RoleAssignmentService.add_role(
            user_id=target.id,
            scope=build_scope("facility_supervisor", facility_id=facility.id),
            granted_by=supervisor,
        )


def test_creator_cannot_grant_outside_own_scope(facility, main_department, make_user):
    supervisor = make_user("fs@example.com")
    UserRole.objects.create(
        user=supervisor, role=AppRole.FACILITY_SUPERVISOR, workspace=facility.workspace, facility=facility
    )
    other_facility = Facility.objects.create(workspace=facility.workspace, name="Satellite")
    other_main = Department.objects.create(facility=other_facility, name="Cardiology")
    target = make_user("head@example.com")

    with pytest.raises(PermissionDenied):
        RoleAssignmentService.add_role(
            user_id=target.id,
            scope=build_scope("department_head", facility_id=other_facility.id, department_id=other_main.id),
            granted_by=supervisor,
        )

    row = RoleAssignmentService.add_role(
        user_id=target.id,
        scope=build_scope("department_head", facility_id=facility.id, department_id=main_department.id),
        granted_by=supervisor,
    )
    assert row.created_by_id == supervisor.id


def test_department_head_grants_staff_in_own_department(facility, main_department, subdepartment, make_user):
    head = make_user("head@example.com")
    UserRole.objects.create(
        user=head,
        role=AppRole.DEPARTMENT_HEAD,
        workspace=facility.workspace,
        facility=facility,
        department=main_department,
    )
    nurse = make_user("nurse@example.com")

    row = RoleAssignmentService.add_role(user_id=nurse.id, scope=_staff(facility, subdepartment), granted_by=head)
    assert row.role == AppRole.STAFF


def test_remove_role_writes_audit(facility, subdepartment, make_user):
    user = make_user("nurse@example.com")
    row = RoleAssignmentService.add_role(user_id=user.id, scope=_staff(facility, subdepartment))

    RoleAssignmentService.remove_role(role_id=row.id)
    assert not UserRole.objects.filter(id=row.id).exists()
    assert AuditEvent.objects.filter(event_code="role.revoked", entity_id=str(row.id)).exists()


def test_visible_scope_follows_roles(organization, workspace, facility, make_user):
    other_ws = Workspace.objects.create(organization=organization, name="South")
    other_facility = Facility.objects.create(workspace=other_ws, name="South Clinic")

    supervisor = make_user("fs@example.com")
    UserRole.objects.create(
        user=supervisor, role=AppRole.FACILITY_SUPERVISOR, workspace=workspace, facility=facility
    )
    scope = visible_scope(supervisor)
    assert not scope.unrestricted
    assert scope.facility_ids == frozenset({facility.id})
    assert other_facility.id not in scope.facility_ids

    admin = make_user("ga@example.com")
    UserRole.objects.create(user=admin, role=AppRole.GENERAL_ADMIN, workspace=other_ws)
    assert visible_scope(admin).facility_ids == frozenset({other_facility.id})

    organization.owner = make_user("owner@example.com")
    organization.save()
    owner_scope = visible_scope(organization.owner)
    assert owner_scope.workspace_ids == frozenset({workspace.id, other_ws.id})


def test_revoking_needs_the_same_authority_as_granting(facility, main_department, subdepartment, make_user):
    head = make_user("head@example.com")
    UserRole.objects.create(
        user=head,
        role=AppRole.DEPARTMENT_HEAD,
        workspace=facility.workspace,
        facility=facility,
        department=main_department,
    )
    supervisor = make_user("fs@example.com")
    fs_row = UserRole.objects.create(
        user=supervisor, role=AppRole.FACILITY_SUPERVISOR, workspace=facility.workspace, facility=facility
    )
    nurse = make_user("nurse@example.com")
    staff_row = RoleAssignmentService.add_role(user_id=nurse.id, scope=_staff(facility, subdepartment))

    with pytest.raises(PermissionDenied):
        RoleAssignmentService.remove_role(role_id=fs_row.id, removed_by=head)
    assert UserRole.objects.filter(id=fs_row.id).exists()

    RoleAssignmentService.remove_role(role_id=staff_row.id, removed_by=head)
    assert not UserRole.objects.filter(id=staff_row.id).exists()


def test_ownership_transfer_moves_organization_admin(organization, make_user, modules):
    a = make_user("a@example.com")
    b = make_user("b@example.com")
    scope = build_scope("organization_admin", organization_id=organization.id)

    RoleAssignmentService.add_role(user_id=a.id, scope=scope)
    RoleAssignmentService.add_role(user_id=b.id, scope=scope)

    organization.refresh_from_db()
    assert organization.owner_id == b.id
    assert not UserRole.objects.filter(user=a, role=AppRole.ORGANIZATION_ADMIN).exists()
    assert UserRole.objects.filter(user=b, role=AppRole.ORGANIZATION_ADMIN).count() == 1

    assert assignable_roles(role_names_for_user(a)) == []
    assert not effective_access(user_id=a.id, module_key="organization")
    assert effective_access(user_id=b.id, module_key="organization").admin


def test_owner_of_another_organization_keeps_the_role(organization, make_user):
    a = make_user("a@example.com")
    b = make_user("b@example.com")
    other = Organization.objects.create(name="Globex")

    RoleAssignmentService.add_role(user_id=a.id, scope=build_scope("organization_admin", organization_id=other.id))
    RoleAssignmentService.add_role(user_id=a.id, scope=build_scope("organization_admin", organization_id=organization.id))
    RoleAssignmentService.add_role(user_id=b.id, scope=build_scope("organization_admin", organization_id=organization.id))

    assert UserRole.objects.filter(user=a, role=AppRole.ORGANIZATION_ADMIN).exists()
