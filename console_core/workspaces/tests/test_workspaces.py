import pytest
from rest_framework.exceptions import ValidationError

from console_core.common.api.exceptions import HasAssignedUsers, HasChildren
from console_core.departments.models import Category, Department
from console_core.iam.models import AppRole, UserRole
from console_core.workspaces.models import Workspace, WorkspaceCategory, WorkspaceDepartment
from console_core.workspaces.selectors import categories_for_workspace, is_template_enabled
from console_core.workspaces.services import WorkspaceService, WorkspaceUpdate

pytestmark = pytest.mark.django_db


@pytest.fixture
def template(db):
    return Department.objects.create(is_template=True, name="Radiology", category="Medical", min_staffing=3)


def test_assign_template_twice_leaves_one_row(workspace, template):
    WorkspaceService.assign_template_department(workspace_id=workspace.id, template_id=template.id)
    WorkspaceService.assign_template_department(workspace_id=workspace.id, template_id=template.id)

    assert WorkspaceDepartment.objects.filter(workspace=workspace, department=template).count() == 1
    assert is_template_enabled(workspace_id=workspace.id, template_id=template.id)


def test_unassign_template(workspace, template):
    WorkspaceService.assign_template_department(workspace_id=workspace.id, template_id=template.id)

    assert WorkspaceService.unassign_template_department(workspace_id=workspace.id, template_id=template.id)
    assert not WorkspaceService.unassign_template_department(workspace_id=workspace.id, template_id=template.id)
    assert not is_template_enabled(workspace_id=workspace.id, template_id=template.id)


def test_facility_department_cannot_be_assigned_as_template(workspace, main_department):
    with pytest.raises(ValidationError):
        WorkspaceService.assign_template_department(workspace_id=workspace.id, template_id=main_department.id)


def test_template_subdepartment_cannot_be_assigned(workspace, template):
    sub = Department.objects.create(is_template=True, parent_department=template, name="MRI")
    with pytest.raises(ValidationError):
        WorkspaceService.assign_template_department(workspace_id=workspace.id, template_id=sub.id)


def test_assign_category_is_idempotent_and_needs_active(workspace):
    active = Category.objects.create(name="Medical")
    inactive = Category.objects.create(name="Legacy", is_active=False)

    WorkspaceService.assign_category(workspace_id=workspace.id, category_id=active.id)
    WorkspaceService.assign_category(workspace_id=workspace.id, category_id=active.id)
    assert WorkspaceCategory.objects.filter(workspace=workspace).count() == 1
    assert [c.name for c in categories_for_workspace(workspace_id=workspace.id)] == ["Medical"]

    with pytest.raises(ValidationError):
        WorkspaceService.assign_category(workspace_id=workspace.id, category_id=inactive.id)


def test_update_vacation_settings(workspace):
    ws = WorkspaceService.update(
        workspace_id=workspace.id,
        patch=WorkspaceUpdate(max_vacation_splits=4, max_concurrent_vacations=2),
    )
    assert (ws.max_vacation_splits, ws.max_concurrent_vacations) == (4, 2)

    with pytest.raises(ValidationError):
        WorkspaceService.update(workspace_id=workspace.id, patch=WorkspaceUpdate(max_vacation_splits=21))
    with pytest.raises(ValidationError):
        WorkspaceService.update(workspace_id=workspace.id, patch=WorkspaceUpdate(max_concurrent_vacations=0))


def test_create_requires_name(organization):
    with pytest.raises(ValidationError):
        WorkspaceService.create(organization_id=organization.id, name=" x ")


def test_delete_blocked_by_facilities(facility):
    with pytest.raises(HasChildren):
        WorkspaceService.delete(workspace_id=facility.workspace_id)


def test_delete_blocked_by_assigned_users(workspace, make_user):
    user = make_user("ga@example.com")
    UserRole.objects.create(user=user, role=AppRole.GENERAL_ADMIN, workspace=workspace)

    with pytest.raises(HasAssignedUsers):
        WorkspaceService.delete(workspace_id=workspace.id)


def test_delete_empty_workspace(workspace):
    WorkspaceService.delete(workspace_id=workspace.id)
    assert not Workspace.objects.filter(id=workspace.id).exists()
