import pytest

from console_core.iam.models import AppRole, Profile, UserRole
from console_core.modules.models import ModuleDefinition, RoleModuleAccess, UserModuleAccess
from console_core.modules.resolver import ALL, NONE, Capabilities
from console_core.modules.selectors import effective_access, user_modules
from console_core.modules.services import ModuleService

pytestmark = pytest.mark.django_db


@pytest.fixture
def head(make_user, facility, main_department):
    user = make_user("head@example.com")
    UserRole.objects.create(
        user=user,
        role=AppRole.DEPARTMENT_HEAD,
        workspace=facility.workspace,
        facility=facility,
        department=main_department,
    )
    return user


@pytest.fixture
def scheduling(modules):
    module = ModuleDefinition.objects.get(key="scheduling")
    RoleModuleAccess.objects.update_or_create(
        role=AppRole.DEPARTMENT_HEAD,
        module=module,
        defaults={"can_view": True, "can_edit": False, "can_delete": False, "can_admin": False},
    )
    return module


def test_role_matrix_applies(head, scheduling):
    assert effective_access(user_id=head.id, module_key="scheduling") == Capabilities(view=True)


def test_workspace_disable_removes_access(head, scheduling, workspace):
    ModuleService.set_workspace_access(workspace_id=workspace.id, module_key="scheduling", is_enabled=False)

    assert effective_access(user_id=head.id, module_key="scheduling") == NONE
    assert effective_access(user_id=head.id, module_key="scheduling", workspace_id=workspace.id) == NONE


def test_override_wins_over_workspace_disable(head, scheduling, workspace):
    ModuleService.set_workspace_access(workspace_id=workspace.id, module_key="scheduling", is_enabled=False)
    ModuleService.set_user_override(user_id=head.id, module_key="scheduling", capabilities=Capabilities(edit=True))

    caps = effective_access(user_id=head.id, module_key="scheduling")
    assert caps == Capabilities(view=False, edit=True, delete=False, admin=False)


def test_override_row_not_marked_override_is_ignored(head, scheduling):
    UserModuleAccess.objects.create(user=head, module=scheduling, is_override=False, can_admin=True)
    assert effective_access(user_id=head.id, module_key="scheduling") == Capabilities(view=True)


def test_inactive_module_is_closed_even_with_override(head, scheduling):
    ModuleService.set_user_override(user_id=head.id, module_key="scheduling", capabilities=ALL)
    ModuleService.set_module_active(key="scheduling", is_active=False)

    assert effective_access(user_id=head.id, module_key="scheduling") == NONE


def test_inactive_profile_has_no_access(head, scheduling):
    Profile.objects.filter(user=head).update(is_active=False)
    assert effective_access(user_id=head.id, module_key="core") == NONE
    assert user_modules(user_id=head.id) == []


def test_superuser_gets_super_admin_matrix(superuser, modules):
    assert effective_access(user_id=superuser.id, module_key="training") == ALL


def test_unknown_module_and_missing_rows(head, modules):
    assert effective_access(user_id=head.id, module_key="nope") == NONE
    # department heads have no matrix row for user_management
    assert effective_access(user_id=head.id, module_key="user_management") == NONE


def test_multiple_roles_are_combined(head, facility, subdepartment, modules):
    UserRole.objects.create(
        user=head, role=AppRole.STAFF, workspace=facility.workspace, facility=facility, department=subdepartment
    )
    # staff: messaging VE, department head: messaging V
    assert effective_access(user_id=head.id, module_key="messaging") == Capabilities(view=True, edit=True)


def test_user_modules_lists_viewable_modules(head, modules):
    keys = {m["key"] for m in user_modules(user_id=head.id)}
    assert {"core", "scheduling", "staff_management"} <= keys
    assert "user_management" not in keys

    everything = user_modules(user_id=head.id, include_hidden=True)
    assert len(everything) == ModuleDefinition.objects.count()
