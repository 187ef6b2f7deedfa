import pytest
from django.core.management import call_command
from rest_framework.exceptions import ValidationError

from console_core.common.api.exceptions import ProtectedResource
from console_core.modules.catalog import EXPECTED_MODULE_KEYS
from console_core.modules.integrity import FAIL, PASS, WARNING, validate_module_system
from console_core.modules.models import ModuleDefinition, RoleModuleAccess, UserModuleAccess
from console_core.modules.resolver import Capabilities
from console_core.modules.services import ModuleService

pytestmark = pytest.mark.django_db


def _by_test(results):
    return {r["test"]: r for r in results}


def test_seed_is_idempotent():
    first = ModuleService.seed_catalog()
    second = ModuleService.seed_catalog()

    assert first["modules_created"] == len(EXPECTED_MODULE_KEYS)
    assert second == {"modules_created": 0, "role_access_created": 0}


def test_seed_command_modules_only():
    call_command("seed_modules", "--modules-only")
    assert ModuleDefinition.objects.count() == len(EXPECTED_MODULE_KEYS)
    assert not RoleModuleAccess.objects.exists()


def test_core_cannot_be_deactivated(modules):
    with pytest.raises(ProtectedResource):
        ModuleService.set_module_active(key="core", is_active=False)


def test_deactivate_blocked_by_active_dependents(modules):
    with pytest.raises(ValidationError):
        ModuleService.set_module_active(key="staff_management", is_active=False)

    ModuleService.set_module_active(key="vacation_planning", is_active=False)
    ModuleService.set_module_active(key="staff_management", is_active=False)
    assert not ModuleDefinition.objects.get(key="staff_management").is_active


def test_activate_requires_active_dependencies(modules):
    ModuleService.set_module_active(key="vacation_planning", is_active=False)
    ModuleService.set_module_active(key="staff_management", is_active=False)

    with pytest.raises(ValidationError):
        ModuleService.set_module_active(key="vacation_planning", is_active=True)


def test_core_cannot_be_disabled_for_workspace(modules, workspace):
    with pytest.raises(ProtectedResource):
        ModuleService.set_workspace_access(workspace_id=workspace.id, module_key="core", is_enabled=False)


def test_role_access_upsert(modules):
    ModuleService.set_role_access(role="staff", module_key="training", capabilities=Capabilities(view=True, edit=True))
    ModuleService.set_role_access(role="staff", module_key="training", capabilities=Capabilities(view=True))

    row = RoleModuleAccess.objects.get(role="staff", module__key="training")
    assert (row.can_view, row.can_edit) == (True, False)

    with pytest.raises(ValidationError):
        ModuleService.set_role_access(role="janitor", module_key="training", capabilities=Capabilities())


def test_clear_user_override(modules, make_user):
    user = make_user("someone@example.com")
    ModuleService.set_user_override(user_id=user.id, module_key="messaging", capabilities=Capabilities(view=True))

    assert ModuleService.clear_user_override(user_id=user.id, module_key="messaging")
    assert not ModuleService.clear_user_override(user_id=user.id, module_key="messaging")
    assert not UserModuleAccess.objects.filter(user=user).exists()


def test_integrity_passes_on_seeded_catalog(modules):
    results = _by_test(validate_module_system())
    assert all(r["status"] == PASS for r in results.values()), results


def test_integrity_reports_problems(modules):
    ModuleDefinition.objects.filter(key="training").delete()
    ModuleDefinition.objects.filter(key="messaging").update(depends_on=["core", "ghost"])
    ModuleDefinition.objects.filter(key="scheduling").update(depends_on=["notifications"])
    ModuleDefinition.objects.filter(key="notifications").update(depends_on=["scheduling"])
    RoleModuleAccess.objects.filter(role="super_admin", module__key="core").delete()

    results = _by_test(validate_module_system())
    assert results["Module Definitions"]["status"] == FAIL
    assert results["Module Definitions"]["details"] == ["training"]
    assert results["Dependency Integrity"]["details"] == {"messaging": ["ghost"]}
    assert results["Dependency Cycles"]["status"] == FAIL
    assert results["Role Module Access"]["status"] == WARNING
    assert results["Core Module Protection"]["status"] == PASS
