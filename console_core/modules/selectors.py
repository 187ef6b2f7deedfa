# console_core/modules/selectors.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db.models import QuerySet

from console_core.iam.models import AppRole, UserRole
from console_core.iam.selectors import is_profile_active
from console_core.modules.models import (
    ModuleDefinition,
    RoleModuleAccess,
    UserModuleAccess,
    WorkspaceModuleAccess,
)
from console_core.modules.resolver import NONE, Capabilities, RoleGrant, resolve


def modules_qs(*, active_only: bool = False) -> QuerySet[ModuleDefinition]:
    qs = ModuleDefinition.objects.all()
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("name")


def get_module(*, key: str) -> ModuleDefinition:
    return ModuleDefinition.objects.get(key=key)


def role_access_qs(*, role: str | None = None, module_key: str | None = None) -> QuerySet[RoleModuleAccess]:
    qs = RoleModuleAccess.objects.select_related("module")
    if role:
        qs = qs.filter(role=role)
    if module_key:
        qs = qs.filter(module__key=module_key)
    return qs.order_by("module__name", "role")


def workspace_access_qs(*, workspace_id: UUID) -> QuerySet[WorkspaceModuleAccess]:
    return WorkspaceModuleAccess.objects.filter(workspace_id=workspace_id).select_related("module")


def user_overrides_qs(*, user_id: int) -> QuerySet[UserModuleAccess]:
    return UserModuleAccess.objects.filter(user_id=user_id).select_related("module")


@dataclass(frozen=True)
class _UserContext:
    active: bool
    roles: Tuple[Tuple[str, Optional[UUID]], ...]  # (role, workspace_id)


def _user_context(user_id: int) -> _UserContext:
    if not is_profile_active(user_id=user_id):
        return _UserContext(active=False, roles=())

    roles = list(UserRole.objects.filter(user_id=user_id).values_list("role", "workspace_id"))
    is_superuser = get_user_model().objects.filter(id=user_id, is_superuser=True).exists()
    if is_superuser:
        roles.append((AppRole.SUPER_ADMIN, None))
    return _UserContext(active=True, roles=tuple(roles))


def _grants(ctx: _UserContext, matrix: Dict[str, Capabilities]) -> List[RoleGrant]:
    # roles without a matrix row contribute nothing
    return [
        RoleGrant(role=role, capabilities=matrix.get(role, NONE), workspace_id=ws_id)
        for role, ws_id in ctx.roles
    ]


def effective_access(*, user_id: int, module_key: str, workspace_id: UUID | None = None) -> Capabilities:
    """
    Capabilities of one user on one module. Missing rows of any kind resolve to nothing.

    With workspace_id, an explicit opt-out of that workspace also applies.
    """
    module = ModuleDefinition.objects.filter(key=module_key).first()
    if module is None:
        return NONE

    ctx = _user_context(user_id)
    if not ctx.active:
        return NONE

    matrix = {
        row.role: Capabilities.from_row(row)
        for row in RoleModuleAccess.objects.filter(module=module, role__in={r for r, _ in ctx.roles})
    }

    grant_workspaces = {ws for _, ws in ctx.roles if ws is not None}
    if workspace_id is not None:
        grant_workspaces.add(workspace_id)
    disabled = frozenset(
        WorkspaceModuleAccess.objects.filter(
            module=module, is_enabled=False, workspace_id__in=grant_workspaces
        ).values_list("workspace_id", flat=True)
    )

    workspace_enabled = None
    if workspace_id is not None:
        workspace_enabled = workspace_id not in disabled

    override_row = UserModuleAccess.objects.filter(user_id=user_id, module=module, is_override=True).first()

    return resolve(
        _grants(ctx, matrix),
        module_active=module.is_active,
        is_core=module.is_core,
        workspace_enabled=workspace_enabled,
        disabled_workspace_ids=disabled,
        user_override=Capabilities.from_row(override_row) if override_row else None,
    )


def user_modules(*, user_id: int, include_hidden: bool = False) -> List[dict]:
    """
    Effective access for every module. By default only modules the user can view.
    """
    ctx = _user_context(user_id)
    modules = list(ModuleDefinition.objects.order_by("name"))
    if not ctx.active:
        return [] if not include_hidden else [_module_entry(m, NONE) for m in modules]

    role_names = {r for r, _ in ctx.roles}
    matrix: Dict[UUID, Dict[str, Capabilities]] = defaultdict(dict)
    for row in RoleModuleAccess.objects.filter(role__in=role_names):
        matrix[row.module_id][row.role] = Capabilities.from_row(row)

    grant_workspaces = {ws for _, ws in ctx.roles if ws is not None}
    disabled: Dict[UUID, set] = defaultdict(set)
    for ws_id, module_id in WorkspaceModuleAccess.objects.filter(
        is_enabled=False, workspace_id__in=grant_workspaces
    ).values_list("workspace_id", "module_id"):
        disabled[module_id].add(ws_id)

    overrides = {
        row.module_id: Capabilities.from_row(row)
        for row in UserModuleAccess.objects.filter(user_id=user_id, is_override=True)
    }

    items = []
    for m in modules:
        caps = resolve(
            _grants(ctx, matrix.get(m.id, {})),
            module_active=m.is_active,
            is_core=m.is_core,
            disabled_workspace_ids=frozenset(disabled.get(m.id, ())),
            user_override=overrides.get(m.id),
        )
        if caps.view or include_hidden:
            items.append(_module_entry(m, caps))
    return items


def _module_entry(module: ModuleDefinition, caps: Capabilities) -> dict:
    return {
        "key": module.key,
        "name": module.name,
        "icon": module.icon,
        "is_active": module.is_active,
        **caps.as_dict(),
    }
