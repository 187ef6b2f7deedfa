# console_core/modules/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import ValidationError

from console_core.audit.services import AuditService
from console_core.common.api.exceptions import ProtectedResource
from console_core.iam.models import AppRole
from console_core.modules.catalog import DEFAULT_ROLE_MATRIX, MODULE_CATALOG
from console_core.modules.models import (
    ModuleDefinition,
    RoleModuleAccess,
    UserModuleAccess,
    WorkspaceModuleAccess,
)
from console_core.modules.resolver import Capabilities
from console_core.workspaces.models import Workspace

logger = logging.getLogger(__name__)


def _module(key: str) -> ModuleDefinition:
    module = ModuleDefinition.objects.filter(key=key).first()
    if not module:
        raise ValidationError({"module": f"Unknown module '{key}'."})
    return module


def _flags(caps: Capabilities) -> dict:
    return caps.as_dict()


class ModuleService:
    @staticmethod
    @transaction.atomic
    def seed_catalog(*, with_role_matrix: bool = True) -> dict:
        """
        Idempotent. Existing modules and matrix rows are left as they are.
        """
        modules_created = 0
        for key, name, description, icon, depends_on in MODULE_CATALOG:
            _, created = ModuleDefinition.objects.get_or_create(
                key=key,
                defaults={
                    "name": name,
                    "description": description,
                    "icon": icon,
                    "depends_on": list(depends_on),
                    "is_active": True,
                },
            )
            modules_created += 1 if created else 0

        access_created = 0
        if with_role_matrix:
            by_key = {m.key: m for m in ModuleDefinition.objects.all()}
            for role, entries in DEFAULT_ROLE_MATRIX.items():
                for key, (view, edit, delete, admin) in entries.items():
                    module = by_key.get(key)
                    if module is None:
                        continue
                    _, created = RoleModuleAccess.objects.get_or_create(
                        role=role,
                        module=module,
                        defaults={"can_view": view, "can_edit": edit, "can_delete": delete, "can_admin": admin},
                    )
                    access_created += 1 if created else 0

        logger.info("module catalog seeded modules=%s role_access=%s", modules_created, access_created)
        return {"modules_created": modules_created, "role_access_created": access_created}

    @staticmethod
    @transaction.atomic
    def set_module_active(*, key: str, is_active: bool, actor_user_id: int | None = None) -> ModuleDefinition:
        module = ModuleDefinition.objects.select_for_update().filter(key=key).first()
        if not module:
            raise ValidationError({"module": f"Unknown module '{key}'."})

        if module.is_active == is_active:
            return module

        if not is_active:
            if module.is_core:
                raise ProtectedResource("The core module cannot be deactivated.")
            dependents = sorted(
                m.key
                for m in ModuleDefinition.objects.filter(is_active=True).exclude(id=module.id)
                if key in (m.depends_on or [])
            )
            if dependents:
                raise ValidationError(
                    {"module": f"Active modules depend on '{key}': {', '.join(dependents)}. Deactivate them first."}
                )
        else:
            missing = sorted(
                set(module.depends_on or [])
                - set(ModuleDefinition.objects.filter(is_active=True).values_list("key", flat=True))
            )
            if missing:
                raise ValidationError(
                    {"module": f"'{key}' depends on inactive or unknown modules: {', '.join(missing)}."}
                )

        module.is_active = is_active
        module.save(update_fields=["is_active", "updated_at"])

        AuditService.log(
            event_code="module.activated" if is_active else "module.deactivated",
            entity_type="ModuleDefinition",
            entity_id=module.id,
            actor_user_id=actor_user_id,
            metadata={"key": key},
        )
        logger.info("module %s key=%s", "activated" if is_active else "deactivated", key)
        return module

    @staticmethod
    @transaction.atomic
    def set_role_access(
        *, role: str, module_key: str, capabilities: Capabilities, actor_user_id: int | None = None
    ) -> RoleModuleAccess:
        if role not in AppRole.values:
            raise ValidationError({"role": f"Unknown role '{role}'."})
        module = _module(module_key)

        row, _ = RoleModuleAccess.objects.update_or_create(
            role=role,
            module=module,
            defaults=_flags(capabilities),
        )

        AuditService.log(
            event_code="module.role_access_set",
            entity_type="RoleModuleAccess",
            entity_id=row.id,
            actor_user_id=actor_user_id,
            metadata={"role": role, "module": module_key, **_flags(capabilities)},
        )
        return row

    @staticmethod
    @transaction.atomic
    def set_workspace_access(
        *, workspace_id: UUID, module_key: str, is_enabled: bool, actor_user_id: int | None = None
    ) -> WorkspaceModuleAccess:
        ws = Workspace.objects.filter(id=workspace_id).first()
        if not ws:
            raise ValidationError({"workspace_id": "Workspace not found."})
        module = _module(module_key)
        if module.is_core and not is_enabled:
            raise ProtectedResource("The core module cannot be disabled for a workspace.")

        row, _ = WorkspaceModuleAccess.objects.update_or_create(
            workspace=ws,
            module=module,
            defaults={"is_enabled": is_enabled},
        )

        AuditService.log(
            event_code="module.workspace_access_set",
            entity_type="WorkspaceModuleAccess",
            entity_id=row.id,
            organization_id=ws.organization_id,
            actor_user_id=actor_user_id,
            metadata={"workspace_id": str(ws.id), "module": module_key, "is_enabled": is_enabled},
        )
        return row

    @staticmethod
    @transaction.atomic
    def set_user_override(
        *,
        user_id: int,
        module_key: str,
        capabilities: Capabilities,
        is_override: bool = True,
        actor_user_id: int | None = None,
    ) -> UserModuleAccess:
        if not get_user_model().objects.filter(id=user_id).exists():
            raise ValidationError({"user_id": "User not found."})
        module = _module(module_key)

        row, _ = UserModuleAccess.objects.update_or_create(
            user_id=user_id,
            module=module,
            defaults={**_flags(capabilities), "is_override": is_override, "created_by_id": actor_user_id},
        )

        AuditService.log(
            event_code="module.user_override_set",
            entity_type="UserModuleAccess",
            entity_id=row.id,
            actor_user_id=actor_user_id,
            metadata={"user_id": user_id, "module": module_key, "is_override": is_override, **_flags(capabilities)},
        )
        return row

    @staticmethod
    @transaction.atomic
    def clear_user_override(*, user_id: int, module_key: str, actor_user_id: int | None = None) -> bool:
        deleted, _ = UserModuleAccess.objects.filter(user_id=user_id, module__key=module_key).delete()
        if deleted:
            AuditService.log(
                event_code="module.user_override_cleared",
                entity_type="UserModuleAccess",
                entity_id=f"{user_id}:{module_key}",
                actor_user_id=actor_user_id,
                metadata={"user_id": user_id, "module": module_key},
            )
        return bool(deleted)
