# console_core/modules/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models

from console_core.common.models import UUIDModel
from console_core.iam.models import AppRole

CORE_MODULE_KEY = "core"


class ModuleDefinition(UUIDModel):
    """
    A feature module. is_active is the system-wide kill switch ("core" can never be turned off).
    depends_on holds other module keys.
    """

    key = models.SlugField(max_length=64, unique=True)
    name = models.CharField(max_length=128)
    description = models.TextField(blank=True, default="")
    icon = models.CharField(max_length=64, blank=True, default="")

    is_active = models.BooleanField(default=True, db_index=True)
    depends_on = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "modules_module_definition"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.key

    @property
    def is_core(self) -> bool:
        return self.key == CORE_MODULE_KEY


class CapabilityFlags(models.Model):
    can_view = models.BooleanField(default=False)
    can_edit = models.BooleanField(default=False)
    can_delete = models.BooleanField(default=False)
    can_admin = models.BooleanField(default=False)

    class Meta:
        abstract = True


class RoleModuleAccess(UUIDModel, CapabilityFlags):
    """
    Default capability matrix: (role, module) -> flags.
    """

    role = models.CharField(max_length=32, choices=AppRole.choices, db_index=True)
    module = models.ForeignKey(ModuleDefinition, on_delete=models.CASCADE, related_name="role_access")

    class Meta:
        db_table = "modules_role_module_access"
        constraints = [
            models.UniqueConstraint(fields=["role", "module"], name="uq_role_module_access"),
        ]


class WorkspaceModuleAccess(UUIDModel):
    """
    Workspace opt-out of a system-enabled module. Can only restrict, never grant.
    """

    workspace = models.ForeignKey("workspaces.Workspace", on_delete=models.CASCADE, related_name="module_access")
    module = models.ForeignKey(ModuleDefinition, on_delete=models.CASCADE, related_name="workspace_access")
    is_enabled = models.BooleanField(default=True)

    class Meta:
        db_table = "modules_workspace_module_access"
        constraints = [
            models.UniqueConstraint(fields=["workspace", "module"], name="uq_workspace_module_access"),
        ]


class UserModuleAccess(UUIDModel, CapabilityFlags):
    """
    Per-user exception. With is_override=True the four flags replace the role-derived result.
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="module_overrides")
    module = models.ForeignKey(ModuleDefinition, on_delete=models.CASCADE, related_name="user_access")
    is_override = models.BooleanField(default=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="granted_module_overrides",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "modules_user_module_access"
        constraints = [
            models.UniqueConstraint(fields=["user", "module"], name="uq_user_module_access"),
        ]
