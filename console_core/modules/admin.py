# console_core/modules/admin.py
from __future__ import annotations

from django.contrib import admin

from console_core.modules.models import ModuleDefinition, RoleModuleAccess, UserModuleAccess, WorkspaceModuleAccess


class RoleModuleAccessInline(admin.TabularInline):
    model = RoleModuleAccess
    extra = 0


@admin.register(ModuleDefinition)
class ModuleDefinitionAdmin(admin.ModelAdmin):
    list_display = ("key", "name", "is_active", "depends_on")
    list_filter = ("is_active",)
    search_fields = ("key", "name")
    ordering = ("name",)
    inlines = [RoleModuleAccessInline]


@admin.register(WorkspaceModuleAccess)
class WorkspaceModuleAccessAdmin(admin.ModelAdmin):
    list_display = ("workspace", "module", "is_enabled")
    list_filter = ("module", "is_enabled")


@admin.register(UserModuleAccess)
class UserModuleAccessAdmin(admin.ModelAdmin):
    list_display = ("user", "module", "is_override", "can_view", "can_edit", "can_delete", "can_admin")
    list_filter = ("module", "is_override")
    raw_id_fields = ("user", "created_by")
