# console_core/workspaces/admin.py
from django.contrib import admin

from console_core.workspaces.models import Workspace, WorkspaceCategory, WorkspaceDepartment


class WorkspaceDepartmentInline(admin.TabularInline):
    model = WorkspaceDepartment
    extra = 0
    raw_id_fields = ("department",)


class WorkspaceCategoryInline(admin.TabularInline):
    model = WorkspaceCategory
    extra = 0


@admin.register(Workspace)
class WorkspaceAdmin(admin.ModelAdmin):
    list_display = ("name", "organization", "max_vacation_splits", "max_concurrent_vacations", "created_at")
    list_filter = ("organization",)
    search_fields = ("name", "organization__name")
    ordering = ("organization", "name")
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [WorkspaceDepartmentInline, WorkspaceCategoryInline]
