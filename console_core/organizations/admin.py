# console_core/organizations/admin.py
from django.contrib import admin

from console_core.organizations.models import Organization


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "max_workspaces", "max_facilities", "max_users", "created_at")
    search_fields = ("name",)
    ordering = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")

    fieldsets = (
        (None, {"fields": ("id", "name", "description", "owner")}),
        ("Limits", {"fields": ("max_workspaces", "max_facilities", "max_users")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
