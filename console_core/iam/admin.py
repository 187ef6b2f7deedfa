# console_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from console_core.iam.models import Profile, UserRole


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "is_active", "force_password_change", "created_at")
    list_filter = ("is_active", "force_password_change")
    search_fields = ("full_name", "email", "user__username")
    raw_id_fields = ("user", "created_by")
    ordering = ("full_name",)


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "workspace", "facility", "department", "created_at")
    list_filter = ("role",)
    search_fields = ("user__username", "user__email")
    raw_id_fields = ("user", "workspace", "facility", "department", "specialty", "created_by")
