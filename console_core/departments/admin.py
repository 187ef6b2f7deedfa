# console_core/departments/admin.py
from django.contrib import admin

from console_core.departments.models import Category, Department


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "is_system_default", "is_active")
    list_filter = ("is_system_default", "is_active")
    search_fields = ("name",)
    ordering = ("name",)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "facility", "parent_department", "category", "is_template", "min_staffing")
    list_filter = ("is_template", "category")
    search_fields = ("name", "facility__name")
    raw_id_fields = ("facility", "parent_department")
    readonly_fields = ("id", "created_at", "updated_at")
