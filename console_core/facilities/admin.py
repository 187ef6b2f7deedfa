# console_core/facilities/admin.py
from django.contrib import admin

from console_core.facilities.models import Facility


@admin.register(Facility)
class FacilityAdmin(admin.ModelAdmin):
    list_display = ("name", "workspace", "created_at")
    list_filter = ("workspace__organization",)
    search_fields = ("name", "workspace__name")
    ordering = ("workspace", "name")
    readonly_fields = ("id", "created_at", "updated_at")
