# console_core/facilities/models.py
from __future__ import annotations

from django.db import models

from console_core.common.models import UUIDModel
from console_core.workspaces.models import Workspace


class Facility(UUIDModel):
    """
    A physical/organizational site within a Workspace. Holds Departments.

    The owning organization's max_facilities bounds the facility count across
    all of its workspaces (enforced in FacilityService.create).
    """

    workspace = models.ForeignKey(Workspace, on_delete=models.PROTECT, related_name="facilities")

    name = models.CharField(max_length=255)

    class Meta:
        db_table = "facilities_facility"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["workspace", "name"]),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def organization_id(self):
        return self.workspace.organization_id
