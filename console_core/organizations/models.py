# console_core/organizations/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models

from console_core.common.models import UUIDModel


class Organization(UUIDModel):
    """
    Top-level tenant. Root of the hierarchy:
      Organization -> Workspace -> Facility -> Department -> Subdepartment

    Resource limits are nullable: NULL means unlimited.
    """

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    # organization_admin link (the owner administers the whole organization)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="owned_organizations",
        null=True,
        blank=True,
    )

    max_workspaces = models.PositiveIntegerField(null=True, blank=True)
    max_facilities = models.PositiveIntegerField(null=True, blank=True)
    max_users = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = "organizations_organization"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["owner"]),
            models.Index(fields=["name"]),
        ]

    def __str__(self) -> str:
        return self.name
