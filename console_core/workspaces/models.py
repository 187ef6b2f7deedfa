# console_core/workspaces/models.py
from __future__ import annotations

from django.db import models

from console_core.common.models import UUIDModel
from console_core.organizations.models import Organization


class Workspace(UUIDModel):
    """
    Second-level tenant container. Belongs to exactly one Organization and holds Facilities.
    """

    organization = models.ForeignKey(Organization, on_delete=models.PROTECT, related_name="workspaces")

    name = models.CharField(max_length=255)

    # Vacation planning settings
    max_vacation_splits = models.PositiveSmallIntegerField(default=6)
    max_concurrent_vacations = models.PositiveSmallIntegerField(default=3)

    class Meta:
        db_table = "workspaces_workspace"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["organization", "name"]),
        ]

    def __str__(self) -> str:
        return self.name


class WorkspaceDepartment(UUIDModel):
    """
    Enables a template department for a workspace (facilities pick from these).
    """

    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="template_departments")
    department = models.ForeignKey(
        "departments.Department",
        on_delete=models.CASCADE,
        related_name="workspace_assignments",
    )

    class Meta:
        db_table = "workspaces_workspace_department"
        constraints = [
            models.UniqueConstraint(fields=["workspace", "department"], name="uq_workspace_department"),
        ]


class WorkspaceCategory(UUIDModel):
    """
    Enables a category for a workspace.
    """

    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="categories")
    category = models.ForeignKey(
        "departments.Category",
        on_delete=models.CASCADE,
        related_name="workspace_assignments",
    )

    class Meta:
        db_table = "workspaces_workspace_category"
        constraints = [
            models.UniqueConstraint(fields=["workspace", "category"], name="uq_workspace_category"),
        ]
