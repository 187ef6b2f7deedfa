# console_core/departments/models.py
from __future__ import annotations

from django.db import models

from console_core.common.models import UUIDModel
from console_core.facilities.models import Facility


class Category(UUIDModel):
    """
    Flat lookup used to tag departments (matched by name).
    System defaults cannot be renamed or deleted; is_active is a soft disable.
    """

    name = models.CharField(max_length=128, unique=True)
    description = models.TextField(blank=True, default="")

    is_system_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "departments_category"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Department(UUIDModel):
    """
    Main department (parent_department is NULL) or subdepartment / specialty.

    Either bound to a facility, or a template (is_template=True, no facility)
    that workspaces enable through WorkspaceDepartment.
    Depth is at most 2: department -> subdepartment.
    """

    facility = models.ForeignKey(
        Facility,
        on_delete=models.PROTECT,
        related_name="departments",
        null=True,
        blank=True,
    )
    is_template = models.BooleanField(default=False, db_index=True)

    parent_department = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        related_name="subdepartments",
        null=True,
        blank=True,
    )

    name = models.CharField(max_length=255)
    category = models.CharField(max_length=128, blank=True, default="")  # Category.name
    min_staffing = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "departments_department"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["facility", "parent_department"]),
            models.Index(fields=["category"]),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(min_staffing__gte=1), name="ck_department_min_staffing"),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def is_main(self) -> bool:
        return self.parent_department_id is None
