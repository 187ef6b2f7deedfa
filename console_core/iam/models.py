# console_core/iam/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models

from console_core.common.models import UUIDModel


class AppRole(models.TextChoices):
    """
    Declared in descending authority; console_core.iam.roles.ROLE_HIERARCHY relies on this order.
    """
    SUPER_ADMIN = "super_admin", "Super Admin"
    ORGANIZATION_ADMIN = "organization_admin", "Organization Admin"
    GENERAL_ADMIN = "general_admin", "General Admin"
    WORKPLACE_SUPERVISOR = "workplace_supervisor", "Workplace Supervisor"
    FACILITY_SUPERVISOR = "facility_supervisor", "Facility Supervisor"
    DEPARTMENT_HEAD = "department_head", "Department Head"
    STAFF = "staff", "Staff"


class Profile(UUIDModel):
    """
    Console profile anchored to Django's AUTH_USER_MODEL (one per account).
    """

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="console_profile")

    full_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255, unique=True)

    is_active = models.BooleanField(default=True, db_index=True)
    force_password_change = models.BooleanField(default=False)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="created_profiles",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "iam_profile"
        ordering = ["full_name"]

    def __str__(self) -> str:
        return f"{self.full_name} <{self.email}>"


class UserRole(UUIDModel):
    """
    One (role, scope) pair held by a user. A user may hold several.

    Which scope columns are meaningful depends on the role; see console_core.iam.roles.
    workspace is always filled for scoped roles (derived from the facility when needed).
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="console_roles")
    role = models.CharField(max_length=32, choices=AppRole.choices, db_index=True)

    workspace = models.ForeignKey(
        "workspaces.Workspace",
        on_delete=models.PROTECT,
        related_name="user_roles",
        null=True,
        blank=True,
    )
    facility = models.ForeignKey(
        "facilities.Facility",
        on_delete=models.PROTECT,
        related_name="user_roles",
        null=True,
        blank=True,
    )
    department = models.ForeignKey(
        "departments.Department",
        on_delete=models.PROTECT,
        related_name="user_roles",
        null=True,
        blank=True,
    )
    specialty = models.ForeignKey(
        "departments.Department",
        on_delete=models.PROTECT,
        related_name="specialty_user_roles",
        null=True,
        blank=True,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="granted_roles",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "iam_user_role"
        indexes = [
            models.Index(fields=["user", "role"]),
            models.Index(fields=["workspace", "role"]),
            models.Index(fields=["department"]),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.role}"
