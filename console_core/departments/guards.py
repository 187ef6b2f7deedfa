# console_core/departments/guards.py
from __future__ import annotations

from django.db.models import Q

from console_core.common.api.exceptions import HasAssignedUsers, HasChildren, ProtectedResource
from console_core.departments.models import Category, Department


def assert_department_deletable(department: Department) -> None:
    """
    Subdepartments first, then role assignments (as department or as specialty).
    """
    count = department.subdepartments.count()
    if count:
        raise HasChildren(
            f"Department '{department.name}' has {count} subdepartment(s). Delete them first."
        )

    from console_core.iam.models import UserRole

    assigned = (
        UserRole.objects.filter(Q(department_id=department.id) | Q(specialty_id=department.id))
        .values("user_id")
        .distinct()
        .count()
    )
    if assigned:
        raise HasAssignedUsers(
            f"Department '{department.name}' has {assigned} assigned user(s). Reassign them first."
        )


def assert_category_mutable(category: Category) -> None:
    if category.is_system_default:
        raise ProtectedResource(f"Category '{category.name}' is a system default and cannot be changed.")


def assert_category_deletable(category: Category) -> None:
    assert_category_mutable(category)

    count = Department.objects.filter(category=category.name).count()
    if count:
        raise HasChildren(
            f"Category '{category.name}' is used by {count} department(s)."
        )
