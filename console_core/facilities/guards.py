# console_core/facilities/guards.py
from __future__ import annotations

from console_core.common.api.exceptions import HasAssignedUsers, HasChildren
from console_core.facilities.models import Facility


def assert_facility_deletable(facility: Facility) -> None:
    count = facility.departments.count()
    if count:
        raise HasChildren(
            f"Facility '{facility.name}' still has {count} department(s). Delete them first."
        )

    if facility.user_roles.exists():
        raise HasAssignedUsers(
            f"Facility '{facility.name}' still has users assigned. Remove their roles first."
        )
