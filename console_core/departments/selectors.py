# console_core/departments/selectors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List
from uuid import UUID

from django.db.models import Prefetch, QuerySet

from console_core.departments.models import Category, Department


@dataclass
class DepartmentNode:
    department: Department
    subdepartments: List[Department] = field(default_factory=list)


def categories_qs(*, active_only: bool = False) -> QuerySet[Category]:
    qs = Category.objects.all()
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("name")


def get_active_category_by_name(*, name: str) -> Category | None:
    return Category.objects.filter(name=name, is_active=True).first()


def departments_qs(
    *,
    facility_id: UUID | None = None,
    parent_department_id: UUID | None = None,
    main_only: bool = False,
    templates: bool = False,
) -> QuerySet[Department]:
    qs = Department.objects.filter(is_template=templates)
    if facility_id:
        qs = qs.filter(facility_id=facility_id)
    if parent_department_id:
        qs = qs.filter(parent_department_id=parent_department_id)
    if main_only:
        qs = qs.filter(parent_department__isnull=True)
    return qs.order_by("name")


def get_department(*, department_id: UUID) -> Department:
    return Department.objects.select_related("facility", "parent_department").get(id=department_id)


def department_by_name(*, facility_id: UUID, name: str, parent_department_id: UUID | None = None) -> Department | None:
    qs = Department.objects.filter(facility_id=facility_id, name__iexact=(name or "").strip())
    if parent_department_id:
        qs = qs.filter(parent_department_id=parent_department_id)
    else:
        qs = qs.filter(parent_department__isnull=True)
    return qs.first()


def department_tree(*, facility_id: UUID) -> List[DepartmentNode]:
    """
    Main departments of a facility with their subdepartments, both ordered by name.
    """
    mains = (
        Department.objects.filter(facility_id=facility_id, parent_department__isnull=True)
        .prefetch_related(
            Prefetch("subdepartments", queryset=Department.objects.order_by("name"))
        )
        .order_by("name")
    )
    return [DepartmentNode(department=d, subdepartments=list(d.subdepartments.all())) for d in mains]


def available_departments_for_facility(*, facility_id: UUID) -> QuerySet[Department]:
    """
    Main template departments enabled on the facility's workspace.
    """
    from console_core.facilities.models import Facility

    facility = Facility.objects.get(id=facility_id)
    return Department.objects.filter(
        is_template=True,
        parent_department__isnull=True,
        workspace_assignments__workspace_id=facility.workspace_id,
    ).order_by("name")


def departments_using_category(*, name: str) -> QuerySet[Department]:
    return Department.objects.filter(category=name)
