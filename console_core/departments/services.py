# console_core/departments/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from console_core.audit.services import AuditService
from console_core.common.api.exceptions import DomainError, InvalidHierarchy
from console_core.departments.guards import (
    assert_category_deletable,
    assert_category_mutable,
    assert_department_deletable,
)
from console_core.departments.models import Category, Department
from console_core.facilities.models import Facility

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DepartmentUpdate:
    name: Optional[str] = None
    category: Optional[str] = None
    min_staffing: Optional[int] = None


@dataclass(frozen=True)
class CategoryUpdate:
    name: Optional[str] = None
    description: Optional[str] = None


def _clean_name(name: str | None, *, field: str = "name") -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError({field: "Name is required."})
    if len(name) > 255:
        raise ValidationError({field: "Name must be at most 255 characters."})
    return name


def _clean_min_staffing(value) -> int:
    if value is None:
        return 1
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError({"min_staffing": "Minimum staffing must be at least 1."})
    return value


def _resolve_category(value: str | None, *, parent: Department | None = None) -> str:
    """
    Returns the canonical Category.name. Blank inherits the parent's category.
    """
    value = (value or "").strip()
    if not value:
        return parent.category if parent is not None else ""

    category = Category.objects.filter(name__iexact=value).first()
    if not category:
        raise ValidationError({"category": f"Unknown category '{value}'."})
    if not category.is_active:
        raise ValidationError({"category": f"Category '{category.name}' is inactive."})
    return category.name


def _check_parent(parent: Department | None) -> None:
    # depth is at most 2: department -> subdepartment
    if parent is not None and not parent.is_main:
        raise InvalidHierarchy(
            f"'{parent.name}' is already a subdepartment; subdepartments cannot have children."
        )


def _assert_unique_name(*, facility_id, parent_id, name: str, is_template: bool, exclude_id=None) -> None:
    qs = Department.objects.filter(
        facility_id=facility_id,
        parent_department_id=parent_id,
        is_template=is_template,
        name__iexact=name,
    )
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    if qs.exists():
        raise ValidationError({"name": f"A department named '{name}' already exists here."})


def _organization_id_for(department: Department):
    if department.facility_id is None:
        return None
    return department.facility.workspace.organization_id


class DepartmentService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        facility_id: UUID,
        name: str,
        category: str = "",
        parent_department_id: UUID | None = None,
        min_staffing: int = 1,
        actor_user_id: int | None = None,
    ) -> Department:
        name = _clean_name(name)
        min_staffing = _clean_min_staffing(min_staffing)

        facility = Facility.objects.select_related("workspace").filter(id=facility_id).first()
        if not facility:
            raise ValidationError({"facility_id": "Facility not found."})

        parent = None
        if parent_department_id:
            parent = Department.objects.filter(id=parent_department_id).first()
            if not parent:
                raise ValidationError({"parent_department_id": "Parent department not found."})
            if parent.facility_id != facility.id:
                raise InvalidHierarchy("Parent department belongs to a different facility.")
            _check_parent(parent)

        category_name = _resolve_category(category, parent=parent)
        _assert_unique_name(
            facility_id=facility.id,
            parent_id=parent.id if parent else None,
            name=name,
            is_template=False,
        )

        dept = Department.objects.create(
            facility=facility,
            parent_department=parent,
            name=name,
            category=category_name,
            min_staffing=min_staffing,
        )

        AuditService.log(
            event_code="department.created",
            entity_type="Department",
            entity_id=dept.id,
            organization_id=facility.workspace.organization_id,
            actor_user_id=actor_user_id,
            metadata={"name": dept.name, "parent_department_id": str(parent.id) if parent else None},
        )
        logger.info("department created id=%s facility=%s parent=%s", dept.id, facility.id, dept.parent_department_id)
        return dept

    @staticmethod
    @transaction.atomic
    def create_template(
        *,
        name: str,
        category: str = "",
        parent_template_id: UUID | None = None,
        min_staffing: int = 1,
        actor_user_id: int | None = None,
    ) -> Department:
        name = _clean_name(name)
        min_staffing = _clean_min_staffing(min_staffing)

        parent = None
        if parent_template_id:
            parent = Department.objects.filter(id=parent_template_id, is_template=True).first()
            if not parent:
                raise ValidationError({"parent_template_id": "Parent template not found."})
            _check_parent(parent)

        category_name = _resolve_category(category, parent=parent)
        _assert_unique_name(
            facility_id=None,
            parent_id=parent.id if parent else None,
            name=name,
            is_template=True,
        )

        dept = Department.objects.create(
            facility=None,
            is_template=True,
            parent_department=parent,
            name=name,
            category=category_name,
            min_staffing=min_staffing,
        )

        AuditService.log(
            event_code="department.template_created",
            entity_type="Department",
            entity_id=dept.id,
            actor_user_id=actor_user_id,
            metadata={"name": dept.name},
        )
        return dept

    @staticmethod
    @transaction.atomic
    def create_from_template(
        *, facility_id: UUID, template_id: UUID, actor_user_id: int | None = None
    ) -> Department:
        """
        Copies a main template department and its template subdepartments into the facility.
        The template must be enabled for the facility's workspace.
        """
        from console_core.workspaces.selectors import is_template_enabled

        facility = Facility.objects.select_related("workspace").filter(id=facility_id).first()
        if not facility:
            raise ValidationError({"facility_id": "Facility not found."})

        template = Department.objects.filter(id=template_id, is_template=True).first()
        if not template:
            raise ValidationError({"template_id": "Template department not found."})
        if not template.is_main:
            raise ValidationError({"template_id": "Only main template departments can be copied."})
        if not is_template_enabled(workspace_id=facility.workspace_id, template_id=template.id):
            raise ValidationError({"template_id": "This template is not enabled for the facility's workspace."})

        _assert_unique_name(facility_id=facility.id, parent_id=None, name=template.name, is_template=False)

        main = Department.objects.create(
            facility=facility,
            name=template.name,
            category=template.category,
            min_staffing=template.min_staffing,
        )
        for sub in template.subdepartments.order_by("name"):
            Department.objects.create(
                facility=facility,
                parent_department=main,
                name=sub.name,
                category=sub.category or template.category,
                min_staffing=sub.min_staffing,
            )

        AuditService.log(
            event_code="department.created_from_template",
            entity_type="Department",
            entity_id=main.id,
            organization_id=facility.workspace.organization_id,
            actor_user_id=actor_user_id,
            metadata={"template_id": str(template.id), "name": main.name},
        )
        logger.info("department copied from template=%s into facility=%s", template.id, facility.id)
        return main

    @staticmethod
    @transaction.atomic
    def update(*, department_id: UUID, patch: DepartmentUpdate, actor_user_id: int | None = None) -> Department:
        dept = Department.objects.select_for_update().get(id=department_id)

        if patch.name is not None:
            name = _clean_name(patch.name)
            _assert_unique_name(
                facility_id=dept.facility_id,
                parent_id=dept.parent_department_id,
                name=name,
                is_template=dept.is_template,
                exclude_id=dept.id,
            )
            dept.name = name

        if patch.category is not None:
            dept.category = _resolve_category(patch.category, parent=dept.parent_department)

        if patch.min_staffing is not None:
            dept.min_staffing = _clean_min_staffing(patch.min_staffing)

        dept.save()

        AuditService.log(
            event_code="department.updated",
            entity_type="Department",
            entity_id=dept.id,
            organization_id=_organization_id_for(dept),
            actor_user_id=actor_user_id,
        )
        return dept

    @staticmethod
    @transaction.atomic
    def delete(*, department_id: UUID, actor_user_id: int | None = None) -> None:
        dept = Department.objects.select_for_update().get(id=department_id)
        try:
            assert_department_deletable(dept)
        except DomainError as exc:
            logger.info("department delete rejected id=%s code=%s", dept.id, exc.default_code)
            raise

        dept_id, name, org_id = dept.id, dept.name, _organization_id_for(dept)
        dept.delete()

        AuditService.log(
            event_code="department.deleted",
            entity_type="Department",
            entity_id=dept_id,
            organization_id=org_id,
            actor_user_id=actor_user_id,
            metadata={"name": name},
        )
        logger.info("department deleted id=%s", dept_id)


class CategoryService:
    @staticmethod
    @transaction.atomic
    def create(
        *, name: str, description: str = "", is_system_default: bool = False, actor_user_id: int | None = None
    ) -> Category:
        name = _clean_name(name)
        if Category.objects.filter(name__iexact=name).exists():
            raise ValidationError({"name": f"Category '{name}' already exists."})

        category = Category.objects.create(
            name=name,
            description=(description or "").strip(),
            is_system_default=is_system_default,
        )

        AuditService.log(
            event_code="category.created",
            entity_type="Category",
            entity_id=category.id,
            actor_user_id=actor_user_id,
            metadata={"name": category.name},
        )
        return category

    @staticmethod
    @transaction.atomic
    def update(*, category_id: UUID, patch: CategoryUpdate, actor_user_id: int | None = None) -> Category:
        category = Category.objects.select_for_update().get(id=category_id)

        if patch.name is not None:
            name = _clean_name(patch.name)
            if name != category.name:
                assert_category_mutable(category)
                if Category.objects.filter(name__iexact=name).exclude(id=category.id).exists():
                    raise ValidationError({"name": f"Category '{name}' already exists."})
                # departments reference the category by name
                Department.objects.filter(category=category.name).update(category=name)
                category.name = name

        if patch.description is not None:
            category.description = patch.description.strip()

        category.save()

        AuditService.log(
            event_code="category.updated",
            entity_type="Category",
            entity_id=category.id,
            actor_user_id=actor_user_id,
        )
        return category

    @staticmethod
    @transaction.atomic
    def set_active(*, category_id: UUID, is_active: bool, actor_user_id: int | None = None) -> Category:
        category = Category.objects.select_for_update().get(id=category_id)
        if category.is_active == is_active:
            return category

        category.is_active = is_active
        category.save(update_fields=["is_active", "updated_at"])

        AuditService.log(
            event_code="category.activated" if is_active else "category.deactivated",
            entity_type="Category",
            entity_id=category.id,
            actor_user_id=actor_user_id,
        )
        return category

    @staticmethod
    @transaction.atomic
    def delete(*, category_id: UUID, actor_user_id: int | None = None) -> None:
        category = Category.objects.select_for_update().get(id=category_id)
        assert_category_deletable(category)

        cat_id, name = category.id, category.name
        category.delete()

        AuditService.log(
            event_code="category.deleted",
            entity_type="Category",
            entity_id=cat_id,
            actor_user_id=actor_user_id,
            metadata={"name": name},
        )
        logger.info("category deleted id=%s name=%s", cat_id, name)
