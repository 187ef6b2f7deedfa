# console_core/departments/seeding.py
from __future__ import annotations

from django.db import transaction

from console_core.departments.models import Category, Department
from console_core.departments.presets import DEFAULT_CATEGORIES, DEPARTMENT_PRESETS


@transaction.atomic
def seed_default_categories() -> int:
    """Idempotent. Returns the number of newly created categories."""
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        _, was_created = Category.objects.get_or_create(
            name=name,
            defaults={"description": description, "is_system_default": True},
        )
        created += 1 if was_created else 0
    return created


@transaction.atomic
def seed_department_templates() -> int:
    """Idempotent. Creates template departments (and template subdepartments) from the presets."""
    created = 0
    for category, presets in DEPARTMENT_PRESETS.items():
        for name, min_staffing, subdepartments in presets:
            main, was_created = Department.objects.get_or_create(
                is_template=True,
                facility=None,
                parent_department=None,
                name=name,
                defaults={"category": category, "min_staffing": min_staffing},
            )
            created += 1 if was_created else 0
            for sub_name in subdepartments:
                _, was_created = Department.objects.get_or_create(
                    is_template=True,
                    facility=None,
                    parent_department=main,
                    name=sub_name,
                    defaults={"category": category, "min_staffing": 1},
                )
                created += 1 if was_created else 0
    return created
