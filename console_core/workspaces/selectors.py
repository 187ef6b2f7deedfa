# console_core/workspaces/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from console_core.workspaces.models import Workspace, WorkspaceCategory, WorkspaceDepartment


def workspaces_qs(*, organization_id: UUID | None = None) -> QuerySet[Workspace]:
    qs = Workspace.objects.select_related("organization")
    if organization_id:
        qs = qs.filter(organization_id=organization_id)
    return qs.order_by("name")


def get_workspace(*, workspace_id: UUID) -> Workspace:
    return Workspace.objects.select_related("organization").get(id=workspace_id)


def template_departments_for_workspace(*, workspace_id: UUID):
    from console_core.departments.models import Department

    return Department.objects.filter(
        is_template=True,
        workspace_assignments__workspace_id=workspace_id,
    ).order_by("name")


def categories_for_workspace(*, workspace_id: UUID):
    from console_core.departments.models import Category

    return Category.objects.filter(workspace_assignments__workspace_id=workspace_id).order_by("name")


def is_template_enabled(*, workspace_id: UUID, template_id: UUID) -> bool:
    return WorkspaceDepartment.objects.filter(workspace_id=workspace_id, department_id=template_id).exists()


def is_category_enabled(*, workspace_id: UUID, category_id: UUID) -> bool:
    return WorkspaceCategory.objects.filter(workspace_id=workspace_id, category_id=category_id).exists()
