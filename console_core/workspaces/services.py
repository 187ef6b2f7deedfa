# console_core/workspaces/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from console_core.audit.services import AuditService
from console_core.departments.models import Category, Department
from console_core.organizations.limits import assert_can_add_workspace
from console_core.organizations.models import Organization
from console_core.workspaces.guards import assert_workspace_deletable
from console_core.workspaces.models import Workspace, WorkspaceCategory, WorkspaceDepartment

logger = logging.getLogger(__name__)

MAX_VACATION_SPLITS = 20


@dataclass(frozen=True)
class WorkspaceUpdate:
    name: Optional[str] = None
    max_vacation_splits: Optional[int] = None
    max_concurrent_vacations: Optional[int] = None


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if len(name) < 2:
        raise ValidationError({"name": "Workspace name must be at least 2 characters."})
    return name


class WorkspaceService:
    @staticmethod
    @transaction.atomic
    def create(*, organization_id: UUID, name: str, actor_user_id: int | None = None) -> Workspace:
        name = _clean_name(name)

        # lock the organization row so concurrent creates see the same count
        org = Organization.objects.select_for_update().filter(id=organization_id).first()
        if not org:
            raise ValidationError({"organization_id": "Organization not found."})

        assert_can_add_workspace(org)

        ws = Workspace.objects.create(organization=org, name=name)

        AuditService.log(
            event_code="workspace.created",
            entity_type="Workspace",
            entity_id=ws.id,
            organization_id=org.id,
            actor_user_id=actor_user_id,
            metadata={"name": ws.name},
        )
        logger.info("workspace created id=%s org=%s", ws.id, org.id)
        return ws

    @staticmethod
    @transaction.atomic
    def update(*, workspace_id: UUID, patch: WorkspaceUpdate, actor_user_id: int | None = None) -> Workspace:
        ws = Workspace.objects.select_for_update().get(id=workspace_id)

        if patch.name is not None:
            ws.name = _clean_name(patch.name)

        if patch.max_vacation_splits is not None:
            if not 1 <= patch.max_vacation_splits <= MAX_VACATION_SPLITS:
                raise ValidationError(
                    {"max_vacation_splits": f"Must be between 1 and {MAX_VACATION_SPLITS}."}
                )
            ws.max_vacation_splits = patch.max_vacation_splits

        if patch.max_concurrent_vacations is not None:
            if patch.max_concurrent_vacations < 1:
                raise ValidationError({"max_concurrent_vacations": "Must be at least 1."})
            ws.max_concurrent_vacations = patch.max_concurrent_vacations

        ws.save()

        AuditService.log(
            event_code="workspace.updated",
            entity_type="Workspace",
            entity_id=ws.id,
            organization_id=ws.organization_id,
            actor_user_id=actor_user_id,
        )
        return ws

    @staticmethod
    @transaction.atomic
    def delete(*, workspace_id: UUID, actor_user_id: int | None = None) -> None:
        ws = Workspace.objects.select_for_update().get(id=workspace_id)
        assert_workspace_deletable(ws)

        ws_id, org_id, name = ws.id, ws.organization_id, ws.name
        ws.delete()

        AuditService.log(
            event_code="workspace.deleted",
            entity_type="Workspace",
            entity_id=ws_id,
            organization_id=org_id,
            actor_user_id=actor_user_id,
            metadata={"name": name},
        )
        logger.info("workspace deleted id=%s org=%s", ws_id, org_id)

    @staticmethod
    @transaction.atomic
    def assign_template_department(
        *, workspace_id: UUID, template_id: UUID, actor_user_id: int | None = None
    ) -> WorkspaceDepartment:
        """
        Enables a template department for the workspace. Assigning twice is a no-op.
        """
        ws = Workspace.objects.filter(id=workspace_id).first()
        if not ws:
            raise ValidationError({"workspace_id": "Workspace not found."})

        template = Department.objects.filter(id=template_id).first()
        if not template or not template.is_template:
            raise ValidationError({"template_id": "Template department not found."})
        if not template.is_main:
            raise ValidationError({"template_id": "Only main template departments can be assigned."})

        link, created = WorkspaceDepartment.objects.get_or_create(workspace=ws, department=template)
        if created:
            AuditService.log(
                event_code="workspace.template_department_assigned",
                entity_type="Workspace",
                entity_id=ws.id,
                organization_id=ws.organization_id,
                actor_user_id=actor_user_id,
                metadata={"template_id": str(template.id), "name": template.name},
            )
        return link

    @staticmethod
    @transaction.atomic
    def unassign_template_department(
        *, workspace_id: UUID, template_id: UUID, actor_user_id: int | None = None
    ) -> bool:
        deleted, _ = WorkspaceDepartment.objects.filter(
            workspace_id=workspace_id, department_id=template_id
        ).delete()
        if deleted:
            ws = Workspace.objects.get(id=workspace_id)
            AuditService.log(
                event_code="workspace.template_department_unassigned",
                entity_type="Workspace",
                entity_id=ws.id,
                organization_id=ws.organization_id,
                actor_user_id=actor_user_id,
                metadata={"template_id": str(template_id)},
            )
        return bool(deleted)

    @staticmethod
    @transaction.atomic
    def assign_category(
        *, workspace_id: UUID, category_id: UUID, actor_user_id: int | None = None
    ) -> WorkspaceCategory:
        ws = Workspace.objects.filter(id=workspace_id).first()
        if not ws:
            raise ValidationError({"workspace_id": "Workspace not found."})

        category = Category.objects.filter(id=category_id).first()
        if not category:
            raise ValidationError({"category_id": "Category not found."})
        if not category.is_active:
            raise ValidationError({"category_id": "Category is inactive."})

        link, created = WorkspaceCategory.objects.get_or_create(workspace=ws, category=category)
        if created:
            AuditService.log(
                event_code="workspace.category_assigned",
                entity_type="Workspace",
                entity_id=ws.id,
                organization_id=ws.organization_id,
                actor_user_id=actor_user_id,
                metadata={"category_id": str(category.id), "name": category.name},
            )
        return link

    @staticmethod
    @transaction.atomic
    def unassign_category(*, workspace_id: UUID, category_id: UUID, actor_user_id: int | None = None) -> bool:
        deleted, _ = WorkspaceCategory.objects.filter(workspace_id=workspace_id, category_id=category_id).delete()
        if deleted:
            ws = Workspace.objects.get(id=workspace_id)
            AuditService.log(
                event_code="workspace.category_unassigned",
                entity_type="Workspace",
                entity_id=ws.id,
                organization_id=ws.organization_id,
                actor_user_id=actor_user_id,
                metadata={"category_id": str(category_id)},
            )
        return bool(deleted)
