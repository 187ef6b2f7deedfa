# console_core/facilities/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from console_core.audit.services import AuditService
from console_core.facilities.guards import assert_facility_deletable
from console_core.facilities.models import Facility
from console_core.organizations.limits import assert_can_add_facility
from console_core.organizations.models import Organization
from console_core.workspaces.models import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacilityUpdate:
    name: Optional[str] = None


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if len(name) < 2:
        raise ValidationError({"name": "Facility name must be at least 2 characters."})
    return name


class FacilityService:
    @staticmethod
    @transaction.atomic
    def create(*, workspace_id: UUID, name: str, actor_user_id: int | None = None) -> Facility:
        name = _clean_name(name)

        ws = Workspace.objects.filter(id=workspace_id).first()
        if not ws:
            raise ValidationError({"workspace_id": "Workspace not found."})

        # limit is aggregated across the organization's workspaces
        org = Organization.objects.select_for_update().get(id=ws.organization_id)
        assert_can_add_facility(org)

        f = Facility.objects.create(workspace=ws, name=name)

        AuditService.log(
            event_code="facility.created",
            entity_type="Facility",
            entity_id=f.id,
            organization_id=org.id,
            actor_user_id=actor_user_id,
            metadata={"name": f.name, "workspace_id": str(ws.id)},
        )
        logger.info("facility created id=%s workspace=%s", f.id, ws.id)
        return f

    @staticmethod
    @transaction.atomic
    def update(*, facility_id: UUID, patch: FacilityUpdate, actor_user_id: int | None = None) -> Facility:
        f = Facility.objects.select_for_update().select_related("workspace").get(id=facility_id)

        if patch.name is not None:
            f.name = _clean_name(patch.name)

        f.save()

        AuditService.log(
            event_code="facility.updated",
            entity_type="Facility",
            entity_id=f.id,
            organization_id=f.workspace.organization_id,
            actor_user_id=actor_user_id,
        )
        return f

    @staticmethod
    @transaction.atomic
    def delete(*, facility_id: UUID, actor_user_id: int | None = None) -> None:
        f = Facility.objects.select_for_update().select_related("workspace").get(id=facility_id)
        assert_facility_deletable(f)

        f_id, org_id, name = f.id, f.workspace.organization_id, f.name
        f.delete()

        AuditService.log(
            event_code="facility.deleted",
            entity_type="Facility",
            entity_id=f_id,
            organization_id=org_id,
            actor_user_id=actor_user_id,
            metadata={"name": name},
        )
        logger.info("facility deleted id=%s", f_id)
