# console_core/facilities/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import ValidationError

from console_core.facilities.models import Facility


def facilities_qs(*, workspace_id: UUID | None = None, organization_id: UUID | None = None) -> QuerySet[Facility]:
    qs = Facility.objects.select_related("workspace")
    if workspace_id:
        qs = qs.filter(workspace_id=workspace_id)
    if organization_id:
        qs = qs.filter(workspace__organization_id=organization_id)
    return qs.order_by("name")


def get_facility(*, facility_id: UUID) -> Facility:
    return Facility.objects.select_related("workspace", "workspace__organization").get(id=facility_id)


def facility_by_name(*, name: str, workspace_id: UUID | None = None) -> Facility | None:
    """
    Names are only unique within a workspace; a name matching several facilities is an error.
    """
    name = (name or "").strip()
    qs = Facility.objects.filter(name__iexact=name)
    if workspace_id:
        qs = qs.filter(workspace_id=workspace_id)

    matches = list(qs.select_related("workspace")[:2])
    if len(matches) > 1:
        raise ValidationError({"facility_name": f"Facility '{name}' is ambiguous; pass workspace_id."})
    return matches[0] if matches else None
