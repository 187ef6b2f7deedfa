# console_core/organizations/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import ValidationError

from console_core.audit.services import AuditService
from console_core.iam.models import AppRole, UserRole
from console_core.organizations import selectors
from console_core.organizations.guards import assert_organization_deletable
from console_core.organizations.models import Organization

logger = logging.getLogger(__name__)

# Limits use None for "unlimited", so "not provided" needs its own marker.
UNCHANGED: Any = object()

LIMIT_FIELDS = ("max_workspaces", "max_facilities", "max_users")


@dataclass(frozen=True)
class OrganizationUpdate:
    name: Optional[str] = None
    description: Optional[str] = None
    max_workspaces: Any = UNCHANGED
    max_facilities: Any = UNCHANGED
    max_users: Any = UNCHANGED


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if len(name) < 2:
        raise ValidationError({"name": "Name must be at least 2 characters."})
    if len(name) > 255:
        raise ValidationError({"name": "Name must be at most 255 characters."})
    return name


def _clean_limit(field: str, value) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError({field: "Must be a positive integer or null (unlimited)."})
    return value


def _sync_owner_roles(
    *,
    organization_id: UUID,
    previous_owner_id: int | None,
    new_owner_id: int | None,
    actor_user_id: int | None,
) -> None:
    """
    organization_admin is the owner link: owners hold one scope-less organization_admin row,
    and a user who no longer owns any organization loses it.
    """
    if new_owner_id is not None and not UserRole.objects.filter(
        user_id=new_owner_id, role=AppRole.ORGANIZATION_ADMIN
    ).exists():
        row = UserRole.objects.create(
            user_id=new_owner_id,
            role=AppRole.ORGANIZATION_ADMIN,
            created_by_id=actor_user_id,
        )
        AuditService.log(
            event_code="role.granted",
            entity_type="UserRole",
            entity_id=row.id,
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            metadata={"user_id": new_owner_id, "role": AppRole.ORGANIZATION_ADMIN},
        )

    if previous_owner_id is None or previous_owner_id == new_owner_id:
        return
    if Organization.objects.filter(owner_id=previous_owner_id).exists():
        return

    for row in UserRole.objects.filter(user_id=previous_owner_id, role=AppRole.ORGANIZATION_ADMIN):
        row_id = row.id
        row.delete()
        AuditService.log(
            event_code="role.revoked",
            entity_type="UserRole",
            entity_id=row_id,
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            metadata={"user_id": previous_owner_id, "role": AppRole.ORGANIZATION_ADMIN, "reason": "no_owned_organization"},
        )
        logger.info("organization_admin revoked user=%s (owns no organization)", previous_owner_id)


class OrganizationService:
    """
    All Organization mutations live here (write-model boundary).
    """

    @staticmethod
    @transaction.atomic
    def create(
        *,
        name: str,
        description: str = "",
        owner_id: int | None = None,
        max_workspaces: int | None = None,
        max_facilities: int | None = None,
        max_users: int | None = None,
        actor_user_id: int | None = None,
    ) -> Organization:
        name = _clean_name(name)

        if owner_id is not None and not get_user_model().objects.filter(id=owner_id).exists():
            raise ValidationError({"owner_id": "User not found."})

        org = Organization.objects.create(
            name=name,
            description=(description or "").strip(),
            owner_id=owner_id,
            max_workspaces=_clean_limit("max_workspaces", max_workspaces),
            max_facilities=_clean_limit("max_facilities", max_facilities),
            max_users=_clean_limit("max_users", max_users),
        )

        AuditService.log(
            event_code="organization.created",
            entity_type="Organization",
            entity_id=org.id,
            organization_id=org.id,
            actor_user_id=actor_user_id,
            metadata={"name": org.name},
        )
        if owner_id is not None:
            _sync_owner_roles(
                organization_id=org.id,
                previous_owner_id=None,
                new_owner_id=owner_id,
                actor_user_id=actor_user_id,
            )
        logger.info("organization created id=%s name=%s", org.id, org.name)
        return org

    @staticmethod
    @transaction.atomic
    def update(*, organization_id: UUID, patch: OrganizationUpdate, actor_user_id: int | None = None) -> Organization:
        org = Organization.objects.select_for_update().get(id=organization_id)

        if patch.name is not None:
            org.name = _clean_name(patch.name)
        if patch.description is not None:
            org.description = patch.description.strip()

        usage = None
        for field in LIMIT_FIELDS:
            value = getattr(patch, field)
            if value is UNCHANGED:
                continue
            value = _clean_limit(field, value)
            if value is not None:
                usage = usage or selectors.organization_usage(organization_id=org.id)
                used = {
                    "max_workspaces": usage.workspaces,
                    "max_facilities": usage.facilities,
                    "max_users": usage.users,
                }[field]
                if value < used:
                    raise ValidationError({field: f"Cannot be lower than current usage ({used})."})
            setattr(org, field, value)

        org.save()

        AuditService.log(
            event_code="organization.updated",
            entity_type="Organization",
            entity_id=org.id,
            organization_id=org.id,
            actor_user_id=actor_user_id,
        )
        return org

    @staticmethod
    @transaction.atomic
    def set_owner(*, organization_id: UUID, user_id: int | None, actor_user_id: int | None = None) -> Organization:
        org = Organization.objects.select_for_update().get(id=organization_id)

        if user_id is not None and not get_user_model().objects.filter(id=user_id).exists():
            raise ValidationError({"user_id": "User not found."})

        # idempotent no-op
        if org.owner_id == user_id:
            return org

        previous_owner_id = org.owner_id
        org.owner_id = user_id
        org.save(update_fields=["owner", "updated_at"])
        _sync_owner_roles(
            organization_id=org.id,
            previous_owner_id=previous_owner_id,
            new_owner_id=user_id,
            actor_user_id=actor_user_id,
        )

        AuditService.log(
            event_code="organization.owner_changed",
            entity_type="Organization",
            entity_id=org.id,
            organization_id=org.id,
            actor_user_id=actor_user_id,
            metadata={"owner_id": user_id, "previous_owner_id": previous_owner_id},
        )
        return org

    @staticmethod
    @transaction.atomic
    def delete(*, organization_id: UUID, actor_user_id: int | None = None) -> None:
        org = Organization.objects.select_for_update().get(id=organization_id)
        assert_organization_deletable(org)

        org_id, name, owner_id = org.id, org.name, org.owner_id
        org.delete()
        _sync_owner_roles(
            organization_id=org_id,
            previous_owner_id=owner_id,
            new_owner_id=None,
            actor_user_id=actor_user_id,
        )

        AuditService.log(
            event_code="organization.deleted",
            entity_type="Organization",
            entity_id=org_id,
            organization_id=org_id,
            actor_user_id=actor_user_id,
            metadata={"name": name},
        )
        logger.info("organization deleted id=%s name=%s", org_id, name)
