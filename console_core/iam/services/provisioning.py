# console_core/iam/services/provisioning.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from rest_framework.exceptions import APIException, ValidationError

from console_core.audit.services import AuditService
from console_core.common.api.exceptions import DuplicateUser, InvalidScope
from console_core.departments.models import Department
from console_core.departments.selectors import department_by_name
from console_core.facilities.selectors import facility_by_name
from console_core.iam.models import AppRole, Profile, UserRole
from console_core.iam.roles import build_scope
from console_core.iam.services.identity import get_identity_backend
from console_core.iam.services.role_assignment import RoleAssignmentService, assert_can_grant, resolve_scope
from console_core.organizations.limits import assert_can_add_user
from console_core.organizations.models import Organization

logger = logging.getLogger(__name__)

FIRST_DATA_ROW = 2  # row 1 is the spreadsheet header


@dataclass(frozen=True)
class ProvisioningRequest:
    """
    Everything the user-creation wizard collects, in one value.
    specialty_id is only meaningful for staff: it names the subdepartment under department_id.
    """
    email: str
    full_name: str
    role: str = AppRole.STAFF
    organization_id: Optional[UUID] = None
    workspace_id: Optional[UUID] = None
    facility_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    specialty_id: Optional[UUID] = None


@dataclass(frozen=True)
class ProvisioningResult:
    user_id: int
    profile_id: UUID
    role_id: UUID
    email: str
    force_password_change: bool


@dataclass
class BulkProvisioningResult:
    created: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "created_count": len(self.created),
            "error_count": len(self.errors),
            "created": self.created,
            "errors": self.errors,
        }


def _clean_request(req: ProvisioningRequest) -> ProvisioningRequest:
    email = (req.email or "").strip().lower()
    full_name = (req.full_name or "").strip()

    errors = {}
    if not email:
        errors["email"] = "Email is required."
    elif len(email) > 255:
        errors["email"] = "Email must be at most 255 characters."
    else:
        try:
            validate_email(email)
        except DjangoValidationError:
            errors["email"] = "Enter a valid email address."

    if len(full_name) < 2:
        errors["full_name"] = "Full name must be at least 2 characters."
    elif len(full_name) > 100:
        errors["full_name"] = "Full name must be at most 100 characters."

    if req.role not in AppRole.values:
        errors["role"] = f"Unknown role '{req.role}'."

    if errors:
        raise ValidationError(errors)

    return replace(req, email=email, full_name=full_name)


def _staff_target(req: ProvisioningRequest) -> ProvisioningRequest:
    """
    Staff may be given as (main department, specialty); the role attaches to the specialty.
    """
    if req.specialty_id is None:
        return req
    if req.role != AppRole.STAFF:
        raise ValidationError({"specialty_id": f"Not allowed for role '{req.role}'."})

    specialty = Department.objects.filter(id=req.specialty_id).first()
    if not specialty:
        raise ValidationError({"specialty_id": "Specialty not found."})
    if req.department_id and specialty.parent_department_id != req.department_id:
        raise InvalidScope(f"'{specialty.name}' is not a subdepartment of the selected department.")
    return replace(req, department_id=specialty.id, specialty_id=None)


def _error_text(exc: APIException) -> str:
    detail = exc.detail
    if isinstance(detail, dict):
        parts = []
        for key, value in detail.items():
            msg = value[0] if isinstance(value, list) and value else value
            parts.append(f"{key}: {msg}")
        return "; ".join(parts)
    if isinstance(detail, list):
        return "; ".join(str(d) for d in detail)
    return str(detail)


class ProvisioningService:
    @staticmethod
    def provision_user(*, request: ProvisioningRequest, created_by=None) -> ProvisioningResult:
        """
        Validate, check authority and limits, then create the account and the console rows.

        Nothing reaches the identity backend until the scope is known to be valid.
        If the console rows cannot be written, the account is removed again.
        """
        req = _staff_target(_clean_request(request))

        scope = build_scope(
            req.role,
            organization_id=req.organization_id,
            workspace_id=req.workspace_id,
            facility_id=req.facility_id,
            department_id=req.department_id,
        )
        target = resolve_scope(scope)
        assert_can_grant(created_by, req.role, target)

        if Profile.objects.filter(email__iexact=req.email).exists():
            raise DuplicateUser(f"A user with email '{req.email}' already exists.")

        if target.workspace_id:
            assert_can_add_user(Organization.objects.get(id=target.organization_id))

        force_change = bool(getattr(settings, "CONSOLE_FORCE_PASSWORD_CHANGE", True))
        backend = get_identity_backend()
        user = backend.create_account(
            email=req.email,
            password=settings.CONSOLE_DEFAULT_PASSWORD,
            full_name=req.full_name,
        )

        created_by_id = getattr(created_by, "id", None)
        try:
            with transaction.atomic():
                profile = Profile.objects.create(
                    user=user,
                    full_name=req.full_name,
                    email=req.email,
                    force_password_change=force_change,
                    created_by_id=created_by_id,
                )
                row = RoleAssignmentService.add_role(user_id=user.id, scope=scope, granted_by=created_by)
        except Exception:
            logger.warning("provisioning failed after account creation; removing account email=%s", req.email)
            backend.delete_account(user)
            raise

        AuditService.log(
            event_code="user.provisioned",
            entity_type="Profile",
            entity_id=profile.id,
            organization_id=target.organization_id,
            actor_user_id=created_by_id,
            metadata={"user_id": user.id, "email": req.email, "role": req.role},
        )
        logger.info("user provisioned user_id=%s role=%s", user.id, req.role)

        return ProvisioningResult(
            user_id=user.id,
            profile_id=profile.id,
            role_id=row.id,
            email=req.email,
            force_password_change=force_change,
        )

    @staticmethod
    def request_from_row(row: Dict[str, Any], *, workspace_id: UUID | None = None) -> ProvisioningRequest:
        """
        Resolve a parsed spreadsheet row ({email, full_name, facility_name, department_name,
        specialty_name, role}) into a ProvisioningRequest. Names are matched case-insensitively.
        """
        role = (row.get("role") or AppRole.STAFF).strip().lower()
        facility_name = (row.get("facility_name") or "").strip()
        department_name = (row.get("department_name") or "").strip()
        specialty_name = (row.get("specialty_name") or "").strip()

        if not facility_name:
            raise ValidationError({"facility_name": "Facility is required."})
        facility = facility_by_name(name=facility_name, workspace_id=workspace_id)
        if not facility:
            raise ValidationError({"facility_name": f"Facility '{facility_name}' not found."})

        if role in (AppRole.GENERAL_ADMIN, AppRole.WORKPLACE_SUPERVISOR):
            return ProvisioningRequest(
                email=row.get("email") or "",
                full_name=row.get("full_name") or "",
                role=role,
                workspace_id=facility.workspace_id,
            )

        department = None
        if department_name:
            department = department_by_name(facility_id=facility.id, name=department_name)
            if not department:
                raise ValidationError(
                    {"department_name": f"Department '{department_name}' not found in '{facility.name}'."}
                )

        specialty = None
        if specialty_name:
            if department is None:
                raise ValidationError({"specialty_name": "A specialty needs its department."})
            specialty = department_by_name(
                facility_id=facility.id, name=specialty_name, parent_department_id=department.id
            )
            if not specialty:
                raise ValidationError(
                    {"specialty_name": f"Specialty '{specialty_name}' not found under '{department.name}'."}
                )

        if role == AppRole.STAFF and department is not None and specialty is None:
            raise InvalidScope(
                f"Staff must be assigned to a subdepartment; '{department.name}' is a main department."
            )

        return ProvisioningRequest(
            email=row.get("email") or "",
            full_name=row.get("full_name") or "",
            role=role,
            facility_id=facility.id,
            department_id=department.id if department else None,
            specialty_id=specialty.id if specialty else None,
        )

    @staticmethod
    def bulk_provision(
        *, rows: Iterable[Dict[str, Any]], created_by=None, workspace_id: UUID | None = None
    ) -> BulkProvisioningResult:
        """
        Each row succeeds or fails on its own; failures are collected as {row, email, error}.
        """
        result = BulkProvisioningResult()

        for index, row in enumerate(rows):
            row_number = index + FIRST_DATA_ROW
            email = (row.get("email") or "").strip()
            try:
                with transaction.atomic():
                    req = ProvisioningService.request_from_row(row, workspace_id=workspace_id)
                    created = ProvisioningService.provision_user(request=req, created_by=created_by)
            except APIException as exc:
                result.errors.append({"row": row_number, "email": email, "error": _error_text(exc)})
                continue
            except Exception:
                # one broken row must not abort the rest of the upload
                logger.exception("bulk provisioning row failed row=%s email=%s", row_number, email)
                result.errors.append(
                    {"row": row_number, "email": email, "error": "Unexpected error; the user was not created."}
                )
                continue
            result.created.append({"row": row_number, "email": created.email, "user_id": created.user_id})

        logger.info(
            "bulk provisioning finished created=%s errors=%s",
            len(result.created),
            len(result.errors),
        )
        return result


class UserAccountService:
    @staticmethod
    @transaction.atomic
    def set_active(*, user_id: int, is_active: bool, actor=None) -> Profile:
        """
        Deactivated users keep their roles but resolve to no module access.
        """
        profile = Profile.objects.select_for_update().select_related("user").get(user_id=user_id)
        if actor is not None and actor.id == user_id and not is_active:
            raise ValidationError({"user_id": "You cannot deactivate yourself."})

        if profile.is_active == is_active:
            return profile

        profile.is_active = is_active
        profile.save(update_fields=["is_active", "updated_at"])

        user = profile.user
        user.is_active = is_active
        user.save(update_fields=["is_active"])

        org_ids = set(
            UserRole.objects.filter(user_id=user_id, workspace__isnull=False)
            .values_list("workspace__organization_id", flat=True)
        )
        AuditService.log(
            event_code="user.reactivated" if is_active else "user.deactivated",
            entity_type="Profile",
            entity_id=profile.id,
            organization_id=next(iter(org_ids)) if len(org_ids) == 1 else None,
            actor_user_id=getattr(actor, "id", None),
            metadata={"user_id": user_id},
        )
        logger.info("user %s user_id=%s", "reactivated" if is_active else "deactivated", user_id)
        return profile
