# console_core/iam/roles.py
"""
Role ordering and the per-role scope types.

Every role has exactly one scope class whose fields are the scope ids that role
needs. build_scope() turns loosely-typed input (API payloads, spreadsheet rows)
into one of them, rejecting missing and forbidden fields.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Optional, Type, Union
from uuid import UUID

from rest_framework.exceptions import ValidationError

from console_core.iam.models import AppRole

# Highest authority first.
ROLE_HIERARCHY: tuple[str, ...] = tuple(AppRole.values)

SCOPE_FIELDS = ("organization_id", "workspace_id", "facility_id", "department_id")

# Highest role each creator role may grant. Organization and general admins share a ceiling.
GRANT_CEILING: Dict[str, str] = {
    AppRole.SUPER_ADMIN: AppRole.ORGANIZATION_ADMIN,
    AppRole.ORGANIZATION_ADMIN: AppRole.WORKPLACE_SUPERVISOR,
    AppRole.GENERAL_ADMIN: AppRole.WORKPLACE_SUPERVISOR,
    AppRole.WORKPLACE_SUPERVISOR: AppRole.FACILITY_SUPERVISOR,
    AppRole.FACILITY_SUPERVISOR: AppRole.DEPARTMENT_HEAD,
    AppRole.DEPARTMENT_HEAD: AppRole.STAFF,
}


def role_rank(role: str) -> int:
    """0 is the highest authority. Unknown roles rank below everything."""
    try:
        return ROLE_HIERARCHY.index(role)
    except ValueError:
        return len(ROLE_HIERARCHY)


def get_highest_role(roles: Iterable[str]) -> Optional[str]:
    known = [r for r in roles if r in ROLE_HIERARCHY]
    if not known:
        return None
    return min(known, key=role_rank)


def assignable_roles(creator_roles: Iterable[str]) -> List[str]:
    highest = get_highest_role(creator_roles)
    if highest is None or highest not in GRANT_CEILING:
        return []
    ceiling = role_rank(GRANT_CEILING[highest])
    return [r for r in ROLE_HIERARCHY if role_rank(r) >= ceiling]


def can_grant(creator_roles: Iterable[str], role: str) -> bool:
    return role in assignable_roles(creator_roles)


@dataclass(frozen=True)
class SuperAdminScope:
    role = AppRole.SUPER_ADMIN


@dataclass(frozen=True)
class OrganizationAdminScope:
    organization_id: UUID
    role = AppRole.ORGANIZATION_ADMIN


@dataclass(frozen=True)
class GeneralAdminScope:
    workspace_id: UUID
    role = AppRole.GENERAL_ADMIN


@dataclass(frozen=True)
class WorkplaceSupervisorScope:
    workspace_id: UUID
    role = AppRole.WORKPLACE_SUPERVISOR


@dataclass(frozen=True)
class FacilitySupervisorScope:
    facility_id: UUID
    role = AppRole.FACILITY_SUPERVISOR


@dataclass(frozen=True)
class DepartmentHeadScope:
    facility_id: UUID
    department_id: UUID  # main department
    role = AppRole.DEPARTMENT_HEAD


@dataclass(frozen=True)
class StaffScope:
    facility_id: UUID
    department_id: UUID  # subdepartment
    role = AppRole.STAFF


RoleScope = Union[
    SuperAdminScope,
    OrganizationAdminScope,
    GeneralAdminScope,
    WorkplaceSupervisorScope,
    FacilitySupervisorScope,
    DepartmentHeadScope,
    StaffScope,
]

SCOPE_TYPES: Dict[str, Type] = {
    AppRole.SUPER_ADMIN: SuperAdminScope,
    AppRole.ORGANIZATION_ADMIN: OrganizationAdminScope,
    AppRole.GENERAL_ADMIN: GeneralAdminScope,
    AppRole.WORKPLACE_SUPERVISOR: WorkplaceSupervisorScope,
    AppRole.FACILITY_SUPERVISOR: FacilitySupervisorScope,
    AppRole.DEPARTMENT_HEAD: DepartmentHeadScope,
    AppRole.STAFF: StaffScope,
}


def required_fields(role: str) -> tuple[str, ...]:
    return tuple(f.name for f in fields(SCOPE_TYPES[role]))


def _as_uuid(field_name: str, value) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError({field_name: "Invalid UUID"})


def build_scope(role: str, **ids) -> RoleScope:
    """
    build_scope("staff", facility_id=..., department_id=...) -> StaffScope

    Blank/None ids count as absent. Missing required ids and ids the role
    cannot carry both raise ValidationError.
    """
    if role not in SCOPE_TYPES:
        raise ValidationError({"role": f"Unknown role '{role}'."})

    unknown = set(ids) - set(SCOPE_FIELDS)
    if unknown:
        raise ValidationError({"scope": f"Unknown scope field(s): {', '.join(sorted(unknown))}."})

    given = {k: v for k, v in ids.items() if v not in (None, "")}
    needed = required_fields(role)

    errors = {}
    for name in needed:
        if name not in given:
            errors[name] = f"Required for role '{role}'."
    for name in given:
        if name not in needed:
            errors[name] = f"Not allowed for role '{role}'."
    if errors:
        raise ValidationError(errors)

    return SCOPE_TYPES[role](**{name: _as_uuid(name, given[name]) for name in needed})
