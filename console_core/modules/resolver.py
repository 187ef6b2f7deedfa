# console_core/modules/resolver.py
"""
Effective capability resolution for one (user, module) pair.

Pure: no database access. Selectors gather the inputs, resolve() combines them.

Order:
  1. module switched off system-wide (and not core) -> nothing
  2. OR of every role grant, skipping grants from workspaces that disabled the module
  3. explicit workspace disabled -> nothing
  4. user override -> replaces the result entirely
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional
from uuid import UUID

CAPABILITIES = ("view", "edit", "delete", "admin")


@dataclass(frozen=True)
class Capabilities:
    view: bool = False
    edit: bool = False
    delete: bool = False
    admin: bool = False

    def __or__(self, other: "Capabilities") -> "Capabilities":
        return Capabilities(
            view=self.view or other.view,
            edit=self.edit or other.edit,
            delete=self.delete or other.delete,
            admin=self.admin or other.admin,
        )

    def __bool__(self) -> bool:
        return self.view or self.edit or self.delete or self.admin

    def allows(self, capability: str) -> bool:
        if capability not in CAPABILITIES:
            raise ValueError(f"unknown capability: {capability}")
        return bool(getattr(self, capability))

    def as_dict(self) -> dict:
        return {
            "can_view": self.view,
            "can_edit": self.edit,
            "can_delete": self.delete,
            "can_admin": self.admin,
        }

    @classmethod
    def from_row(cls, row) -> "Capabilities":
        """Any object carrying can_view/can_edit/can_delete/can_admin."""
        return cls(
            view=bool(row.can_view),
            edit=bool(row.can_edit),
            delete=bool(row.can_delete),
            admin=bool(row.can_admin),
        )


NONE = Capabilities()
ALL = Capabilities(view=True, edit=True, delete=True, admin=True)


@dataclass(frozen=True)
class RoleGrant:
    """Capabilities a role carries, and the workspace the role is held in (None for unscoped roles)."""
    role: str
    capabilities: Capabilities
    workspace_id: Optional[UUID] = None


def resolve(
    grants: Iterable[RoleGrant],
    *,
    module_active: bool = True,
    is_core: bool = False,
    workspace_enabled: Optional[bool] = None,
    disabled_workspace_ids: FrozenSet[UUID] = frozenset(),
    user_override: Optional[Capabilities] = None,
) -> Capabilities:
    if not module_active and not is_core:
        return NONE

    result = NONE
    for grant in grants:
        if grant.workspace_id is not None and grant.workspace_id in disabled_workspace_ids:
            continue
        result = result | grant.capabilities

    # restrict only, never grant
    if workspace_enabled is False:
        result = NONE

    if user_override is not None:
        return user_override

    return result
