# console_core/workspaces/guards.py
from __future__ import annotations

from console_core.common.api.exceptions import HasAssignedUsers, HasChildren
from console_core.workspaces.models import Workspace


def assert_workspace_deletable(workspace: Workspace) -> None:
    count = workspace.facilities.count()
    if count:
        raise HasChildren(
            f"Workspace '{workspace.name}' still has {count} facility(ies). Delete them first."
        )

    # workspace-scoped roles (general admin, workplace supervisor)
    if workspace.user_roles.exists():
        raise HasAssignedUsers(
            f"Workspace '{workspace.name}' still has users assigned. Remove their roles first."
        )
