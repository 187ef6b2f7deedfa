# console_core/organizations/guards.py
from __future__ import annotations

from console_core.common.api.exceptions import HasChildren
from console_core.organizations.models import Organization


def assert_organization_deletable(org: Organization) -> None:
    """
    The single place that decides whether an organization can be deleted.
    """
    count = org.workspaces.count()
    if count:
        raise HasChildren(
            f"Organization '{org.name}' still has {count} workspace(s). Delete or move them first."
        )
