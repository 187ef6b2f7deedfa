# console_core/organizations/limits.py
from __future__ import annotations

import logging

from console_core.common.api.exceptions import LimitExceeded
from console_core.organizations import selectors
from console_core.organizations.models import Organization

logger = logging.getLogger(__name__)


def _at_limit(limit: int | None, used: int) -> bool:
    # NULL limit = unlimited
    return limit is not None and used >= limit


def assert_can_add_workspace(org: Organization) -> None:
    used = selectors.count_workspaces(organization_id=org.id)
    if _at_limit(org.max_workspaces, used):
        logger.info("workspace limit reached org=%s used=%s limit=%s", org.id, used, org.max_workspaces)
        raise LimitExceeded(
            f"Organization '{org.name}' has reached its workspace limit ({org.max_workspaces})."
        )


def assert_can_add_facility(org: Organization) -> None:
    used = selectors.count_facilities(organization_id=org.id)
    if _at_limit(org.max_facilities, used):
        logger.info("facility limit reached org=%s used=%s limit=%s", org.id, used, org.max_facilities)
        raise LimitExceeded(
            f"Organization '{org.name}' has reached its facility limit ({org.max_facilities})."
        )


def assert_can_add_user(org: Organization, *, user_id: int | None = None) -> None:
    """
    A user already counted in the organization does not consume another seat.
    """
    if org.max_users is None:
        return
    if user_id is not None and selectors.is_user_in_organization(organization_id=org.id, user_id=user_id):
        return
    used = selectors.count_users(organization_id=org.id)
    if _at_limit(org.max_users, used):
        logger.info("user limit reached org=%s used=%s limit=%s", org.id, used, org.max_users)
        raise LimitExceeded(
            f"Organization '{org.name}' has reached its user limit ({org.max_users})."
        )
