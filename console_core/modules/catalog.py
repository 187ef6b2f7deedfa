# console_core/modules/catalog.py
"""
Built-in module catalog and the default role capability matrix.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

from console_core.iam.models import AppRole

# key, name, description, icon, depends_on
MODULE_CATALOG: List[Tuple[str, str, str, str, List[str]]] = [
    ("core", "Core System", "Authentication, profile and session management", "Lock", []),
    ("user_management", "User Management", "Create, edit and manage users and roles", "Users", ["core"]),
    (
        "organization",
        "Organization Structure",
        "Manage workspaces, facilities, departments and categories",
        "Building2",
        ["core"],
    ),
    (
        "staff_management",
        "Staff Management",
        "Department head staff management and specialty assignment",
        "UserCog",
        ["core", "organization"],
    ),
    (
        "vacation_planning",
        "Vacation Planning",
        "Create, approve and manage vacation plans with conflict detection",
        "Calendar",
        ["core", "organization", "staff_management"],
    ),
    (
        "task_management",
        "Task Management",
        "Create, assign and track tasks across the organization",
        "CheckSquare",
        ["core", "organization"],
    ),
    ("messaging", "Messaging", "Internal messaging and communication", "MessageSquare", ["core"]),
    ("notifications", "Notifications", "System notifications and alerts", "Bell", ["core"]),
    ("scheduling", "Scheduling", "Staff scheduling and shift management", "Calendar", ["core", "organization"]),
    (
        "training",
        "Training & Events",
        "Manage training sessions and events for the organization",
        "GraduationCap",
        ["core", "organization"],
    ),
]

EXPECTED_MODULE_KEYS = [entry[0] for entry in MODULE_CATALOG]

# flags: (view, edit, delete, admin)
Flags = Tuple[bool, bool, bool, bool]

V = (True, False, False, False)
VE = (True, True, False, False)
VED = (True, True, True, False)
ALL = (True, True, True, True)

DEFAULT_ROLE_MATRIX: Dict[str, Dict[str, Flags]] = {
    AppRole.SUPER_ADMIN: {key: ALL for key in EXPECTED_MODULE_KEYS},
    AppRole.GENERAL_ADMIN: {
        "core": VE,
        "user_management": VED,
        "organization": VED,
        "vacation_planning": VE,
        "task_management": VE,
        "messaging": VE,
        "notifications": VE,
        "training": VED,
    },
    AppRole.WORKPLACE_SUPERVISOR: {
        "core": V,
        "task_management": VE,
        "vacation_planning": VE,
        "messaging": V,
        "notifications": V,
        "training": VED,
    },
    AppRole.FACILITY_SUPERVISOR: {
        "core": V,
        "task_management": VE,
        "vacation_planning": VE,
        "messaging": V,
        "notifications": V,
        "training": VED,
    },
    AppRole.DEPARTMENT_HEAD: {
        "core": V,
        "staff_management": VE,
        "vacation_planning": VE,
        "task_management": VE,
        "messaging": V,
        "notifications": V,
        "scheduling": ALL,
        "training": V,
    },
    AppRole.STAFF: {
        "core": V,
        "task_management": V,
        "vacation_planning": V,
        "messaging": VE,
        "notifications": V,
        "scheduling": V,
        "training": V,
    },
}

# Organization owners see what general admins see, plus administration of their structure and users.
DEFAULT_ROLE_MATRIX[AppRole.ORGANIZATION_ADMIN] = {
    **DEFAULT_ROLE_MATRIX[AppRole.GENERAL_ADMIN],
    "user_management": ALL,
    "organization": ALL,
}
