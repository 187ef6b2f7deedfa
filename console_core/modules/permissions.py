# console_core/modules/permissions.py

from __future__ import annotations

from rest_framework.permissions import SAFE_METHODS, BasePermission

from console_core.modules.selectors import effective_access

CAPABILITY_PER_ACTION = {
    "list": "view",
    "retrieve": "view",
    "create": "edit",
    "update": "edit",
    "partial_update": "edit",
    "destroy": "delete",
}


class ModulePermission(BasePermission):
    """
    Capability check against the view's module.

    The view declares:
      module_key = "organization"
      capability_per_action = {"activate": "admin", ...}   # optional, merged over the defaults

    Safe methods need "view". Superusers bypass. Unknown unsafe actions need "admin".
    """
    message = "You do not have permission to perform this action."

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = getattr(view, "lookup_field", "pk") in kwargs or "pk" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def required_capability(self, request, view) -> str:
        # reads never need more than view, whatever the action
        if request.method in SAFE_METHODS:
            return "view"
        mapping = {**CAPABILITY_PER_ACTION, **(getattr(view, "capability_per_action", None) or {})}
        return mapping.get(self._infer_action(request, view)) or "admin"

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        if getattr(user, "is_superuser", False):
            return True

        module_key = getattr(view, "module_key", None)
        if not module_key:
            # misconfigured view: deny
            return False

        caps = effective_access(user_id=user.id, module_key=module_key)
        return caps.allows(self.required_capability(request, view))

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)
