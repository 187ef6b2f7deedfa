# console_core/modules/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from console_core.common.api.params import optional_uuid, parse_bool
from console_core.modules.api.serializers import (
    EffectiveAccessSerializer,
    IntegrityCheckSerializer,
    ModuleSerializer,
    RoleAccessSerializer,
    RoleAccessUpdateSerializer,
    UserOverrideClearSerializer,
    UserOverrideSerializer,
    UserOverrideUpdateSerializer,
    WorkspaceAccessSerializer,
    WorkspaceAccessUpdateSerializer,
)
from console_core.modules.integrity import validate_module_system
from console_core.modules.models import UserModuleAccess, WorkspaceModuleAccess
from console_core.modules.permissions import ModulePermission
from console_core.modules.selectors import effective_access, get_module, modules_qs, role_access_qs
from console_core.modules.services import ModuleService


def _is_module_admin(user) -> bool:
    if getattr(user, "is_superuser", False):
        return True
    return effective_access(user_id=user.id, module_key="core").admin


class ModuleViewSet(viewsets.ViewSet):
    """
    Module catalog administration. Reading the catalog needs core view, changing it needs core admin.
    """
    permission_classes = [ModulePermission]
    module_key = "core"
    lookup_field = "key"
    lookup_value_regex = r"[a-z0-9_-]+"
    capability_per_action = {
        "activate": "admin",
        "deactivate": "admin",
        "role_access": "admin",
        "workspace_access": "admin",
        "user_access": "admin",
    }

    @extend_schema(
        tags=["Modules"],
        responses={200: ModuleSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="active_only", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        qs = modules_qs(active_only=bool(parse_bool(request.query_params, "active_only", default=False)))
        return Response(ModuleSerializer(qs, many=True).data)

    @extend_schema(tags=["Modules"], responses={200: ModuleSerializer})
    def retrieve(self, request, key=None):
        return Response(ModuleSerializer(get_module(key=key)).data)

    @extend_schema(tags=["Modules"], request=None, responses={200: ModuleSerializer})
    @action(detail=True, methods=["post"], url_path="activate")
    def activate(self, request, key=None):
        module = ModuleService.set_module_active(key=key, is_active=True, actor_user_id=request.user.id)
        return Response(ModuleSerializer(module).data)

    @extend_schema(tags=["Modules"], request=None, responses={200: ModuleSerializer})
    @action(detail=True, methods=["post"], url_path="deactivate")
    def deactivate(self, request, key=None):
        module = ModuleService.set_module_active(key=key, is_active=False, actor_user_id=request.user.id)
        return Response(ModuleSerializer(module).data)

    @extend_schema(tags=["Modules"], request=RoleAccessUpdateSerializer, responses={200: RoleAccessSerializer(many=True)})
    @action(detail=True, methods=["get", "put"], url_path="role-access")
    def role_access(self, request, key=None):
        module = get_module(key=key)

        if request.method == "PUT":
            s = RoleAccessUpdateSerializer(data=request.data)
            s.is_valid(raise_exception=True)
            ModuleService.set_role_access(
                role=s.validated_data["role"],
                module_key=module.key,
                capabilities=s.to_capabilities(),
                actor_user_id=request.user.id,
            )

        return Response(RoleAccessSerializer(role_access_qs(module_key=module.key), many=True).data)

    @extend_schema(
        tags=["Modules"],
        request=WorkspaceAccessUpdateSerializer,
        responses={200: WorkspaceAccessSerializer(many=True)},
    )
    @action(detail=True, methods=["get", "put"], url_path="workspace-access")
    def workspace_access(self, request, key=None):
        module = get_module(key=key)

        if request.method == "PUT":
            s = WorkspaceAccessUpdateSerializer(data=request.data)
            s.is_valid(raise_exception=True)
            ModuleService.set_workspace_access(
                workspace_id=s.validated_data["workspace_id"],
                module_key=module.key,
                is_enabled=s.validated_data["is_enabled"],
                actor_user_id=request.user.id,
            )

        qs = WorkspaceModuleAccess.objects.filter(module=module).select_related("module")
        return Response(WorkspaceAccessSerializer(qs, many=True).data)

    @extend_schema(tags=["Modules"], request=UserOverrideUpdateSerializer, responses={200: UserOverrideSerializer(many=True)})
    @action(detail=True, methods=["get", "put", "delete"], url_path="user-access")
    def user_access(self, request, key=None):
        """
        PUT sets a user's override, DELETE (body: user_id) removes it.
        """
        module = get_module(key=key)

        if request.method == "PUT":
            s = UserOverrideUpdateSerializer(data=request.data)
            s.is_valid(raise_exception=True)
            ModuleService.set_user_override(
                user_id=s.validated_data["user_id"],
                module_key=module.key,
                capabilities=s.to_capabilities(),
                is_override=s.validated_data["is_override"],
                actor_user_id=request.user.id,
            )
        elif request.method == "DELETE":
            s = UserOverrideClearSerializer(data=request.data)
            s.is_valid(raise_exception=True)
            ModuleService.clear_user_override(
                user_id=s.validated_data["user_id"],
                module_key=module.key,
                actor_user_id=request.user.id,
            )
            return Response(status=status.HTTP_204_NO_CONTENT)

        qs = UserModuleAccess.objects.filter(module=module).select_related("module")
        return Response(UserOverrideSerializer(qs, many=True).data)

    @extend_schema(
        tags=["Modules"],
        responses={200: EffectiveAccessSerializer},
        parameters=[
            OpenApiParameter(name="user_id", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="workspace_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    @action(detail=True, methods=["get"], url_path="effective")
    def effective(self, request, key=None):
        module = get_module(key=key)

        user_id = request.user.id
        raw = request.query_params.get("user_id")
        if raw:
            try:
                user_id = int(raw)
            except ValueError:
                raise ValidationError({"user_id": "Invalid user_id (int expected)"})
        if user_id != request.user.id and not _is_module_admin(request.user):
            raise PermissionDenied("Only module administrators can inspect other users.")

        workspace_id = optional_uuid(request.query_params, "workspace_id")
        caps = effective_access(user_id=user_id, module_key=module.key, workspace_id=workspace_id)
        return Response(
            {
                "user_id": user_id,
                "module_key": module.key,
                "workspace_id": workspace_id,
                **caps.as_dict(),
            }
        )

    @extend_schema(tags=["Modules"], responses={200: IntegrityCheckSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="validate")
    def validate(self, request):
        if not _is_module_admin(request.user):
            raise PermissionDenied("Only module administrators can run the integrity check.")
        return Response(validate_module_system())
