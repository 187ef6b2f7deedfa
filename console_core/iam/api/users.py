# console_core/iam/api/users.py
from __future__ import annotations

from dataclasses import asdict

from django.db.models import Q
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from console_core.common.api.pagination import paginate
from console_core.common.api.params import optional_uuid, parse_bool, parse_uuid
from console_core.iam.api.schema_serializers import (
    BulkProvisionRequestSerializer,
    BulkProvisionResponseSerializer,
    ModuleAccessSerializer,
    ProfileDetailSerializer,
    ProfileSerializer,
    ProvisionRequestSerializer,
    ProvisionResponseSerializer,
    RoleAddRequestSerializer,
    UserRoleSerializer,
)
from console_core.iam.models import Profile, UserRole
from console_core.iam.roles import SCOPE_FIELDS, build_scope
from console_core.iam.selectors import VisibleScope, profiles_qs, user_roles_qs, visible_scope
from console_core.iam.services.provisioning import ProvisioningRequest, ProvisioningService, UserAccountService
from console_core.iam.services.role_assignment import RoleAssignmentService
from console_core.modules.permissions import ModulePermission
from console_core.modules.selectors import user_modules


def _scope_filter(scope: VisibleScope, viewer_id: int) -> Q:
    """
    Profiles holding a role inside one of the viewer's units, plus the viewer.
    """
    return (
        Q(user_id=viewer_id)
        | Q(user__console_roles__facility_id__in=scope.facility_ids)
        | Q(user__console_roles__facility__isnull=True, user__console_roles__workspace_id__in=scope.workspace_ids)
        | Q(user__owned_organizations__id__in=scope.organization_ids)
    )


def _visible_profile(request, pk) -> Profile:
    qs = Profile.objects.select_related("user").filter(id=parse_uuid(pk, "id"))
    scope = visible_scope(request.user)
    if not scope.unrestricted:
        qs = qs.filter(_scope_filter(scope, request.user.id)).distinct()
    profile = qs.first()
    if not profile:
        raise NotFound("User not found.")
    return profile


class UserViewSet(viewsets.ViewSet):
    """
    Console users. Identified by their profile id.
    """
    permission_classes = [ModulePermission]
    module_key = "user_management"
    capability_per_action = {
        "bulk": "edit",
        "roles": "edit",
        "remove_role": "edit",
        "deactivate": "edit",
        "reactivate": "edit",
    }

    @extend_schema(
        tags=["Users"],
        responses={200: ProfileSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="search", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="is_active", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="organization_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="workspace_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="facility_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        params = request.query_params
        qs = profiles_qs(
            search=(params.get("search") or "").strip() or None,
            is_active=parse_bool(params, "is_active"),
            organization_id=optional_uuid(params, "organization_id"),
            workspace_id=optional_uuid(params, "workspace_id"),
            facility_id=optional_uuid(params, "facility_id"),
        )
        scope = visible_scope(request.user)
        if not scope.unrestricted:
            qs = qs.filter(_scope_filter(scope, request.user.id)).distinct()
        return paginate(request, qs, ProfileSerializer)

    @extend_schema(tags=["Users"], responses={200: ProfileDetailSerializer})
    def retrieve(self, request, pk=None):
        return Response(ProfileDetailSerializer(_visible_profile(request, pk)).data)

    @extend_schema(tags=["Users"], request=ProvisionRequestSerializer, responses={201: ProvisionResponseSerializer})
    def create(self, request):
        s = ProvisionRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = ProvisioningService.provision_user(
            request=ProvisioningRequest(**s.validated_data),
            created_by=request.user,
        )
        return Response(asdict(result), status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Users"], request=BulkProvisionRequestSerializer, responses={200: BulkProvisionResponseSerializer})
    @action(detail=False, methods=["post"], url_path="bulk")
    def bulk(self, request):
        """
        Rows are the parsed spreadsheet; errors report spreadsheet row numbers (header is row 1).
        """
        s = BulkProvisionRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = ProvisioningService.bulk_provision(
            rows=s.validated_data["rows"],
            created_by=request.user,
            workspace_id=s.validated_data.get("workspace_id"),
        )
        return Response(result.as_dict(), status=status.HTTP_200_OK)

    @extend_schema(tags=["Users"], request=RoleAddRequestSerializer, responses={200: UserRoleSerializer(many=True)})
    @action(detail=True, methods=["get", "post"], url_path="roles")
    def roles(self, request, pk=None):
        profile = _visible_profile(request, pk)

        if request.method == "POST":
            s = RoleAddRequestSerializer(data=request.data)
            s.is_valid(raise_exception=True)
            d = s.validated_data
            scope = build_scope(d["role"], **{name: d.get(name) for name in SCOPE_FIELDS})
            RoleAssignmentService.add_role(user_id=profile.user_id, scope=scope, granted_by=request.user)

        return Response(UserRoleSerializer(user_roles_qs(user_id=profile.user_id), many=True).data)

    @extend_schema(tags=["Users"], responses={204: None})
    @action(detail=True, methods=["delete"], url_path=r"roles/(?P<role_id>[^/.]+)")
    def remove_role(self, request, pk=None, role_id=None):
        profile = _visible_profile(request, pk)
        row = UserRole.objects.filter(id=parse_uuid(role_id, "role_id"), user_id=profile.user_id).first()
        if not row:
            raise NotFound("Role assignment not found.")
        RoleAssignmentService.remove_role(role_id=row.id, removed_by=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Users"], request=None, responses={200: ProfileSerializer})
    @action(detail=True, methods=["post"], url_path="deactivate")
    def deactivate(self, request, pk=None):
        profile = _visible_profile(request, pk)
        profile = UserAccountService.set_active(user_id=profile.user_id, is_active=False, actor=request.user)
        return Response(ProfileSerializer(profile).data)

    @extend_schema(tags=["Users"], request=None, responses={200: ProfileSerializer})
    @action(detail=True, methods=["post"], url_path="reactivate")
    def reactivate(self, request, pk=None):
        profile = _visible_profile(request, pk)
        profile = UserAccountService.set_active(user_id=profile.user_id, is_active=True, actor=request.user)
        return Response(ProfileSerializer(profile).data)

    @extend_schema(
        tags=["Users"],
        responses={200: ModuleAccessSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="include_hidden", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    @action(detail=True, methods=["get"], url_path="modules")
    def modules(self, request, pk=None):
        profile = _visible_profile(request, pk)
        include_hidden = bool(parse_bool(request.query_params, "include_hidden", default=False))
        return Response(user_modules(user_id=profile.user_id, include_hidden=include_hidden))
