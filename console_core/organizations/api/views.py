# console_core/organizations/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response

from console_core.common.api.pagination import paginate
from console_core.common.api.params import parse_uuid
from console_core.iam.selectors import visible_scope
from console_core.modules.permissions import ModulePermission
from console_core.organizations.api.serializers import (
    OrganizationCreateSerializer,
    OrganizationOwnerSerializer,
    OrganizationSerializer,
    OrganizationUpdateSerializer,
    OrganizationUsageSerializer,
)
from console_core.organizations.models import Organization
from console_core.organizations.selectors import get_organization_or_none, organization_qs, organization_usage
from console_core.organizations.services import UNCHANGED, OrganizationService, OrganizationUpdate


def _require_unrestricted(request, message: str) -> None:
    if not visible_scope(request.user).unrestricted:
        raise PermissionDenied(message)


def _visible_organization(request, pk) -> Organization:
    org = get_organization_or_none(organization_id=parse_uuid(pk, "id"))
    scope = visible_scope(request.user)
    if not org or not (scope.unrestricted or org.id in scope.organization_ids):
        raise NotFound("Organization not found.")
    return org


class OrganizationViewSet(viewsets.ViewSet):
    permission_classes = [ModulePermission]
    module_key = "organization"
    capability_per_action = {"usage": "view", "owner": "admin"}

    @extend_schema(tags=["Organizations"], responses={200: OrganizationSerializer(many=True)})
    def list(self, request):
        qs = organization_qs().order_by("name")
        scope = visible_scope(request.user)
        if not scope.unrestricted:
            qs = qs.filter(id__in=scope.organization_ids)
        return paginate(request, qs, OrganizationSerializer)

    @extend_schema(tags=["Organizations"], responses={200: OrganizationSerializer})
    def retrieve(self, request, pk=None):
        return Response(OrganizationSerializer(_visible_organization(request, pk)).data)

    @extend_schema(tags=["Organizations"], request=OrganizationCreateSerializer, responses={201: OrganizationSerializer})
    def create(self, request):
        _require_unrestricted(request, "Only super admins can create organizations.")

        s = OrganizationCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        org = OrganizationService.create(
            name=d["name"],
            description=d.get("description") or "",
            owner_id=d.get("owner_id"),
            max_workspaces=d.get("max_workspaces"),
            max_facilities=d.get("max_facilities"),
            max_users=d.get("max_users"),
            actor_user_id=request.user.id,
        )
        return Response(OrganizationSerializer(org).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Organizations"], request=OrganizationUpdateSerializer, responses={200: OrganizationSerializer})
    def partial_update(self, request, pk=None):
        org = _visible_organization(request, pk)

        s = OrganizationUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        limits = {k: d[k] for k in ("max_workspaces", "max_facilities", "max_users") if k in d}
        if limits:
            _require_unrestricted(request, "Only super admins can change organization limits.")

        org = OrganizationService.update(
            organization_id=org.id,
            patch=OrganizationUpdate(
                name=d.get("name"),
                description=d.get("description"),
                max_workspaces=limits.get("max_workspaces", UNCHANGED),
                max_facilities=limits.get("max_facilities", UNCHANGED),
                max_users=limits.get("max_users", UNCHANGED),
            ),
            actor_user_id=request.user.id,
        )
        return Response(OrganizationSerializer(org).data)

    @extend_schema(tags=["Organizations"], responses={204: None})
    def destroy(self, request, pk=None):
        _require_unrestricted(request, "Only super admins can delete organizations.")
        org = _visible_organization(request, pk)
        OrganizationService.delete(organization_id=org.id, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Organizations"], responses={200: OrganizationUsageSerializer})
    @action(detail=True, methods=["get"], url_path="usage")
    def usage(self, request, pk=None):
        org = _visible_organization(request, pk)
        return Response(organization_usage(organization_id=org.id).as_dict())

    @extend_schema(tags=["Organizations"], request=OrganizationOwnerSerializer, responses={200: OrganizationSerializer})
    @action(detail=True, methods=["post"], url_path="owner")
    def owner(self, request, pk=None):
        _require_unrestricted(request, "Only super admins can change organization owners.")
        org = _visible_organization(request, pk)

        s = OrganizationOwnerSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        org = OrganizationService.set_owner(
            organization_id=org.id,
            user_id=s.validated_data["user_id"],
            actor_user_id=request.user.id,
        )
        return Response(OrganizationSerializer(org).data)
