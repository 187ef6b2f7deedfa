# console_core/facilities/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response

from console_core.common.api.pagination import paginate
from console_core.common.api.params import optional_uuid, parse_uuid
from console_core.departments.api.serializers import DepartmentSerializer, DepartmentTreeSerializer
from console_core.departments.selectors import available_departments_for_facility, department_tree
from console_core.facilities.api.serializers import (
    FacilityCreateSerializer,
    FacilitySerializer,
    FacilityUpdateSerializer,
)
from console_core.facilities.models import Facility
from console_core.facilities.selectors import facilities_qs
from console_core.facilities.services import FacilityService, FacilityUpdate
from console_core.iam.selectors import visible_scope
from console_core.modules.permissions import ModulePermission


def visible_facility(request, pk) -> Facility:
    f = Facility.objects.select_related("workspace").filter(id=parse_uuid(pk, "id")).first()
    scope = visible_scope(request.user)
    if not f or not (scope.unrestricted or f.id in scope.facility_ids):
        raise NotFound("Facility not found.")
    return f


class FacilityViewSet(viewsets.ViewSet):
    permission_classes = [ModulePermission]
    module_key = "organization"

    @extend_schema(
        tags=["Facilities"],
        responses={200: FacilitySerializer(many=True)},
        parameters=[
            OpenApiParameter(name="workspace_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="organization_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        qs = facilities_qs(
            workspace_id=optional_uuid(request.query_params, "workspace_id"),
            organization_id=optional_uuid(request.query_params, "organization_id"),
        )
        scope = visible_scope(request.user)
        if not scope.unrestricted:
            qs = qs.filter(id__in=scope.facility_ids)
        return paginate(request, qs, FacilitySerializer)

    @extend_schema(tags=["Facilities"], responses={200: FacilitySerializer})
    def retrieve(self, request, pk=None):
        return Response(FacilitySerializer(visible_facility(request, pk)).data)

    @extend_schema(tags=["Facilities"], request=FacilityCreateSerializer, responses={201: FacilitySerializer})
    def create(self, request):
        s = FacilityCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        scope = visible_scope(request.user)
        if not (scope.unrestricted or d["workspace_id"] in scope.workspace_ids):
            raise PermissionDenied("You cannot create facilities in this workspace.")

        f = FacilityService.create(workspace_id=d["workspace_id"], name=d["name"], actor_user_id=request.user.id)
        return Response(FacilitySerializer(f).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Facilities"], request=FacilityUpdateSerializer, responses={200: FacilitySerializer})
    def partial_update(self, request, pk=None):
        f = visible_facility(request, pk)

        s = FacilityUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        f = FacilityService.update(
            facility_id=f.id,
            patch=FacilityUpdate(name=s.validated_data.get("name")),
            actor_user_id=request.user.id,
        )
        return Response(FacilitySerializer(f).data)

    @extend_schema(tags=["Facilities"], responses={204: None})
    def destroy(self, request, pk=None):
        f = visible_facility(request, pk)
        FacilityService.delete(facility_id=f.id, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Facilities"], responses={200: DepartmentTreeSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="departments")
    def departments(self, request, pk=None):
        f = visible_facility(request, pk)
        return Response(DepartmentTreeSerializer(department_tree(facility_id=f.id), many=True).data)

    @extend_schema(tags=["Facilities"], responses={200: DepartmentSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="available-templates")
    def available_templates(self, request, pk=None):
        f = visible_facility(request, pk)
        return Response(DepartmentSerializer(available_departments_for_facility(facility_id=f.id), many=True).data)
