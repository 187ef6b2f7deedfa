# console_core/workspaces/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response

from console_core.common.api.pagination import paginate
from console_core.common.api.params import optional_uuid, parse_uuid
from console_core.departments.api.serializers import CategorySerializer, DepartmentSerializer
from console_core.iam.selectors import visible_scope
from console_core.modules.permissions import ModulePermission
from console_core.workspaces.api.serializers import (
    CategoryAssignSerializer,
    TemplateAssignSerializer,
    WorkspaceCreateSerializer,
    WorkspaceSerializer,
    WorkspaceUpdateSerializer,
)
from console_core.workspaces.models import Workspace
from console_core.workspaces.selectors import (
    categories_for_workspace,
    template_departments_for_workspace,
    workspaces_qs,
)
from console_core.workspaces.services import WorkspaceService, WorkspaceUpdate


def _visible_workspace(request, pk) -> Workspace:
    ws = Workspace.objects.filter(id=parse_uuid(pk, "id")).first()
    scope = visible_scope(request.user)
    if not ws or not (scope.unrestricted or ws.id in scope.workspace_ids):
        raise NotFound("Workspace not found.")
    return ws


class WorkspaceViewSet(viewsets.ViewSet):
    permission_classes = [ModulePermission]
    module_key = "organization"
    capability_per_action = {
        "template_departments": "edit",
        "remove_template_department": "edit",
        "categories": "edit",
        "remove_category": "edit",
    }

    @extend_schema(
        tags=["Workspaces"],
        responses={200: WorkspaceSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="organization_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        qs = workspaces_qs(organization_id=optional_uuid(request.query_params, "organization_id"))
        scope = visible_scope(request.user)
        if not scope.unrestricted:
            qs = qs.filter(id__in=scope.workspace_ids)
        return paginate(request, qs, WorkspaceSerializer)

    @extend_schema(tags=["Workspaces"], responses={200: WorkspaceSerializer})
    def retrieve(self, request, pk=None):
        return Response(WorkspaceSerializer(_visible_workspace(request, pk)).data)

    @extend_schema(tags=["Workspaces"], request=WorkspaceCreateSerializer, responses={201: WorkspaceSerializer})
    def create(self, request):
        s = WorkspaceCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        scope = visible_scope(request.user)
        if not (scope.unrestricted or d["organization_id"] in scope.organization_ids):
            raise PermissionDenied("You cannot create workspaces in this organization.")

        ws = WorkspaceService.create(
            organization_id=d["organization_id"],
            name=d["name"],
            actor_user_id=request.user.id,
        )
        return Response(WorkspaceSerializer(ws).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Workspaces"], request=WorkspaceUpdateSerializer, responses={200: WorkspaceSerializer})
    def partial_update(self, request, pk=None):
        ws = _visible_workspace(request, pk)

        s = WorkspaceUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        ws = WorkspaceService.update(
            workspace_id=ws.id,
            patch=WorkspaceUpdate(
                name=d.get("name"),
                max_vacation_splits=d.get("max_vacation_splits"),
                max_concurrent_vacations=d.get("max_concurrent_vacations"),
            ),
            actor_user_id=request.user.id,
        )
        return Response(WorkspaceSerializer(ws).data)

    @extend_schema(tags=["Workspaces"], responses={204: None})
    def destroy(self, request, pk=None):
        ws = _visible_workspace(request, pk)
        WorkspaceService.delete(workspace_id=ws.id, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Workspaces"], request=TemplateAssignSerializer, responses={200: DepartmentSerializer(many=True)})
    @action(detail=True, methods=["get", "post"], url_path="template-departments")
    def template_departments(self, request, pk=None):
        ws = _visible_workspace(request, pk)

        if request.method == "POST":
            s = TemplateAssignSerializer(data=request.data)
            s.is_valid(raise_exception=True)
            WorkspaceService.assign_template_department(
                workspace_id=ws.id,
                template_id=s.validated_data["template_id"],
                actor_user_id=request.user.id,
            )

        qs = template_departments_for_workspace(workspace_id=ws.id)
        return Response(DepartmentSerializer(qs, many=True).data)

    @extend_schema(tags=["Workspaces"], responses={204: None})
    @action(detail=True, methods=["delete"], url_path=r"template-departments/(?P<template_id>[^/.]+)")
    def remove_template_department(self, request, pk=None, template_id=None):
        ws = _visible_workspace(request, pk)
        WorkspaceService.unassign_template_department(
            workspace_id=ws.id,
            template_id=parse_uuid(template_id, "template_id"),
            actor_user_id=request.user.id,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Workspaces"], request=CategoryAssignSerializer, responses={200: CategorySerializer(many=True)})
    @action(detail=True, methods=["get", "post"], url_path="categories")
    def categories(self, request, pk=None):
        ws = _visible_workspace(request, pk)

        if request.method == "POST":
            s = CategoryAssignSerializer(data=request.data)
            s.is_valid(raise_exception=True)
            WorkspaceService.assign_category(
                workspace_id=ws.id,
                category_id=s.validated_data["category_id"],
                actor_user_id=request.user.id,
            )

        return Response(CategorySerializer(categories_for_workspace(workspace_id=ws.id), many=True).data)

    @extend_schema(tags=["Workspaces"], responses={204: None})
    @action(detail=True, methods=["delete"], url_path=r"categories/(?P<category_id>[^/.]+)")
    def remove_category(self, request, pk=None, category_id=None):
        ws = _visible_workspace(request, pk)
        WorkspaceService.unassign_category(
            workspace_id=ws.id,
            category_id=parse_uuid(category_id, "category_id"),
            actor_user_id=request.user.id,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
