# console_core/departments/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response

from console_core.common.api.pagination import paginate
from console_core.common.api.params import optional_uuid, parse_bool, parse_uuid
from console_core.departments.api.serializers import (
    CategoryCreateSerializer,
    CategorySerializer,
    CategoryUpdateSerializer,
    DepartmentCreateSerializer,
    DepartmentFromTemplateSerializer,
    DepartmentSerializer,
    DepartmentUpdateSerializer,
)
from console_core.departments.models import Category, Department
from console_core.departments.selectors import categories_qs, departments_qs
from console_core.departments.services import CategoryService, CategoryUpdate, DepartmentService, DepartmentUpdate
from console_core.facilities.api.views import visible_facility
from console_core.iam.selectors import visible_scope
from console_core.modules.permissions import ModulePermission


def _visible_department(request, pk) -> Department:
    dept = Department.objects.filter(id=parse_uuid(pk, "id")).first()
    if not dept:
        raise NotFound("Department not found.")
    scope = visible_scope(request.user)
    if scope.unrestricted:
        return dept
    # templates are shared; facility departments follow facility visibility
    if dept.is_template or dept.facility_id in scope.facility_ids:
        return dept
    raise NotFound("Department not found.")


def _require_unrestricted(request, message: str) -> None:
    if not visible_scope(request.user).unrestricted:
        raise PermissionDenied(message)


class DepartmentViewSet(viewsets.ViewSet):
    permission_classes = [ModulePermission]
    module_key = "organization"
    capability_per_action = {"from_template": "edit"}

    @extend_schema(
        tags=["Departments"],
        responses={200: DepartmentSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="facility_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="parent_department_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="main_only", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="templates", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        params = request.query_params
        templates = bool(parse_bool(params, "templates", default=False))
        qs = departments_qs(
            facility_id=optional_uuid(params, "facility_id"),
            parent_department_id=optional_uuid(params, "parent_department_id"),
            main_only=bool(parse_bool(params, "main_only", default=False)),
            templates=templates,
        )
        scope = visible_scope(request.user)
        if not scope.unrestricted and not templates:
            qs = qs.filter(facility_id__in=scope.facility_ids)
        return paginate(request, qs, DepartmentSerializer)

    @extend_schema(tags=["Departments"], responses={200: DepartmentSerializer})
    def retrieve(self, request, pk=None):
        return Response(DepartmentSerializer(_visible_department(request, pk)).data)

    @extend_schema(tags=["Departments"], request=DepartmentCreateSerializer, responses={201: DepartmentSerializer})
    def create(self, request):
        s = DepartmentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        if d.get("is_template"):
            _require_unrestricted(request, "Only super admins can create template departments.")
            dept = DepartmentService.create_template(
                name=d["name"],
                category=d.get("category") or "",
                parent_template_id=d.get("parent_department_id"),
                min_staffing=d.get("min_staffing"),
                actor_user_id=request.user.id,
            )
        else:
            facility = visible_facility(request, d["facility_id"])
            dept = DepartmentService.create(
                facility_id=facility.id,
                name=d["name"],
                category=d.get("category") or "",
                parent_department_id=d.get("parent_department_id"),
                min_staffing=d.get("min_staffing"),
                actor_user_id=request.user.id,
            )
        return Response(DepartmentSerializer(dept).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Departments"], request=DepartmentFromTemplateSerializer, responses={201: DepartmentSerializer})
    @action(detail=False, methods=["post"], url_path="from-template")
    def from_template(self, request):
        s = DepartmentFromTemplateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        facility = visible_facility(request, s.validated_data["facility_id"])

        dept = DepartmentService.create_from_template(
            facility_id=facility.id,
            template_id=s.validated_data["template_id"],
            actor_user_id=request.user.id,
        )
        return Response(DepartmentSerializer(dept).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Departments"], request=DepartmentUpdateSerializer, responses={200: DepartmentSerializer})
    def partial_update(self, request, pk=None):
        dept = _visible_department(request, pk)
        if dept.is_template:
            _require_unrestricted(request, "Only super admins can change template departments.")

        s = DepartmentUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        dept = DepartmentService.update(
            department_id=dept.id,
            patch=DepartmentUpdate(
                name=d.get("name"),
                category=d.get("category"),
                min_staffing=d.get("min_staffing"),
            ),
            actor_user_id=request.user.id,
        )
        return Response(DepartmentSerializer(dept).data)

    @extend_schema(tags=["Departments"], responses={204: None})
    def destroy(self, request, pk=None):
        dept = _visible_department(request, pk)
        if dept.is_template:
            _require_unrestricted(request, "Only super admins can delete template departments.")
        DepartmentService.delete(department_id=dept.id, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CategoryViewSet(viewsets.ViewSet):
    """
    Categories are global; reads follow the organization module, writes are super admin only.
    """
    permission_classes = [ModulePermission]
    module_key = "organization"

    @extend_schema(
        tags=["Categories"],
        responses={200: CategorySerializer(many=True)},
        parameters=[
            OpenApiParameter(name="active_only", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        qs = categories_qs(active_only=bool(parse_bool(request.query_params, "active_only", default=False)))
        return paginate(request, qs, CategorySerializer)

    @extend_schema(tags=["Categories"], responses={200: CategorySerializer})
    def retrieve(self, request, pk=None):
        category = Category.objects.filter(id=parse_uuid(pk, "id")).first()
        if not category:
            raise NotFound("Category not found.")
        return Response(CategorySerializer(category).data)

    @extend_schema(tags=["Categories"], request=CategoryCreateSerializer, responses={201: CategorySerializer})
    def create(self, request):
        _require_unrestricted(request, "Only super admins can manage categories.")
        s = CategoryCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        category = CategoryService.create(
            name=s.validated_data["name"],
            description=s.validated_data.get("description") or "",
            actor_user_id=request.user.id,
        )
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Categories"], request=CategoryUpdateSerializer, responses={200: CategorySerializer})
    def partial_update(self, request, pk=None):
        _require_unrestricted(request, "Only super admins can manage categories.")
        category_id = parse_uuid(pk, "id")

        s = CategoryUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        category = CategoryService.update(
            category_id=category_id,
            patch=CategoryUpdate(name=d.get("name"), description=d.get("description")),
            actor_user_id=request.user.id,
        )
        if "is_active" in d:
            category = CategoryService.set_active(
                category_id=category.id,
                is_active=d["is_active"],
                actor_user_id=request.user.id,
            )
        return Response(CategorySerializer(category).data)

    @extend_schema(tags=["Categories"], responses={204: None})
    def destroy(self, request, pk=None):
        _require_unrestricted(request, "Only super admins can manage categories.")
        CategoryService.delete(category_id=parse_uuid(pk, "id"), actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
