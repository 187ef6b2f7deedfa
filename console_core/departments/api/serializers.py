# console_core/departments/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from console_core.departments.models import Category, Department


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "description", "is_system_default", "is_active", "created_at", "updated_at"]
        read_only_fields = fields


class CategoryCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class CategoryUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


class DepartmentSerializer(serializers.ModelSerializer):
    facility_id = serializers.UUIDField(read_only=True, allow_null=True)
    parent_department_id = serializers.UUIDField(read_only=True, allow_null=True)
    is_main = serializers.BooleanField(read_only=True)

    class Meta:
        model = Department
        fields = [
            "id",
            "facility_id",
            "is_template",
            "parent_department_id",
            "is_main",
            "name",
            "category",
            "min_staffing",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DepartmentTreeSerializer(serializers.Serializer):
    department = DepartmentSerializer()
    subdepartments = DepartmentSerializer(many=True)


class DepartmentCreateSerializer(serializers.Serializer):
    facility_id = serializers.UUIDField(required=False, allow_null=True)
    is_template = serializers.BooleanField(required=False, default=False)
    parent_department_id = serializers.UUIDField(required=False, allow_null=True)
    name = serializers.CharField(max_length=255)
    category = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    min_staffing = serializers.IntegerField(required=False, default=1)

    def validate(self, attrs):
        if attrs.get("is_template"):
            if attrs.get("facility_id"):
                raise serializers.ValidationError({"facility_id": "Templates have no facility."})
        elif not attrs.get("facility_id"):
            raise serializers.ValidationError({"facility_id": "This field is required."})
        return attrs


class DepartmentFromTemplateSerializer(serializers.Serializer):
    facility_id = serializers.UUIDField()
    template_id = serializers.UUIDField()


class DepartmentUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    category = serializers.CharField(max_length=128, required=False, allow_blank=True)
    min_staffing = serializers.IntegerField(required=False)
