# console_core/workspaces/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from console_core.workspaces.models import Workspace


class WorkspaceSerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Workspace
        fields = [
            "id",
            "organization_id",
            "name",
            "max_vacation_splits",
            "max_concurrent_vacations",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class WorkspaceCreateSerializer(serializers.Serializer):
    organization_id = serializers.UUIDField()
    name = serializers.CharField(max_length=255)


class WorkspaceUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    max_vacation_splits = serializers.IntegerField(required=False)
    max_concurrent_vacations = serializers.IntegerField(required=False)


class TemplateAssignSerializer(serializers.Serializer):
    template_id = serializers.UUIDField()


class CategoryAssignSerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
