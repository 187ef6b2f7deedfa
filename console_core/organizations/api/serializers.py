# console_core/organizations/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from console_core.organizations.models import Organization


class OrganizationSerializer(serializers.ModelSerializer):
    owner_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Organization
        fields = [
            "id",
            "name",
            "description",
            "owner_id",
            "max_workspaces",
            "max_facilities",
            "max_users",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrganizationCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    owner_id = serializers.IntegerField(required=False, allow_null=True)
    max_workspaces = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    max_facilities = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    max_users = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class OrganizationUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    max_workspaces = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    max_facilities = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    max_users = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class OrganizationOwnerSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(allow_null=True)


class UsageCounterSerializer(serializers.Serializer):
    used = serializers.IntegerField()
    limit = serializers.IntegerField(allow_null=True)


class OrganizationUsageSerializer(serializers.Serializer):
    organization_id = serializers.UUIDField()
    workspaces = UsageCounterSerializer()
    facilities = UsageCounterSerializer()
    users = UsageCounterSerializer()
