# console_core/facilities/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from console_core.facilities.models import Facility


class FacilitySerializer(serializers.ModelSerializer):
    workspace_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Facility
        fields = ["id", "workspace_id", "name", "created_at", "updated_at"]
        read_only_fields = fields


class FacilityCreateSerializer(serializers.Serializer):
    workspace_id = serializers.UUIDField()
    name = serializers.CharField(max_length=255)


class FacilityUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
