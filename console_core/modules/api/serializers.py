# console_core/modules/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from console_core.iam.models import AppRole
from console_core.modules.models import ModuleDefinition, RoleModuleAccess, UserModuleAccess, WorkspaceModuleAccess
from console_core.modules.resolver import Capabilities


class ModuleSerializer(serializers.ModelSerializer):
    is_core = serializers.BooleanField(read_only=True)

    class Meta:
        model = ModuleDefinition
        fields = ["id", "key", "name", "description", "icon", "is_active", "is_core", "depends_on", "updated_at"]
        read_only_fields = fields


class CapabilityFlagsSerializer(serializers.Serializer):
    can_view = serializers.BooleanField(default=False)
    can_edit = serializers.BooleanField(default=False)
    can_delete = serializers.BooleanField(default=False)
    can_admin = serializers.BooleanField(default=False)

    def to_capabilities(self) -> Capabilities:
        d = self.validated_data
        return Capabilities(view=d["can_view"], edit=d["can_edit"], delete=d["can_delete"], admin=d["can_admin"])


class RoleAccessSerializer(serializers.ModelSerializer):
    module_key = serializers.CharField(source="module.key", read_only=True)

    class Meta:
        model = RoleModuleAccess
        fields = ["id", "role", "module_key", "can_view", "can_edit", "can_delete", "can_admin"]
        read_only_fields = fields


class RoleAccessUpdateSerializer(CapabilityFlagsSerializer):
    role = serializers.ChoiceField(choices=AppRole.choices)


class WorkspaceAccessSerializer(serializers.ModelSerializer):
    module_key = serializers.CharField(source="module.key", read_only=True)

    class Meta:
        model = WorkspaceModuleAccess
        fields = ["id", "workspace", "module_key", "is_enabled"]
        read_only_fields = fields


class WorkspaceAccessUpdateSerializer(serializers.Serializer):
    workspace_id = serializers.UUIDField()
    is_enabled = serializers.BooleanField()


class UserOverrideSerializer(serializers.ModelSerializer):
    module_key = serializers.CharField(source="module.key", read_only=True)
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = UserModuleAccess
        fields = ["id", "user_id", "module_key", "is_override", "can_view", "can_edit", "can_delete", "can_admin"]
        read_only_fields = fields


class UserOverrideUpdateSerializer(CapabilityFlagsSerializer):
    user_id = serializers.IntegerField()
    is_override = serializers.BooleanField(default=True)


class UserOverrideClearSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()


class EffectiveAccessSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    module_key = serializers.CharField()
    workspace_id = serializers.UUIDField(allow_null=True)
    can_view = serializers.BooleanField()
    can_edit = serializers.BooleanField()
    can_delete = serializers.BooleanField()
    can_admin = serializers.BooleanField()


class IntegrityCheckSerializer(serializers.Serializer):
    test = serializers.CharField()
    status = serializers.ChoiceField(choices=["pass", "fail", "warning"])
    message = serializers.CharField()
    details = serializers.JSONField(allow_null=True)
