# console_core/iam/api/schema_serializers.py
from __future__ import annotations

from rest_framework import serializers

from console_core.iam.models import AppRole, Profile, UserRole


class LoginRequestSerializer(serializers.Serializer):
    # accounts use the email as username; either field is accepted
    username = serializers.CharField(required=False)
    email = serializers.EmailField(required=False)
    password = serializers.CharField()


class LoginResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    force_password_change = serializers.BooleanField()


class DetailResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()


class PasswordChangeRequestSerializer(serializers.Serializer):
    current_password = serializers.CharField()
    new_password = serializers.CharField(min_length=6)


class UserRoleSerializer(serializers.ModelSerializer):
    workspace_name = serializers.CharField(source="workspace.name", read_only=True, default=None)
    facility_name = serializers.CharField(source="facility.name", read_only=True, default=None)
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)
    specialty_name = serializers.CharField(source="specialty.name", read_only=True, default=None)

    class Meta:
        model = UserRole
        fields = [
            "id",
            "role",
            "workspace",
            "workspace_name",
            "facility",
            "facility_name",
            "department",
            "department_name",
            "specialty",
            "specialty_name",
            "created_at",
        ]
        read_only_fields = fields


class ProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Profile
        fields = [
            "id",
            "user_id",
            "full_name",
            "email",
            "is_active",
            "force_password_change",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProfileDetailSerializer(ProfileSerializer):
    roles = UserRoleSerializer(source="user.console_roles", many=True, read_only=True)

    class Meta(ProfileSerializer.Meta):
        fields = ProfileSerializer.Meta.fields + ["roles"]
        read_only_fields = fields


class MeUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField(allow_null=True, required=False)
    email = serializers.EmailField(allow_null=True, required=False)
    is_superuser = serializers.BooleanField()


class ModuleAccessSerializer(serializers.Serializer):
    key = serializers.CharField()
    name = serializers.CharField()
    icon = serializers.CharField(allow_blank=True)
    is_active = serializers.BooleanField()
    can_view = serializers.BooleanField()
    can_edit = serializers.BooleanField()
    can_delete = serializers.BooleanField()
    can_admin = serializers.BooleanField()


class MeResponseSerializer(serializers.Serializer):
    user = MeUserSerializer()
    profile = ProfileSerializer(allow_null=True)
    roles = UserRoleSerializer(many=True)
    highest_role = serializers.CharField(allow_null=True)
    assignable_roles = serializers.ListField(child=serializers.CharField())
    modules = ModuleAccessSerializer(many=True)


class ProvisionRequestSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)
    full_name = serializers.CharField(max_length=100)
    role = serializers.ChoiceField(choices=AppRole.choices, default=AppRole.STAFF)

    organization_id = serializers.UUIDField(required=False, allow_null=True)
    workspace_id = serializers.UUIDField(required=False, allow_null=True)
    facility_id = serializers.UUIDField(required=False, allow_null=True)
    department_id = serializers.UUIDField(required=False, allow_null=True)
    specialty_id = serializers.UUIDField(required=False, allow_null=True)


class ProvisionResponseSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    profile_id = serializers.UUIDField()
    role_id = serializers.UUIDField()
    email = serializers.EmailField()
    force_password_change = serializers.BooleanField()


class BulkRowSerializer(serializers.Serializer):
    email = serializers.CharField(allow_blank=True)
    full_name = serializers.CharField(allow_blank=True)
    facility_name = serializers.CharField(required=False, allow_blank=True, default="")
    department_name = serializers.CharField(required=False, allow_blank=True, default="")
    specialty_name = serializers.CharField(required=False, allow_blank=True, default="")
    role = serializers.CharField(required=False, allow_blank=True, default="")


class BulkProvisionRequestSerializer(serializers.Serializer):
    workspace_id = serializers.UUIDField(required=False, allow_null=True)
    rows = BulkRowSerializer(many=True, allow_empty=False)


class BulkProvisionResponseSerializer(serializers.Serializer):
    created_count = serializers.IntegerField()
    error_count = serializers.IntegerField()
    created = serializers.ListField(child=serializers.DictField())
    errors = serializers.ListField(child=serializers.DictField())


class RoleAddRequestSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=AppRole.choices)
    organization_id = serializers.UUIDField(required=False, allow_null=True)
    workspace_id = serializers.UUIDField(required=False, allow_null=True)
    facility_id = serializers.UUIDField(required=False, allow_null=True)
    department_id = serializers.UUIDField(required=False, allow_null=True)
