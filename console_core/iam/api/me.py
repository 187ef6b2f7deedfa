# console_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from console_core.iam.api.schema_serializers import MeResponseSerializer, ProfileSerializer, UserRoleSerializer
from console_core.iam.roles import assignable_roles, get_highest_role
from console_core.iam.selectors import get_profile, role_names_for_user, user_roles_qs
from console_core.modules.selectors import user_modules


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MeResponseSerializer}, tags=["IAM"])
    def get(self, request):
        """
        Session bootstrap for the console: who am I, what do I hold, what can I open.
        """
        user = request.user
        profile = get_profile(user_id=user.id)
        role_names = role_names_for_user(user)

        return Response(
            {
                "user": {
                    "id": user.id,
                    "username": getattr(user, "username", None),
                    "email": getattr(user, "email", None),
                    "is_superuser": bool(getattr(user, "is_superuser", False)),
                },
                "profile": ProfileSerializer(profile).data if profile else None,
                "roles": UserRoleSerializer(user_roles_qs(user_id=user.id), many=True).data,
                "highest_role": get_highest_role(role_names),
                "assignable_roles": assignable_roles(role_names),
                "modules": user_modules(user_id=user.id),
            },
            status=status.HTTP_200_OK,
        )
