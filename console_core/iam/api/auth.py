# console_core/iam/api/auth.py

from __future__ import annotations

from datetime import timedelta
from typing import Any

from django.conf import settings
from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer

from console_core.iam.api.schema_serializers import (
    DetailResponseSerializer,
    LoginRequestSerializer,
    LoginResponseSerializer,
    PasswordChangeRequestSerializer,
)
from console_core.iam.auth import CookieOrHeaderJWTAuthentication
from console_core.iam.models import Profile


def _jwt_cfg() -> dict:
    return getattr(settings, "SIMPLE_JWT", {}) or {}


def _seconds(value: Any) -> int:
    """timedelta or plain seconds; 0 makes a session cookie."""
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _set_auth_cookies(response: Response, *, access: str, refresh: str) -> None:
    cfg = _jwt_cfg()
    common = {
        "httponly": bool(cfg.get("AUTH_COOKIE_HTTP_ONLY", True)),
        "secure": bool(cfg.get("AUTH_COOKIE_SECURE", False)),
        "samesite": cfg.get("AUTH_COOKIE_SAMESITE", "Lax"),
        "path": "/",
    }
    response.set_cookie(
        cfg.get("AUTH_COOKIE", "console_access"),
        access,
        max_age=_seconds(cfg.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=10))),
        **common,
    )
    response.set_cookie(
        cfg.get("AUTH_COOKIE_REFRESH", "console_refresh"),
        refresh,
        max_age=_seconds(cfg.get("REFRESH_TOKEN_LIFETIME", timedelta(days=14))),
        **common,
    )


def _clear_auth_cookies(response: Response) -> None:
    cfg = _jwt_cfg()
    response.delete_cookie(cfg.get("AUTH_COOKIE", "console_access"), path="/")
    response.delete_cookie(cfg.get("AUTH_COOKIE_REFRESH", "console_refresh"), path="/")


class _TokenEndpoint(APIView):
    """
    Login and refresh run unauthenticated, but failed credentials still answer 401
    with the same WWW-Authenticate challenge as the authenticated endpoints.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_authenticate_header(self, request):
        return CookieOrHeaderJWTAuthentication().authenticate_header(request)


class LoginView(_TokenEndpoint):
    """
    Accounts are keyed by email (username = email), so either field works.
    """

    @extend_schema(request=LoginRequestSerializer, responses={200: LoginResponseSerializer}, tags=["IAM"])
    def post(self, request):
        payload = LoginRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        d = payload.validated_data

        username = (d.get("username") or d.get("email") or "").strip().lower()
        if not username:
            raise ValidationError({"email": "This field is required."})

        serializer = TokenObtainPairSerializer(data={"username": username, "password": d["password"]})
        serializer.is_valid(raise_exception=True)

        profile = Profile.objects.filter(user=serializer.user).only("force_password_change").first()

        res = Response(
            {
                "detail": "login ok",
                "force_password_change": bool(profile and profile.force_password_change),
            },
            status=status.HTTP_200_OK,
        )
        _set_auth_cookies(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data["refresh"],
        )
        return res


class RefreshView(_TokenEndpoint):
    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        refresh = request.COOKIES.get(_jwt_cfg().get("AUTH_COOKIE_REFRESH", "console_refresh"))

        serializer = TokenRefreshSerializer(data={"refresh": refresh})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0])

        res = Response({"detail": "refreshed"}, status=status.HTTP_200_OK)
        _set_auth_cookies(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data.get("refresh", refresh),
        )
        return res


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        res = Response({"detail": "logged out"}, status=status.HTTP_200_OK)
        _clear_auth_cookies(res)
        return res


class PasswordChangeView(APIView):
    """
    Clears force_password_change once the user picked their own password.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(request=PasswordChangeRequestSerializer, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        s = PasswordChangeRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        d = s.validated_data

        user = request.user
        if not user.check_password(d["current_password"]):
            raise ValidationError({"current_password": "Current password is incorrect."})
        if d["new_password"] == d["current_password"]:
            raise ValidationError({"new_password": "Choose a password different from the current one."})
        try:
            password_validation.validate_password(d["new_password"], user=user)
        except DjangoValidationError as exc:
            raise ValidationError({"new_password": list(exc.messages)})

        with transaction.atomic():
            user.set_password(d["new_password"])
            user.save(update_fields=["password"])
            Profile.objects.filter(user=user).update(force_password_change=False)

        return Response({"detail": "password changed"}, status=status.HTTP_200_OK)
