# console_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from console_core.audit.api.views import AuditEventViewSet
from console_core.departments.api.views import CategoryViewSet, DepartmentViewSet
from console_core.facilities.api.views import FacilityViewSet
from console_core.iam.api.auth import LoginView, LogoutView, PasswordChangeView, RefreshView
from console_core.iam.api.me import MeView
from console_core.iam.api.users import UserViewSet
from console_core.modules.api.views import ModuleViewSet
from console_core.organizations.api.views import OrganizationViewSet
from console_core.workspaces.api.views import WorkspaceViewSet

router = DefaultRouter()

# hierarchy
router.register(r"organizations", OrganizationViewSet, basename="organizations")
router.register(r"workspaces", WorkspaceViewSet, basename="workspaces")
router.register(r"facilities", FacilityViewSet, basename="facilities")
router.register(r"departments", DepartmentViewSet, basename="departments")
router.register(r"categories", CategoryViewSet, basename="categories")

# people and access
router.register(r"users", UserViewSet, basename="users")
router.register(r"modules", ModuleViewSet, basename="modules")

router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/password/", PasswordChangeView.as_view(), name="password-change"),
    path("me/", MeView.as_view(), name="me"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
