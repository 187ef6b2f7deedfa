# console_core/conftest.py
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from console_core.departments.models import Department
from console_core.departments.seeding import seed_default_categories
from console_core.facilities.models import Facility
from console_core.iam.models import Profile
from console_core.modules.services import ModuleService
from console_core.organizations.models import Organization
from console_core.workspaces.models import Workspace


@pytest.fixture
def make_user(db):
    """
    make_user("a@example.com") -> auth user with a console profile.
    """
    User = get_user_model()

    def _make(email: str, *, password: str = "Pass@12345", full_name: str = "Test User", **extra):
        user = User.objects.create_user(username=email, email=email, password=password, **extra)
        Profile.objects.create(user=user, email=email, full_name=full_name)
        return user

    return _make


@pytest.fixture
def superuser(db):
    User = get_user_model()
    return User.objects.create_superuser(username="root@example.com", email="root@example.com", password="Root@12345")


@pytest.fixture
def modules(db):
    ModuleService.seed_catalog()


@pytest.fixture
def categories(db):
    seed_default_categories()


@pytest.fixture
def organization(db):
    return Organization.objects.create(name="Acme")


@pytest.fixture
def workspace(db, organization):
    return Workspace.objects.create(organization=organization, name="North")


@pytest.fixture
def facility(db, workspace):
    return Facility.objects.create(workspace=workspace, name="Central Hospital")


@pytest.fixture
def main_department(db, facility):
    return Department.objects.create(facility=facility, name="Surgery", category="Medical", min_staffing=8)


@pytest.fixture
def subdepartment(db, facility, main_department):
    return Department.objects.create(
        facility=facility,
        parent_department=main_department,
        name="General Surgery",
        category="Medical",
    )


@pytest.fixture
def api_client(superuser, modules):
    c = APIClient()
    c.force_authenticate(user=superuser)
    return c


def client_for(user) -> APIClient:
    c = APIClient()
    c.force_authenticate(user=user)
    return c
