import pytest
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from rest_framework.exceptions import PermissionDenied, ValidationError

from console_core.audit.models import AuditEvent
from console_core.common.api.exceptions import DuplicateUser, InvalidScope, LimitExceeded
from console_core.facilities.models import Facility
from console_core.iam.models import AppRole, Profile, UserRole
from console_core.iam.services.identity import DjangoIdentityBackend
from console_core.iam.services.provisioning import (
    ProvisioningRequest,
    ProvisioningService,
    UserAccountService,
)
from console_core.iam.services.role_assignment import RoleAssignmentService
from console_core.organizations.models import Organization
from console_core.workspaces.models import Workspace

pytestmark = pytest.mark.django_db


def _staff_request(facility, subdepartment, email="nurse@example.com"):
    return ProvisioningRequest(
        email=email,
        full_name="Nora Nurse",
        role=AppRole.STAFF,
        facility_id=facility.id,
        department_id=subdepartment.id,
    )


def test_provision_creates_account_profile_and_role(facility, subdepartment):
    result = ProvisioningService.provision_user(request=_staff_request(facility, subdepartment, "Nurse@Example.com"))

    user = get_user_model().objects.get(id=result.user_id)
    assert user.username == "nurse@example.com"
    assert user.check_password("123456")

    profile = Profile.objects.get(user=user)
    assert profile.force_password_change
    assert result.force_password_change

    role = UserRole.objects.get(id=result.role_id)
    assert (role.role, role.department_id) == (AppRole.STAFF, subdepartment.id)
    assert AuditEvent.objects.filter(event_code="user.provisioned").count() == 1


def test_specialty_is_mapped_onto_department(facility, main_department, subdepartment):
    req = ProvisioningRequest(
        email="nurse@example.com",
        full_name="Nora Nurse",
        facility_id=facility.id,
        department_id=main_department.id,
        specialty_id=subdepartment.id,
    )
    result = ProvisioningService.provision_user(request=req)
    assert UserRole.objects.get(id=result.role_id).department_id == subdepartment.id


def test_staff_on_main_department_creates_nothing(facility, main_department):
    req = ProvisioningRequest(
        email="nurse@example.com",
        full_name="Nora Nurse",
        facility_id=facility.id,
        department_id=main_department.id,
    )
    with pytest.raises(InvalidScope):
        ProvisioningService.provision_user(request=req)
    assert not get_user_model().objects.filter(username="nurse@example.com").exists()


@pytest.mark.parametrize(
    "email, full_name",
    [("", "Nora Nurse"), ("not-an-email", "Nora Nurse"), ("nurse@example.com", "N")],
)
def test_invalid_input(facility, subdepartment, email, full_name):
    req = ProvisioningRequest(
        email=email, full_name=full_name, facility_id=facility.id, department_id=subdepartment.id
    )
    with pytest.raises(ValidationError):
        ProvisioningService.provision_user(request=req)


def test_duplicate_email(facility, subdepartment, make_user):
    make_user("nurse@example.com")
    with pytest.raises(DuplicateUser):
        ProvisioningService.provision_user(request=_staff_request(facility, subdepartment))


def test_user_limit_checked_before_account_creation(facility, subdepartment, make_user):
    org = facility.workspace.organization
    org.max_users = 1
    org.save()
    existing = make_user("existing@example.com")
    UserRole.objects.create(user=existing, role=AppRole.GENERAL_ADMIN, workspace=facility.workspace)

    with pytest.raises(LimitExceeded):
        ProvisioningService.provision_user(request=_staff_request(facility, subdepartment))
    assert not get_user_model().objects.filter(username="nurse@example.com").exists()


def test_account_removed_when_role_write_fails(facility, subdepartment, monkeypatch):
    def boom(**kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(RoleAssignmentService, "add_role", staticmethod(boom))

    with pytest.raises(RuntimeError):
        ProvisioningService.provision_user(request=_staff_request(facility, subdepartment))

    assert not get_user_model().objects.filter(username="nurse@example.com").exists()
    assert not Profile.objects.filter(email="nurse@example.com").exists()


def test_creator_authority_is_enforced(facility, subdepartment, make_user):
    nurse = make_user("staff@example.com")
    UserRole.objects.create(
        user=nurse, role=AppRole.STAFF, workspace=facility.workspace, facility=facility, department=subdepartment
    )
    with pytest.raises(PermissionDenied):
        ProvisioningService.provision_user(request=_staff_request(facility, subdepartment), created_by=nurse)
    assert not Profile.objects.filter(email="nurse@example.com").exists()


def test_bulk_collects_row_errors(facility, main_department, subdepartment):
    rows = [
        {
            "email": "a@example.com",
            "full_name": "Anna A",
            "facility_name": "central hospital",
            "department_name": "Surgery",
            "specialty_name": "General Surgery",
            "role": "staff",
        },
        {
            "email": "b@example.com",
            "full_name": "Ben B",
            "facility_name": "Central Hospital",
            "department_name": "Surgery",
            "role": "staff",
        },
        {
            "email": "a@example.com",
            "full_name": "Anna Again",
            "facility_name": "Central Hospital",
            "department_name": "Surgery",
            "specialty_name": "General Surgery",
        },
        {"email": "c@example.com", "full_name": "Cat C", "facility_name": "Nowhere"},
        {
            "email": "d@example.com",
            "full_name": "Dan D",
            "facility_name": "Central Hospital",
            "department_name": "Surgery",
            "role": "department_head",
        },
    ]

    result = ProvisioningService.bulk_provision(rows=rows).as_dict()

    assert result["created_count"] == 2
    assert [c["row"] for c in result["created"]] == [2, 6]
    assert [e["row"] for e in result["errors"]] == [3, 4, 5]
    assert result["errors"][1]["email"] == "a@example.com"
    assert "Nowhere" in result["errors"][2]["error"]


def test_bulk_row_with_ambiguous_facility_is_a_row_error(facility, main_department, subdepartment):
    other_ws = Workspace.objects.create(organization=Organization.objects.create(name="Globex"), name="South")
    Facility.objects.create(workspace=other_ws, name="Central Hospital")
    row = {
        "email": "a@example.com",
        "full_name": "Anna A",
        "facility_name": "Central Hospital",
        "department_name": "Surgery",
        "specialty_name": "General Surgery",
    }

    result = ProvisioningService.bulk_provision(rows=[row])
    assert result.created == []
    assert result.errors[0]["row"] == 2
    assert "ambiguous" in result.errors[0]["error"]
    assert not Profile.objects.filter(email="a@example.com").exists()

    result = ProvisioningService.bulk_provision(rows=[row], workspace_id=facility.workspace_id)
    assert result.errors == []
    assert UserRole.objects.get(user_id=result.created[0]["user_id"]).facility_id == facility.id


def test_email_longer_than_login_column_is_rejected(facility, subdepartment):
    email = f"{'n' * 60}@{'d' * 60}.{'e' * 60}.example.com"
    assert 150 < len(email) <= 255

    with pytest.raises(ValidationError) as exc:
        ProvisioningService.provision_user(request=_staff_request(facility, subdepartment, email))
    assert "email" in exc.value.detail
    assert not get_user_model().objects.filter(email=email).exists()
    assert not Profile.objects.filter(email=email).exists()


def test_unexpected_row_failure_does_not_stop_the_batch(facility, main_department, subdepartment, monkeypatch):
    backend = DjangoIdentityBackend()
    original = backend.create_account

    def flaky(*, email, password, full_name):
        if email.startswith("broken"):
            raise DatabaseError("value too long")
        return original(email=email, password=password, full_name=full_name)

    monkeypatch.setattr(backend, "create_account", flaky)
    monkeypatch.setattr("console_core.iam.services.provisioning.get_identity_backend", lambda: backend)

    base = {
        "full_name": "Row User",
        "facility_name": "Central Hospital",
        "department_name": "Surgery",
        "specialty_name": "General Surgery",
    }
    rows = [{**base, "email": "broken@example.com"}, {**base, "email": "fine@example.com"}]

    result = ProvisioningService.bulk_provision(rows=rows).as_dict()
    assert [e["row"] for e in result["errors"]] == [2]
    assert [c["email"] for c in result["created"]] == ["fine@example.com"]
    assert not Profile.objects.filter(email="broken@example.com").exists()


def test_bulk_row_for_workspace_role(facility):
    rows = [{"email": "ga@example.com", "full_name": "Gail Admin", "facility_name": "Central Hospital", "role": "general_admin"}]
    result = ProvisioningService.bulk_provision(rows=rows)

    assert not result.errors
    role = UserRole.objects.get(user_id=result.created[0]["user_id"])
    assert (role.role, role.workspace_id, role.facility_id) == (AppRole.GENERAL_ADMIN, facility.workspace_id, None)


def test_deactivate_and_reactivate(make_user, superuser):
    user = make_user("someone@example.com")

    profile = UserAccountService.set_active(user_id=user.id, is_active=False, actor=superuser)
    user.refresh_from_db()
    assert not profile.is_active
    assert not user.is_active

    profile = UserAccountService.set_active(user_id=user.id, is_active=True, actor=superuser)
    assert profile.is_active


def test_cannot_deactivate_self(make_user):
    user = make_user("someone@example.com")
    with pytest.raises(ValidationError):
        UserAccountService.set_active(user_id=user.id, is_active=False, actor=user)
