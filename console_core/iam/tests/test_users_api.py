import pytest

from console_core.conftest import client_for
from console_core.facilities.models import Facility
from console_core.iam.models import AppRole, Profile, UserRole
from console_core.workspaces.models import Workspace

pytestmark = pytest.mark.django_db


def _staff_payload(facility, subdepartment, email="nurse@example.com"):
    return {
        "email": email,
        "full_name": "Nora Nurse",
        "role": "staff",
        "facility_id": str(facility.id),
        "department_id": str(subdepartment.id),
    }


def test_provision_via_api(api_client, facility, subdepartment):
    res = api_client.post("/api/v1/users/", _staff_payload(facility, subdepartment), format="json")
    assert res.status_code == 201
    assert res.json()["force_password_change"] is True

    listing = api_client.get("/api/v1/users/").json()
    assert [p["email"] for p in listing["results"]] == ["nurse@example.com"]


def test_provision_staff_on_main_department_is_422(api_client, facility, main_department):
    res = api_client.post("/api/v1/users/", _staff_payload(facility, main_department), format="json")
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "invalid_scope"


def test_provision_duplicate_is_409(api_client, facility, subdepartment, make_user):
    make_user("nurse@example.com")
    res = api_client.post("/api/v1/users/", _staff_payload(facility, subdepartment), format="json")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "duplicate_user"


def test_bulk_via_api(api_client, facility, main_department, subdepartment):
    payload = {
        "rows": [
            {
                "email": "a@example.com",
                "full_name": "Anna A",
                "facility_name": "Central Hospital",
                "department_name": "Surgery",
                "specialty_name": "General Surgery",
            },
            {"email": "bad", "full_name": "B", "facility_name": "Central Hospital"},
        ]
    }
    res = api_client.post("/api/v1/users/bulk/", payload, format="json")
    assert res.status_code == 200

    body = res.json()
    assert body["created_count"] == 1
    assert body["errors"][0]["row"] == 3


def test_roles_add_list_remove(api_client, workspace, make_user):
    user = make_user("ga@example.com")
    profile = Profile.objects.get(user=user)

    res = api_client.post(
        f"/api/v1/users/{profile.id}/roles/",
        {"role": "general_admin", "workspace_id": str(workspace.id)},
        format="json",
    )
    assert res.status_code == 200
    assert [r["role"] for r in res.json()] == ["general_admin"]

    role_id = res.json()[0]["id"]
    res = api_client.delete(f"/api/v1/users/{profile.id}/roles/{role_id}/")
    assert res.status_code == 204
    assert not UserRole.objects.filter(user=user).exists()


def test_role_add_missing_scope_field_is_400(api_client, make_user):
    profile = Profile.objects.get(user=make_user("ga@example.com"))
    res = api_client.post(f"/api/v1/users/{profile.id}/roles/", {"role": "general_admin"}, format="json")
    assert res.status_code == 400
    assert "workspace_id" in res.json()["error"]["details"]


def test_deactivate_and_reactivate(api_client, make_user):
    profile = Profile.objects.get(user=make_user("someone@example.com"))

    res = api_client.post(f"/api/v1/users/{profile.id}/deactivate/")
    assert res.status_code == 200
    assert res.json()["is_active"] is False

    res = api_client.post(f"/api/v1/users/{profile.id}/reactivate/")
    assert res.json()["is_active"] is True


def test_staff_cannot_open_user_management(make_user, facility, subdepartment, modules):
    user = make_user("nurse@example.com")
    UserRole.objects.create(
        user=user, role=AppRole.STAFF, workspace=facility.workspace, facility=facility, department=subdepartment
    )
    res = client_for(user).get("/api/v1/users/")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "permission_denied"


def test_general_admin_sees_only_own_workspace(organization, workspace, facility, subdepartment, make_user, modules):
    admin = make_user("ga@example.com")
    UserRole.objects.create(user=admin, role=AppRole.GENERAL_ADMIN, workspace=workspace)

    insider = make_user("in@example.com")
    UserRole.objects.create(
        user=insider, role=AppRole.STAFF, workspace=workspace, facility=facility, department=subdepartment
    )

    other_ws = Workspace.objects.create(organization=organization, name="South")
    other_facility = Facility.objects.create(workspace=other_ws, name="South Clinic")
    outsider = make_user("out@example.com")
    UserRole.objects.create(
        user=outsider, role=AppRole.FACILITY_SUPERVISOR, workspace=other_ws, facility=other_facility
    )

    c = client_for(admin)
    emails = {p["email"] for p in c.get("/api/v1/users/").json()["results"]}
    assert emails == {"ga@example.com", "in@example.com"}

    outsider_profile = Profile.objects.get(user=outsider)
    assert c.get(f"/api/v1/users/{outsider_profile.id}/").status_code == 404


def test_general_admin_cannot_grant_own_level(workspace, facility, subdepartment, make_user, modules):
    admin = make_user("ga@example.com")
    UserRole.objects.create(user=admin, role=AppRole.GENERAL_ADMIN, workspace=workspace)

    target_user = make_user("x@example.com")
    UserRole.objects.create(
        user=target_user, role=AppRole.STAFF, workspace=workspace, facility=facility, department=subdepartment
    )
    target = Profile.objects.get(user=target_user)

    res = client_for(admin).post(
        f"/api/v1/users/{target.id}/roles/",
        {"role": "general_admin", "workspace_id": str(workspace.id)},
        format="json",
    )
    assert res.status_code == 403
    assert not UserRole.objects.filter(user=target_user, role=AppRole.GENERAL_ADMIN).exists()
