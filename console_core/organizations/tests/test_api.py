import uuid

import pytest

from console_core.audit.models import AuditEvent
from console_core.conftest import client_for
from console_core.facilities.models import Facility
from console_core.iam.models import AppRole, UserRole
from console_core.workspaces.models import Workspace

pytestmark = pytest.mark.django_db


@pytest.fixture
def general_admin(make_user, workspace, modules):
    user = make_user("ga@example.com")
    UserRole.objects.create(user=user, role=AppRole.GENERAL_ADMIN, workspace=workspace)
    return user


def test_superuser_builds_hierarchy(api_client, categories):
    res = api_client.post("/api/v1/organizations/", {"name": "Acme", "max_workspaces": 1}, format="json")
    assert res.status_code == 201
    org_id = res.json()["id"]

    res = api_client.post("/api/v1/workspaces/", {"organization_id": org_id, "name": "North"}, format="json")
    assert res.status_code == 201
    ws_id = res.json()["id"]

    res = api_client.post("/api/v1/workspaces/", {"organization_id": org_id, "name": "South"}, format="json")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "limit_exceeded"

    res = api_client.post("/api/v1/facilities/", {"workspace_id": ws_id, "name": "Central"}, format="json")
    assert res.status_code == 201
    facility_id = res.json()["id"]

    res = api_client.post(
        "/api/v1/departments/",
        {"facility_id": facility_id, "name": "Surgery", "category": "medical", "min_staffing": 8},
        format="json",
    )
    assert res.status_code == 201
    assert res.json()["category"] == "Medical"
    surgery_id = res.json()["id"]

    res = api_client.post(
        "/api/v1/departments/",
        {"facility_id": facility_id, "name": "General Surgery", "parent_department_id": surgery_id},
        format="json",
    )
    assert res.status_code == 201

    tree = api_client.get(f"/api/v1/facilities/{facility_id}/departments/").json()
    assert tree[0]["department"]["name"] == "Surgery"
    assert [s["name"] for s in tree[0]["subdepartments"]] == ["General Surgery"]

    res = api_client.delete(f"/api/v1/departments/{surgery_id}/")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "has_children"

    usage = api_client.get(f"/api/v1/organizations/{org_id}/usage/").json()
    assert usage["workspaces"] == {"used": 1, "limit": 1}

    assert AuditEvent.objects.filter(event_code="department.created").count() == 2


def test_nested_subdepartment_is_422(api_client, facility, main_department, subdepartment):
    res = api_client.post(
        "/api/v1/departments/",
        {"facility_id": str(facility.id), "name": "Too deep", "parent_department_id": str(subdepartment.id)},
        format="json",
    )
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "invalid_hierarchy"


def test_missing_object_is_404(api_client):
    res = api_client.get(f"/api/v1/organizations/{uuid.uuid4()}/")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "not_found"


def test_template_flow(api_client, workspace, facility, categories):
    res = api_client.post(
        "/api/v1/departments/",
        {"is_template": True, "name": "Radiology", "category": "Medical", "min_staffing": 3},
        format="json",
    )
    assert res.status_code == 201
    template_id = res.json()["id"]

    url = f"/api/v1/workspaces/{workspace.id}/template-departments/"
    assert api_client.post(url, {"template_id": template_id}, format="json").status_code == 200
    res = api_client.post(url, {"template_id": template_id}, format="json")
    assert [d["id"] for d in res.json()] == [template_id]

    available = api_client.get(f"/api/v1/facilities/{facility.id}/available-templates/").json()
    assert [d["id"] for d in available] == [template_id]

    res = api_client.post(
        "/api/v1/departments/from-template/",
        {"facility_id": str(facility.id), "template_id": template_id},
        format="json",
    )
    assert res.status_code == 201
    assert res.json()["facility_id"] == str(facility.id)

    assert api_client.delete(f"{url}{template_id}/").status_code == 204
    assert api_client.get(url).json() == []


def test_general_admin_sees_only_own_workspace(general_admin, organization, workspace):
    other = Workspace.objects.create(organization=organization, name="South")
    c = client_for(general_admin)

    listing = c.get("/api/v1/workspaces/").json()
    assert [w["id"] for w in listing["results"]] == [str(workspace.id)]

    assert c.get(f"/api/v1/workspaces/{other.id}/").status_code == 404


def test_general_admin_cannot_create_organizations(general_admin):
    res = client_for(general_admin).post("/api/v1/organizations/", {"name": "Rogue"}, format="json")
    assert res.status_code == 403


def test_general_admin_cannot_change_limits(general_admin, organization):
    res = client_for(general_admin).patch(
        f"/api/v1/organizations/{organization.id}/", {"max_users": 50}, format="json"
    )
    assert res.status_code == 403


def test_general_admin_manages_facilities_in_own_workspace(general_admin, organization, workspace):
    other = Workspace.objects.create(organization=organization, name="South")
    c = client_for(general_admin)

    res = c.post("/api/v1/facilities/", {"workspace_id": str(workspace.id), "name": "East"}, format="json")
    assert res.status_code == 201

    res = c.post("/api/v1/facilities/", {"workspace_id": str(other.id), "name": "West"}, format="json")
    assert res.status_code == 403
    assert not Facility.objects.filter(name="West").exists()


def test_staff_has_no_organization_module(make_user, facility, subdepartment, modules):
    user = make_user("nurse@example.com")
    UserRole.objects.create(
        user=user, role=AppRole.STAFF, workspace=facility.workspace, facility=facility, department=subdepartment
    )
    assert client_for(user).get("/api/v1/facilities/").status_code == 403


def test_system_category_is_protected(api_client, categories):
    medical = api_client.get("/api/v1/categories/").json()["results"]
    medical_id = next(c["id"] for c in medical if c["name"] == "Medical")

    res = api_client.patch(f"/api/v1/categories/{medical_id}/", {"name": "Clinical"}, format="json")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "protected_resource"
