import pytest
from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from console_core.common.api.exceptions import HasAssignedUsers, HasChildren, InvalidHierarchy
from console_core.departments.models import Department
from console_core.departments.selectors import available_departments_for_facility, department_tree
from console_core.departments.services import DepartmentService, DepartmentUpdate
from console_core.facilities.models import Facility
from console_core.iam.models import AppRole, UserRole
from console_core.workspaces.services import WorkspaceService

pytestmark = pytest.mark.django_db


def test_create_main_and_sub_inherits_category(facility, categories):
    main = DepartmentService.create(facility_id=facility.id, name="Radiology", category="medical", min_staffing=3)
    assert main.category == "Medical"
    assert main.is_main

    sub = DepartmentService.create(facility_id=facility.id, name="MRI", parent_department_id=main.id)
    assert sub.parent_department_id == main.id
    assert sub.category == "Medical"
    assert sub.min_staffing == 1


def test_subdepartment_of_subdepartment_is_rejected(facility, main_department, subdepartment):
    with pytest.raises(InvalidHierarchy):
        DepartmentService.create(facility_id=facility.id, name="Too deep", parent_department_id=subdepartment.id)


def test_parent_in_other_facility_is_rejected(workspace, main_department):
    other = Facility.objects.create(workspace=workspace, name="Satellite")
    with pytest.raises(InvalidHierarchy):
        DepartmentService.create(facility_id=other.id, name="Day Surgery", parent_department_id=main_department.id)


def test_unknown_or_inactive_category(facility, categories):
    with pytest.raises(ValidationError):
        DepartmentService.create(facility_id=facility.id, name="Labs", category="Astrology")


def test_min_staffing_must_be_positive(facility):
    with pytest.raises(ValidationError):
        DepartmentService.create(facility_id=facility.id, name="Labs", min_staffing=0)


def test_min_staffing_constraint_holds_at_the_database(facility):
    with pytest.raises(IntegrityError), transaction.atomic():
        Department.objects.create(facility=facility, name="Pharmacy", category="Medical", min_staffing=0)


def test_duplicate_name_under_same_parent(facility, main_department):
    with pytest.raises(ValidationError):
        DepartmentService.create(facility_id=facility.id, name="surgery")


def test_delete_fails_with_children(main_department, subdepartment):
    with pytest.raises(HasChildren):
        DepartmentService.delete(department_id=main_department.id)


def test_delete_fails_with_assigned_users(facility, subdepartment, make_user):
    staff = make_user("staff@example.com")
    UserRole.objects.create(
        user=staff, role=AppRole.STAFF, workspace=facility.workspace, facility=facility, department=subdepartment
    )
    with pytest.raises(HasAssignedUsers):
        DepartmentService.delete(department_id=subdepartment.id)


def test_delete_leaf_without_users(main_department, subdepartment):
    DepartmentService.delete(department_id=subdepartment.id)
    assert not Department.objects.filter(id=subdepartment.id).exists()

    DepartmentService.delete(department_id=main_department.id)
    assert not Department.objects.filter(id=main_department.id).exists()


def test_update_fields(main_department):
    dept = DepartmentService.update(
        department_id=main_department.id,
        patch=DepartmentUpdate(name="Surgical Services", min_staffing=10),
    )
    assert dept.name == "Surgical Services"
    assert dept.min_staffing == 10


def test_tree_lists_mains_with_subdepartments(facility, main_department, subdepartment):
    Department.objects.create(facility=facility, parent_department=main_department, name="Neurosurgery")

    tree = department_tree(facility_id=facility.id)
    assert [n.department.name for n in tree] == ["Surgery"]
    assert [d.name for d in tree[0].subdepartments] == ["General Surgery", "Neurosurgery"]


def test_create_from_template_copies_subdepartments(workspace, facility, categories):
    template = DepartmentService.create_template(name="Radiology", category="Medical", min_staffing=3)
    DepartmentService.create_template(name="MRI", parent_template_id=template.id)
    DepartmentService.create_template(name="X-Ray", parent_template_id=template.id)

    # not enabled for the workspace yet
    with pytest.raises(ValidationError):
        DepartmentService.create_from_template(facility_id=facility.id, template_id=template.id)

    WorkspaceService.assign_template_department(workspace_id=workspace.id, template_id=template.id)
    assert list(available_departments_for_facility(facility_id=facility.id)) == [template]

    main = DepartmentService.create_from_template(facility_id=facility.id, template_id=template.id)
    assert main.facility_id == facility.id
    assert not main.is_template
    assert main.min_staffing == 3
    assert sorted(main.subdepartments.values_list("name", flat=True)) == ["MRI", "X-Ray"]
    assert all(d.category == "Medical" for d in main.subdepartments.all())


def test_template_cannot_nest_twice(categories):
    main = DepartmentService.create_template(name="Surgery", category="Medical")
    sub = DepartmentService.create_template(name="General Surgery", parent_template_id=main.id)
    with pytest.raises(InvalidHierarchy):
        DepartmentService.create_template(name="Too deep", parent_template_id=sub.id)
