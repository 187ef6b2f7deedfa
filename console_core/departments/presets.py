# console_core/departments/presets.py
"""
Department presets per category, used to seed template departments.

Each entry: (name, min_staffing, [subdepartment names]).
"""
from __future__ import annotations

from typing import Dict, List, Tuple

Preset = Tuple[str, int, List[str]]

DEFAULT_CATEGORIES: List[Tuple[str, str]] = [
    ("Medical", "Clinical and patient-care departments"),
    ("Engineering", "Engineering and technical departments"),
    ("Administrative", "Administrative and back-office departments"),
    ("Operations", "Facility operations and logistics"),
    ("Finance", "Finance and accounting"),
    ("Human Resources", "People and workforce management"),
    ("IT", "Information technology"),
]

DEPARTMENT_PRESETS: Dict[str, List[Preset]] = {
    "Medical": [
        ("Emergency Department", 5, []),
        ("Surgery", 8, ["General Surgery", "Cardiovascular Surgery", "Neurosurgery", "Plastic Surgery"]),
        ("Intensive Care Unit (ICU)", 6, ["Medical ICU", "Surgical ICU", "Neonatal ICU"]),
        ("Cardiology", 4, []),
        ("Pediatrics", 5, []),
        ("Radiology", 3, ["X-Ray", "MRI", "CT Scan", "Ultrasound"]),
        ("Neurology", 4, []),
        ("Oncology", 4, []),
        ("Orthopedics", 4, []),
        ("Laboratory Services", 3, []),
        ("Pharmacy", 3, []),
        ("Obstetrics and Gynecology", 5, []),
        ("Anesthesiology", 4, []),
        ("Psychiatry", 3, []),
        ("Dermatology", 2, []),
    ],
    "Engineering": [
        (
            "Software Engineering",
            5,
            ["Frontend Development", "Backend Development", "DevOps", "Quality Assurance", "Mobile Development"],
        ),
        ("Mechanical Engineering", 4, ["Design Engineering", "Manufacturing", "Thermal Systems"]),
        ("Electrical Engineering", 4, ["Power Systems", "Control Systems", "Electronics"]),
        ("Computer Engineering", 4, []),
    ],
    "Administrative": [
        ("Legal", 2, []),
        ("Marketing", 3, ["Digital Marketing", "Brand Management", "Communications"]),
        ("Customer Service", 4, []),
    ],
    "Human Resources": [
        ("Human Resources", 2, ["Recruitment", "Payroll", "Benefits"]),
    ],
    "Finance": [
        ("Finance", 3, ["Accounting", "Budgeting", "Auditing"]),
    ],
    "Operations": [
        ("Maintenance", 3, ["Electrical Maintenance", "Mechanical Maintenance", "Building Maintenance"]),
        ("Security", 4, []),
        ("Housekeeping", 5, []),
        ("Logistics", 3, ["Procurement", "Inventory", "Distribution"]),
    ],
}
