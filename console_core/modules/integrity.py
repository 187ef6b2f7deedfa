# console_core/modules/integrity.py
from __future__ import annotations

from typing import Dict, List

from console_core.iam.models import AppRole
from console_core.modules.catalog import EXPECTED_MODULE_KEYS
from console_core.modules.models import CORE_MODULE_KEY, ModuleDefinition, RoleModuleAccess

PASS = "pass"
FAIL = "fail"
WARNING = "warning"


def _check(test: str, status: str, message: str, details=None) -> dict:
    return {"test": test, "status": status, "message": message, "details": details}


def _find_cycles(graph: Dict[str, List[str]]) -> List[List[str]]:
    """Dependency cycles as key paths, e.g. [["a", "b", "a"]]."""
    cycles: List[List[str]] = []
    state: Dict[str, int] = {}  # 1 = on stack, 2 = done
    stack: List[str] = []

    def visit(node: str) -> None:
        state[node] = 1
        stack.append(node)
        for dep in graph.get(node, []):
            if dep not in graph:
                continue
            if state.get(dep) == 1:
                cycles.append(stack[stack.index(dep):] + [dep])
            elif dep not in state:
                visit(dep)
        stack.pop()
        state[node] = 2

    for node in sorted(graph):
        if node not in state:
            visit(node)
    return cycles


def validate_module_system() -> List[dict]:
    """
    Integrity report over the module catalog and the role matrix.
    """
    modules = list(ModuleDefinition.objects.all())
    keys = {m.key for m in modules}
    results: List[dict] = []

    missing = [k for k in EXPECTED_MODULE_KEYS if k not in keys]
    if missing:
        results.append(_check("Module Definitions", FAIL, f"Missing modules: {', '.join(missing)}", missing))
    else:
        results.append(_check("Module Definitions", PASS, f"All {len(modules)} modules configured correctly"))

    broken = {
        m.key: sorted(set(m.depends_on or []) - keys)
        for m in modules
        if set(m.depends_on or []) - keys
    }
    if broken:
        results.append(_check("Dependency Integrity", FAIL, "Broken dependencies found", broken))
    else:
        results.append(_check("Dependency Integrity", PASS, "All module dependencies are valid"))

    cycles = _find_cycles({m.key: list(m.depends_on or []) for m in modules})
    if cycles:
        results.append(_check("Dependency Cycles", FAIL, "Circular module dependencies found", cycles))
    else:
        results.append(_check("Dependency Cycles", PASS, "No circular dependencies"))

    covered = set(
        RoleModuleAccess.objects.filter(role=AppRole.SUPER_ADMIN, can_view=True).values_list("module__key", flat=True)
    )
    uncovered = sorted(keys - covered)
    if uncovered:
        results.append(
            _check("Role Module Access", WARNING, "Super Admin does not have access to all modules", uncovered)
        )
    else:
        results.append(_check("Role Module Access", PASS, "Super Admin has access to every module"))

    core = next((m for m in modules if m.key == CORE_MODULE_KEY), None)
    if core is None or not core.is_active:
        results.append(_check("Core Module Protection", FAIL, "Core module is missing or disabled"))
    else:
        results.append(_check("Core Module Protection", PASS, "Core module is active"))

    return results
