from __future__ import annotations

from src.timeclock.timeclock.core.enums import Role
from src.timeclock.timeclock.rota.scope import Scope, resolve_scope
from src.timeclock.timeclock.users.model import Principal

STORE = Scope("madrid", "store")
KITCHEN = Scope("madrid", "kitchen")
ELSEWHERE = Scope("bilbao", "office")


def test_admin_may_pick_any_scope():
    admin = Principal(1, Role.ADMIN, (STORE,))

    assert resolve_scope(admin) == STORE
    assert resolve_scope(admin, ELSEWHERE) == ELSEWHERE


def test_admin_partial_request_is_completed_from_primary():
    admin = Principal(1, Role.ADMIN, (STORE,))

    assert resolve_scope(admin, Scope("bilbao", "")) == Scope("bilbao", "store")


def test_manager_is_confined_to_assigned_scopes():
    manager = Principal(2, Role.MANAGER, (STORE, KITCHEN))

    assert resolve_scope(manager, KITCHEN) == KITCHEN
    assert resolve_scope(manager, ELSEWHERE) == STORE


def test_principal_without_scopes_uses_default():
    employee = Principal(7, Role.EMPLOYEE)

    assert resolve_scope(employee, ELSEWHERE) == Scope.default()
