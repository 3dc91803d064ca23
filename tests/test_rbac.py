# tests/test_rbac.py
from __future__ import annotations

import uuid

import pytest

from tracker.core.errors import PermissionDenied
from tracker.core.rbac import (
    ALLOW,
    FIELD_CAPABILITY,
    Actor,
    Capability,
    Role,
    ensure_allowed,
    field_capability,
    is_allowed,
    parse_role,
    sign_capability,
)


def test_every_capability_has_an_entry():
    assert set(ALLOW) == set(Capability)


def test_viewer_can_do_nothing():
    for cap in Capability:
        assert not is_allowed(cap, Role.viewer), cap


def test_unknown_or_missing_role_can_do_nothing():
    for cap in Capability:
        assert not is_allowed(cap, "superuser")
        assert not is_allowed(cap, None)


@pytest.mark.parametrize(
    "capability,allowed",
    [
        (Capability.create, {"supplier", "admin"}),
        (Capability.edit_core, {"supplier", "admin"}),
        (Capability.edit_content, {"supplier", "admin", "contributor"}),
        (Capability.submit, {"supplier", "admin"}),
        (Capability.review, {"customer", "admin"}),
        (Capability.sign_supplier, {"supplier", "admin"}),
        (Capability.sign_customer, {"customer"}),
        (Capability.delete, {"supplier", "admin"}),
    ],
)
def test_capability_matrix(capability, allowed):
    for role in Role:
        assert is_allowed(capability, role) is (role.value in allowed), (capability, role)


def test_admin_cannot_sign_for_customer():
    with pytest.raises(PermissionDenied) as exc:
        ensure_allowed(Capability.sign_customer, "admin")

    assert exc.value.actual_role == "admin"
    assert exc.value.required_roles == ["customer"]
    assert exc.value.capability == "deliverable.sign_customer"


def test_parse_role_is_case_insensitive():
    assert parse_role(" Supplier ") is Role.supplier
    assert parse_role("nobody") is None


def test_field_capability_map():
    assert field_capability("progress") is Capability.edit_content
    assert field_capability("description") is Capability.edit_content
    assert field_capability("name") is Capability.edit_core
    assert set(FIELD_CAPABILITY) == {
        "name",
        "description",
        "progress",
        "milestone_id",
        "kpi_ids",
        "quality_standard_ids",
    }
    with pytest.raises(KeyError):
        field_capability("status")


def test_sign_capability():
    assert sign_capability("supplier") is Capability.sign_supplier
    assert sign_capability("customer") is Capability.sign_customer
    with pytest.raises(ValueError):
        sign_capability("admin")


def test_actor_ensure_raises_permission_denied():
    actor = Actor(user_id=uuid.uuid4(), role="contributor")
    actor.ensure(Capability.edit_content)
    with pytest.raises(PermissionDenied):
        actor.ensure(Capability.submit)
