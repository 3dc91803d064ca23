# tracker/core/rbac.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping
from uuid import UUID

from tracker.core.errors import PermissionDenied


class Role(str, enum.Enum):
    supplier = "supplier"
    customer = "customer"
    admin = "admin"
    contributor = "contributor"
    viewer = "viewer"


class Capability(str, enum.Enum):
    create = "deliverable.create"
    # name, milestone link, KPI/QS links
    edit_core = "deliverable.edit_core"
    # description, progress, tasks
    edit_content = "deliverable.edit_content"
    submit = "deliverable.submit"
    review = "deliverable.review"
    sign_supplier = "deliverable.sign_supplier"
    sign_customer = "deliverable.sign_customer"
    delete = "deliverable.delete"

    manage_milestones = "milestone.manage"
    manage_catalog = "catalog.manage"


_AUTHORS = frozenset({Role.supplier, Role.admin})

ALLOW: Mapping[Capability, frozenset[Role]] = {
    Capability.create: _AUTHORS,
    Capability.edit_core: _AUTHORS,
    Capability.edit_content: _AUTHORS | {Role.contributor},
    Capability.submit: _AUTHORS,
    Capability.review: frozenset({Role.customer, Role.admin}),
    Capability.sign_supplier: _AUTHORS,
    # admin НЕ подписывает за заказчика
    Capability.sign_customer: frozenset({Role.customer}),
    Capability.delete: _AUTHORS,
    Capability.manage_milestones: _AUTHORS,
    Capability.manage_catalog: _AUTHORS,
}

# Deliverable field -> capability needed to edit it.
FIELD_CAPABILITY: Mapping[str, Capability] = {
    "name": Capability.edit_core,
    "milestone_id": Capability.edit_core,
    "kpi_ids": Capability.edit_core,
    "quality_standard_ids": Capability.edit_core,
    "description": Capability.edit_content,
    "progress": Capability.edit_content,
}


def parse_role(raw: str | Role | None) -> Role | None:
    """Unknown role strings map to None (read-only)."""
    if isinstance(raw, Role):
        return raw
    if not raw:
        return None
    try:
        return Role(raw.strip().lower())
    except ValueError:
        return None


def is_allowed(capability: Capability, role: str | Role | None) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return parsed in ALLOW[capability]


def ensure_allowed(capability: Capability, role: str | Role | None) -> None:
    if not is_allowed(capability, role):
        actual = role.value if isinstance(role, Role) else (role or "<anonymous>")
        raise PermissionDenied(
            capability=capability.value,
            required_roles=[r.value for r in ALLOW[capability]],
            actual_role=actual,
        )


def field_capability(field: str) -> Capability:
    try:
        return FIELD_CAPABILITY[field]
    except KeyError:
        raise KeyError(f"Unknown deliverable field: '{field}'") from None


def sign_capability(signer_role: str) -> Capability:
    if signer_role == "supplier":
        return Capability.sign_supplier
    if signer_role == "customer":
        return Capability.sign_customer
    raise ValueError(f"Unknown signer role: '{signer_role}'")


@dataclass(frozen=True)
class Actor:
    """Caller identity + role as handed over by the auth/session provider."""

    user_id: UUID
    role: str

    def ensure(self, capability: Capability) -> None:
        ensure_allowed(capability, self.role)
