"""
Domain error categories.

Every rejection the engine produces is one of these. They are recoverable:
the request transaction is rolled back, the stored state stays authoritative
and the API layer maps each category onto an HTTP status once
(see ``tracker.main``).
"""

from __future__ import annotations

from typing import Any, Iterable
from uuid import UUID


class DomainError(Exception):
    """Base class. ``category`` is the stable machine-readable error name."""

    category = "domain_error"
    http_status = 422

    def details(self) -> dict[str, Any]:
        return {}


class InvalidTransition(DomainError):
    """Action is not legal from the deliverable's current status."""

    category = "invalid_transition"
    http_status = 422

    def __init__(self, current_status: str, action: str, reason: str | None = None) -> None:
        self.current_status = current_status
        self.action = action
        self.reason = reason
        msg = f"Action '{action}' not allowed from status '{current_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)

    def details(self) -> dict[str, Any]:
        return {"current_status": self.current_status, "action": self.action}


class PermissionDenied(DomainError):
    """Permission guard rejection."""

    category = "permission_denied"
    http_status = 403

    def __init__(self, capability: str, required_roles: Iterable[str], actual_role: str) -> None:
        self.capability = capability
        self.required_roles = sorted(required_roles)
        self.actual_role = actual_role
        required = ", ".join(self.required_roles) or "<none>"
        super().__init__(
            f"Role '{actual_role}' is not allowed for '{capability}'. Required one of: {required}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "capability": self.capability,
            "required_roles": self.required_roles,
            "actual_role": self.actual_role,
        }


class AssessmentIncomplete(DomainError):
    """Customer signature blocked: some linked KPI / quality standard has no assessment."""

    category = "assessment_incomplete"
    http_status = 422

    def __init__(self, kpi_ids: Iterable[UUID], quality_standard_ids: Iterable[UUID]) -> None:
        self.kpi_ids = sorted(kpi_ids, key=str)
        self.quality_standard_ids = sorted(quality_standard_ids, key=str)
        ids = [str(i) for i in self.kpi_ids + self.quality_standard_ids]
        super().__init__(f"Unassessed linked items: {', '.join(ids)}")

    @property
    def item_ids(self) -> list[UUID]:
        return self.kpi_ids + self.quality_standard_ids

    def details(self) -> dict[str, Any]:
        return {
            "kpi_ids": [str(i) for i in self.kpi_ids],
            "quality_standard_ids": [str(i) for i in self.quality_standard_ids],
        }


class ConcurrentSignatureConflict(DomainError):
    """Compare-and-set on a signature slot lost the race."""

    category = "concurrent_signature_conflict"
    http_status = 409

    def __init__(self, deliverable_id: UUID, signer_role: str) -> None:
        self.deliverable_id = deliverable_id
        self.signer_role = signer_role
        super().__init__(
            f"Deliverable {deliverable_id} changed while signing as '{signer_role}'; reload and retry"
        )

    def details(self) -> dict[str, Any]:
        return {"deliverable_id": str(self.deliverable_id), "signer_role": self.signer_role}


class ConcurrentUpdateConflict(DomainError):
    """Deliverable row moved on (row_version) between our read and our write."""

    category = "concurrent_update_conflict"
    http_status = 409

    def __init__(self, deliverable_id: UUID, action: str) -> None:
        self.deliverable_id = deliverable_id
        self.action = action
        super().__init__(f"Deliverable {deliverable_id} changed during '{action}'; reload and retry")

    def details(self) -> dict[str, Any]:
        return {"deliverable_id": str(self.deliverable_id), "action": self.action}


class InvalidFieldEdit(DomainError):
    """Well-formed request that breaks a field rule (range, derived value, unknown reference)."""

    category = "invalid_field_edit"
    http_status = 422

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Cannot edit '{field}': {reason}")

    def details(self) -> dict[str, Any]:
        return {"field": self.field}


class NotFound(DomainError):
    category = "not_found"
    http_status = 404

    def __init__(self, resource: str, resource_id: Any = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource} not found"
        if resource_id is not None:
            msg = f"{resource} {resource_id} not found"
        super().__init__(msg)
