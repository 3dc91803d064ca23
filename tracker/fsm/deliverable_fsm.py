# tracker/fsm/deliverable_fsm.py

from __future__ import annotations

from enum import Enum

from tracker.core.errors import InvalidTransition
from tracker.core.rbac import Capability
from tracker.models.deliverable import DeliverableStatus

"""Deliverable FSM: workflow of a contracted deliverable.

  not_started -> in_progress            (auto, progress > 0)
  in_progress -> not_started            (auto, progress back to 0)
  in_progress | returned_for_more_work -> submitted_for_review   (submit)
  submitted_for_review -> returned_for_more_work                 (return)
  submitted_for_review -> review_complete                        (accept)
  review_complete -> signed             (sign-off gate only, both signatures)

ВАЖНО:
- progress alone never moves a deliverable into review or signed.
- signed is terminal: no action, edit or task change is accepted.
"""


class Action(str, Enum):
    SUBMIT = "submit"  # in_progress / returned -> submitted_for_review
    RETURN = "return"  # submitted_for_review -> returned_for_more_work
    ACCEPT = "accept"  # submitted_for_review -> review_complete


# Pseudo-actions used only in error reporting / logging.
EDIT_PROGRESS = "edit_progress"
EDIT_FIELD = "edit_field"
EDIT_TASKS = "edit_tasks"
DELETE = "delete"


TERMINAL = {DeliverableStatus.signed}

# Progress (manual or task-derived) may change only here.
PROGRESS_EDITABLE = {
    DeliverableStatus.not_started,
    DeliverableStatus.in_progress,
    DeliverableStatus.returned_for_more_work,
}

SIGNABLE = {DeliverableStatus.review_complete}


# action -> allowed from statuses + to status
TRANSITIONS: dict[Action, tuple[set[DeliverableStatus], DeliverableStatus]] = {
    Action.SUBMIT: (
        {DeliverableStatus.in_progress, DeliverableStatus.returned_for_more_work},
        DeliverableStatus.submitted_for_review,
    ),
    Action.RETURN: ({DeliverableStatus.submitted_for_review}, DeliverableStatus.returned_for_more_work),
    Action.ACCEPT: ({DeliverableStatus.submitted_for_review}, DeliverableStatus.review_complete),
}

ACTION_CAPABILITY: dict[Action, Capability] = {
    Action.SUBMIT: Capability.submit,
    Action.RETURN: Capability.review,
    Action.ACCEPT: Capability.review,
}


def as_status(value: str | DeliverableStatus | None) -> DeliverableStatus:
    if isinstance(value, DeliverableStatus):
        return value
    if not value:
        return DeliverableStatus.not_started
    return DeliverableStatus(value)


def parse_action(action_raw: str | Action) -> Action:
    if isinstance(action_raw, Action):
        return action_raw
    try:
        return Action(action_raw.strip())
    except ValueError:
        allowed = ", ".join(a.value for a in Action)
        raise ValueError(f"Unknown action: '{action_raw}'. Allowed actions: {allowed}") from None


def apply_transition(current: DeliverableStatus | str, action_raw: str | Action) -> DeliverableStatus:
    """Returns the target status or raises InvalidTransition. Never mutates anything."""
    current = as_status(current)
    action = parse_action(action_raw)

    allowed_from, to_status = TRANSITIONS[action]
    if current not in allowed_from:
        allowed_from_str = ", ".join(sorted(s.value for s in allowed_from))
        raise InvalidTransition(
            current.value,
            action.value,
            reason=f"allowed from: {allowed_from_str}",
        )
    return to_status


def auto_transition(current: DeliverableStatus | str, new_progress: int) -> DeliverableStatus:
    """Status implied by a progress change. Only not_started <-> in_progress move."""
    current = as_status(current)

    if new_progress > 0 and current is DeliverableStatus.not_started:
        return DeliverableStatus.in_progress
    if new_progress == 0 and current is DeliverableStatus.in_progress:
        return DeliverableStatus.not_started
    return current


def ensure_progress_editable(current: DeliverableStatus | str, action: str = EDIT_PROGRESS) -> None:
    current = as_status(current)
    if current not in PROGRESS_EDITABLE:
        raise InvalidTransition(current.value, action, reason="progress is locked in this status")


def ensure_not_terminal(current: DeliverableStatus | str, action: str) -> None:
    current = as_status(current)
    if current in TERMINAL:
        raise InvalidTransition(current.value, action, reason="deliverable is signed")


def ensure_signable(current: DeliverableStatus | str, action: str) -> None:
    current = as_status(current)
    if current not in SIGNABLE:
        raise InvalidTransition(current.value, action, reason="signing requires review_complete")
