"""Fixed transition graphs for every request family.

Each family gets its own ``Workflow`` over its own closed status enum.
Services never assign ``status`` without first asking the family's
workflow for the edge, so a status outside the graph is unreachable.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from itertools import product

from approvals.errors import InvalidTransition
from approvals.models.career import CareerStatus, APPROVAL_CHAIN
from approvals.models.lab_booking import BookingStatus
from approvals.models.leave import LeaveStatus
from approvals.models.research import ProposalStatus


@dataclass(frozen=True)
class Transition:
    """A permitted edge, labelled with the action that fires it."""
    from_state: enum.Enum
    to_state: enum.Enum
    action: str


@dataclass(frozen=True)
class Workflow:
    name: str
    states: tuple
    initial_states: tuple
    terminal_states: frozenset
    transitions: tuple[Transition, ...]
    _index: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        index = {}
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(f"{self.name}: transition {t} references an unknown state")
            if t.from_state in self.terminal_states:
                raise ValueError(f"{self.name}: terminal state {t.from_state.value} has an outgoing edge")
            index[(t.from_state, t.to_state, t.action)] = t
        object.__setattr__(self, "_index", index)

    def is_terminal(self, state) -> bool:
        return state in self.terminal_states

    def targets(self, state, action: str | None = None) -> set:
        return {
            t.to_state for t in self.transitions
            if t.from_state == state and (action is None or t.action == action)
        }

    def allows(self, current, target, action: str) -> bool:
        return (current, target, action) in self._index

    def ensure(self, current, target, action: str) -> Transition:
        """Return the edge for ``action`` or raise ``InvalidTransition``."""
        edge = self._index.get((current, target, action))
        if edge is not None:
            return edge
        if self.is_terminal(current):
            message = f"{self.name} request is already {current.value}; terminal states are permanent"
        else:
            message = f"Cannot {action} a {self.name} request from {current.value} to {target.value}"
        raise InvalidTransition(message, current_status=current.value, requested_status=target.value)

    def ensure_action(self, current, action: str) -> None:
        """Raise ``InvalidTransition`` unless ``action`` has some edge out of ``current``."""
        if not self.targets(current, action):
            raise InvalidTransition(
                f"Cannot {action} a {self.name} request while it is {current.value}",
                current_status=current.value,
            )


# ---------------------------------------------------------------------------
# Leave
# ---------------------------------------------------------------------------
_LEAVE_PENDING = (LeaveStatus.pending_substitute, LeaveStatus.pending_head)

LEAVE_WORKFLOW = Workflow(
    name="leave",
    states=tuple(LeaveStatus),
    initial_states=_LEAVE_PENDING,
    terminal_states=frozenset({LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled}),
    transitions=(
        Transition(LeaveStatus.pending_substitute, LeaveStatus.pending_head, "accept_substitute"),
        # A declined substitute leaves the request open for the requester to pick another
        Transition(LeaveStatus.pending_substitute, LeaveStatus.pending_substitute, "decline_substitute"),
        Transition(LeaveStatus.pending_head, LeaveStatus.approved, "decide"),
        Transition(LeaveStatus.pending_head, LeaveStatus.rejected, "decide"),
        *(Transition(s, s, "edit") for s in _LEAVE_PENDING),
        *(Transition(s, LeaveStatus.cancelled, "cancel") for s in _LEAVE_PENDING),
    ),
)


# ---------------------------------------------------------------------------
# Career movement
# ---------------------------------------------------------------------------
_CAREER_PENDING = APPROVAL_CHAIN[:-1]


def _career_transitions() -> tuple[Transition, ...]:
    edges = []
    for current, nxt in zip(APPROVAL_CHAIN, APPROVAL_CHAIN[1:]):
        edges.append(Transition(current, nxt, "decide"))
    for current in _CAREER_PENDING:
        edges.append(Transition(current, CareerStatus.rejected, "decide"))
        edges.append(Transition(current, current, "edit"))
        edges.append(Transition(current, CareerStatus.cancelled, "cancel"))
    # Administrative stage override: jump to any other chain state or reject
    for current, target in product(_CAREER_PENDING, APPROVAL_CHAIN + (CareerStatus.rejected,)):
        if current != target:
            edges.append(Transition(current, target, "advance"))
    return tuple(edges)


CAREER_WORKFLOW = Workflow(
    name="career movement",
    states=tuple(CareerStatus),
    initial_states=(CareerStatus.pending_dept,),
    terminal_states=frozenset({CareerStatus.approved, CareerStatus.rejected, CareerStatus.cancelled}),
    transitions=_career_transitions(),
)


# ---------------------------------------------------------------------------
# Lab booking
# ---------------------------------------------------------------------------
BOOKING_WORKFLOW = Workflow(
    name="lab booking",
    states=tuple(BookingStatus),
    initial_states=(BookingStatus.confirmed,),
    terminal_states=frozenset({BookingStatus.completed, BookingStatus.cancelled}),
    transitions=(
        Transition(BookingStatus.confirmed, BookingStatus.completed, "set_status"),
        Transition(BookingStatus.confirmed, BookingStatus.cancelled, "set_status"),
    ),
)


# ---------------------------------------------------------------------------
# Research proposal
# ---------------------------------------------------------------------------
_PROPOSAL_OPEN = (ProposalStatus.pending, ProposalStatus.modification_requested)

PROPOSAL_WORKFLOW = Workflow(
    name="research proposal",
    states=tuple(ProposalStatus),
    initial_states=(ProposalStatus.pending,),
    terminal_states=frozenset({ProposalStatus.approved, ProposalStatus.rejected, ProposalStatus.cancelled}),
    transitions=(
        Transition(ProposalStatus.pending, ProposalStatus.approved, "decide"),
        Transition(ProposalStatus.pending, ProposalStatus.rejected, "decide"),
        Transition(ProposalStatus.pending, ProposalStatus.modification_requested, "decide"),
        *(Transition(s, ProposalStatus.pending, "edit") for s in _PROPOSAL_OPEN),
        *(Transition(s, ProposalStatus.cancelled, "cancel") for s in _PROPOSAL_OPEN),
    ),
)
