"""Transition graphs: structure, edges, and reachability under random operation sequences."""
import uuid
from datetime import date

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from approvals.errors import InvalidTransition, WorkflowError
from approvals.models.career import CareerMovementRequest, CareerStatus, MovementKind
from approvals.models.lab_booking import BookingStatus, LabBooking
from approvals.models.leave import LeaveRequest, LeaveStatus, LeaveType
from approvals.models.research import ProposalStatus
from approvals.schemas.career import CareerCreate, CareerUpdate
from approvals.schemas.lab_booking import BookingCreate
from approvals.schemas.leave import LeaveCreate, LeaveUpdate
from approvals.services import booking_service, career_service, leave_service
from approvals.workflows import (
    BOOKING_WORKFLOW, CAREER_WORKFLOW, LEAVE_WORKFLOW, PROPOSAL_WORKFLOW, Transition, Workflow,
)
from tests.conftest import ADMIN, HEAD, LOAN_DETAILS, STAFF, STUDENT, SUBSTITUTE, make_actor

ALL_WORKFLOWS = [LEAVE_WORKFLOW, CAREER_WORKFLOW, BOOKING_WORKFLOW, PROPOSAL_WORKFLOW]
ACTIONS = sorted({t.action for wf in ALL_WORKFLOWS for t in wf.transitions})


class TestGraphStructure:

    @pytest.mark.parametrize("workflow", ALL_WORKFLOWS, ids=lambda wf: wf.name)
    def test_terminal_states_have_no_exits(self, workflow):
        for state in workflow.terminal_states:
            assert workflow.targets(state) == set()

    @pytest.mark.parametrize("workflow", ALL_WORKFLOWS, ids=lambda wf: wf.name)
    def test_every_non_terminal_state_can_finish(self, workflow):
        for state in workflow.states:
            if not workflow.is_terminal(state):
                assert workflow.targets(state), f"{state} is a dead end"

    def test_graph_rejects_edge_out_of_terminal(self):
        with pytest.raises(ValueError):
            Workflow(
                name="broken",
                states=tuple(BookingStatus),
                initial_states=(BookingStatus.confirmed,),
                terminal_states=frozenset({BookingStatus.cancelled}),
                transitions=(Transition(BookingStatus.cancelled, BookingStatus.confirmed, "set_status"),),
            )


class TestFamilyEdges:

    def test_leave_decline_is_a_self_loop(self):
        assert LEAVE_WORKFLOW.targets(LeaveStatus.pending_substitute, "decline_substitute") == {
            LeaveStatus.pending_substitute
        }

    def test_leave_head_cannot_decide_before_consent(self):
        assert not LEAVE_WORKFLOW.allows(LeaveStatus.pending_substitute, LeaveStatus.approved, "decide")

    def test_career_decide_is_sequential(self):
        assert CAREER_WORKFLOW.targets(CareerStatus.pending_dept, "decide") == {
            CareerStatus.pending_college, CareerStatus.rejected,
        }

    def test_career_advance_reaches_every_other_stage(self):
        assert CAREER_WORKFLOW.targets(CareerStatus.pending_dept, "advance") == {
            CareerStatus.pending_college, CareerStatus.pending_univ,
            CareerStatus.approved, CareerStatus.rejected,
        }

    def test_proposal_edit_returns_to_pending(self):
        assert PROPOSAL_WORKFLOW.allows(
            ProposalStatus.modification_requested, ProposalStatus.pending, "edit",
        )

    def test_ensure_reports_current_status(self):
        with pytest.raises(InvalidTransition) as exc:
            BOOKING_WORKFLOW.ensure(BookingStatus.completed, BookingStatus.cancelled, "set_status")
        assert exc.value.current_status == "COMPLETED"
        assert exc.value.status_code == 409


@st.composite
def walks(draw):
    workflow = draw(st.sampled_from(ALL_WORKFLOWS))
    steps = draw(st.lists(
        st.tuples(st.sampled_from(workflow.states), st.sampled_from(ACTIONS)),
        max_size=25,
    ))
    return workflow, steps


class TestReachability:

    @given(walks())
    @settings(max_examples=200, deadline=None)
    def test_random_walk_stays_inside_graph(self, walk):
        workflow, steps = walk
        current = workflow.initial_states[0]
        for target, action in steps:
            was_terminal = workflow.is_terminal(current)
            try:
                workflow.ensure(current, target, action)
            except InvalidTransition:
                continue
            assert not was_terminal
            current = target
            assert current in workflow.states

    @given(ops=st.lists(
        st.sampled_from(["accept", "accept_other", "decline", "approve", "reject", "cancel",
                         "new_substitute", "edit_dates"]),
        max_size=12,
    ))
    @settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_leave_operations_never_escape_leave_states(self, db, ops):
        other = make_actor("staff-3", "Dr. Laila Hassan")
        leave = leave_service.submit_leave(db, STAFF, LeaveCreate(
            leave_type=LeaveType.annual,
            start_date=date(2025, 7, 1),
            end_date=date(2025, 7, 5),
            substitute_id=SUBSTITUTE.actor_id,
            substitute_name=SUBSTITUTE.actor_name,
            details={"address": "Cairo", "phone": "0100"},
        ))
        request_id = leave.request_id

        run = {
            "accept": lambda: leave_service.respond_as_substitute(db, request_id, SUBSTITUTE, True),
            "accept_other": lambda: leave_service.respond_as_substitute(db, request_id, other, True),
            "decline": lambda: leave_service.respond_as_substitute(db, request_id, SUBSTITUTE, False, "busy"),
            "approve": lambda: leave_service.decide_leave(db, request_id, HEAD, "APPROVED"),
            "reject": lambda: leave_service.decide_leave(db, request_id, ADMIN, "REJECTED"),
            "cancel": lambda: leave_service.cancel_leave(db, request_id, STAFF),
            "new_substitute": lambda: leave_service.edit_leave(db, request_id, STAFF, LeaveUpdate(
                substitute_id=other.actor_id, substitute_name=other.actor_name,
            )),
            "edit_dates": lambda: leave_service.edit_leave(db, request_id, STAFF, LeaveUpdate(
                end_date=date(2025, 7, 3),
            )),
        }

        previous = LeaveStatus.pending_substitute
        for op in ops:
            try:
                run[op]()
            except WorkflowError:
                pass
            db.expire_all()
            status = db.get(LeaveRequest, request_id).status
            assert status in LEAVE_WORKFLOW.states
            if LEAVE_WORKFLOW.is_terminal(previous):
                assert status == previous
            previous = status

    @given(ops=st.lists(
        st.tuples(
            st.sampled_from(["approve", "reject", "student_decides", "advance", "head_advances",
                             "edit_details", "edit_dates", "cancel", "admin_cancels"]),
            st.sampled_from([s.value for s in CareerStatus] + ["ON_HOLD"]),
        ),
        max_size=12,
    ))
    @settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_career_operations_never_escape_career_states(self, db, ops):
        # Fresh requester per example so approved loans never pile up against the ceiling
        owner = make_actor(f"staff-{uuid.uuid4().hex[:8]}", "Dr. Nadia Fouad")
        req = career_service.submit_career(db, owner, CareerCreate(
            movement_kind=MovementKind.loan,
            start_date=date(2025, 9, 1),
            end_date=date(2026, 9, 1),
            details=LOAN_DETAILS,
        ))
        request_id = req.request_id

        def run(op, status):
            if op == "approve":
                career_service.decide_career(db, request_id, HEAD, "APPROVED")
            elif op == "reject":
                career_service.decide_career(db, request_id, HEAD, "REJECTED")
            elif op == "student_decides":
                career_service.decide_career(db, request_id, STUDENT, "APPROVED")
            elif op == "advance":
                career_service.advance_career(db, request_id, ADMIN, status)
            elif op == "head_advances":
                career_service.advance_career(db, request_id, HEAD, status)
            elif op == "edit_details":
                career_service.edit_career(db, request_id, owner, CareerUpdate(
                    details={"institution": "Qassim University"},
                ))
            elif op == "edit_dates":
                career_service.edit_career(db, request_id, owner, CareerUpdate(end_date=date(2026, 3, 1)))
            elif op == "cancel":
                career_service.cancel_career(db, request_id, owner)
            else:
                career_service.cancel_career(db, request_id, ADMIN)

        previous = CareerStatus.pending_dept
        for op, status in ops:
            try:
                run(op, status)
            except WorkflowError:
                pass
            db.expire_all()
            current = db.get(CareerMovementRequest, request_id).status
            assert current in CAREER_WORKFLOW.states
            if CAREER_WORKFLOW.is_terminal(previous):
                assert current == previous
            previous = current

    @given(ops=st.lists(
        st.tuples(
            st.sampled_from(["reviewer", "owner", "stranger"]),
            st.sampled_from(["CONFIRMED", "COMPLETED", "CANCELLED", "cancelled", "NO_SHOW"]),
        ),
        max_size=10,
    ))
    @settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_booking_status_changes_never_escape_booking_states(self, db, ops):
        actors = {"reviewer": HEAD, "owner": STAFF, "stranger": STUDENT}
        booking = booking_service.book_lab(db, STAFF, BookingCreate(
            resource_key=f"Centrifuge {uuid.uuid4().hex[:8]}",
            booking_date=date(2025, 2, 1),
            start_time="09:00",
            end_time="10:00",
        ))
        request_id = booking.request_id

        previous = BookingStatus.confirmed
        for who, status in ops:
            try:
                booking_service.set_booking_status(db, request_id, actors[who], status)
            except WorkflowError:
                pass
            db.expire_all()
            current = db.get(LabBooking, request_id).status
            assert current in BOOKING_WORKFLOW.states
            if BOOKING_WORKFLOW.is_terminal(previous):
                assert current == previous
            previous = current
