"""Research plan and topic proposals.

Proposals go PENDING -> APPROVED | REJECTED | MODIFICATION_REQUESTED;
an edit sends a proposal back to PENDING. Approving a proposal
materialises it as a topic in the plan within the same transaction.

Near-duplicate titles are reported alongside a successful submission and
never block it.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from approvals.errors import NotFound, ValidationError
from approvals.models.research import (
    ProposalStatus, ResearchAxis, ResearchProposal, ResearchTopic, TopicStatus,
)
from approvals.schemas.actor import Actor
from approvals.schemas.research import ProposalCreate, ProposalUpdate
from approvals.services import audit_trail
from approvals.services.common import atomic, bump, ensure_owner, ensure_role, get_or_404, parse_status
from approvals.services.locks import guard_locks, request_key
from approvals.services.similarity import find_similar
from approvals.workflows import PROPOSAL_WORKFLOW

logger = logging.getLogger(__name__)

DECISIONS = (ProposalStatus.approved, ProposalStatus.rejected, ProposalStatus.modification_requested)


def get_plan(db: Session) -> list[ResearchAxis]:
    return db.query(ResearchAxis).order_by(ResearchAxis.created_at, ResearchAxis.title).all()


def plan_titles(db: Session) -> list[str]:
    return [title for (title,) in db.query(ResearchTopic.title).all()]


def similar_titles(db: Session, candidate: str) -> list[str]:
    return find_similar(plan_titles(db), candidate)


def create_axis(db: Session, actor: Actor, title: str) -> ResearchAxis:
    ensure_role(actor)
    title = (title or "").strip()
    if not title:
        raise ValidationError("title is required", field="title")
    with atomic(db):
        axis = ResearchAxis(title=title)
        db.add(axis)
        db.flush()
        audit_trail.record(db, "Research axis added", actor, f"Axis added to the plan: {title}")
    db.refresh(axis)
    logger.info("Research axis %s created by %s", axis.axis_id, actor.actor_id)
    return axis


def set_topic_status(db: Session, topic_id: str, actor: Actor, new_status: str) -> ResearchTopic:
    ensure_role(actor)
    target = parse_status(TopicStatus, new_status)
    with atomic(db):
        topic = db.get(ResearchTopic, topic_id)
        if topic is None:
            raise NotFound(f"Research topic {topic_id} not found", topic_id=topic_id)
        before = topic.status
        topic.status = target
        audit_trail.record(
            db, "Research topic status changed", actor,
            f'"{topic.title}" changed from {before.value} to {target.value}',
        )
    db.refresh(topic)
    return topic


def get_proposal(db: Session, request_id: str) -> ResearchProposal:
    return get_or_404(db, ResearchProposal, request_id, "Research proposal")


def list_proposals(
    db: Session,
    requester_id: Optional[str] = None,
    status: Optional[str] = None,
) -> list[ResearchProposal]:
    query = db.query(ResearchProposal)
    if requester_id:
        query = query.filter(ResearchProposal.requester_id == requester_id)
    if status:
        query = query.filter(ResearchProposal.status == parse_status(ProposalStatus, status))
    return query.order_by(ResearchProposal.created_at.desc()).all()


def _ensure_axis(db: Session, axis_id: str) -> None:
    if db.get(ResearchAxis, axis_id) is None:
        raise ValidationError(f"Unknown research axis {axis_id}", field="axis_id")


def submit_proposal(db: Session, actor: Actor, payload: ProposalCreate) -> tuple[ResearchProposal, list[str]]:
    title = (payload.title or "").strip()
    if not title:
        raise ValidationError("title is required", field="title")
    _ensure_axis(db, payload.axis_id)
    warnings = similar_titles(db, title)

    with atomic(db):
        proposal = ResearchProposal(
            requester_id=actor.actor_id,
            requester_name=actor.actor_name,
            title=title,
            axis_id=payload.axis_id,
            degree=payload.degree,
            justification=payload.justification,
            applied_goal=payload.applied_goal,
            student_name=payload.student_name or None,
            status=ProposalStatus.pending,
            initial_status=ProposalStatus.pending.value,
            version=1,
        )
        db.add(proposal)
        db.flush()
        audit_trail.record(
            db, "Research proposal submitted", actor, f"New proposal: {title}",
            request=proposal, to_status=ProposalStatus.pending,
        )

    db.refresh(proposal)
    if warnings:
        logger.info("Proposal %s resembles existing topics: %s", proposal.request_id, warnings)
    return proposal, warnings


def edit_proposal(
    db: Session,
    request_id: str,
    actor: Actor,
    changes: ProposalUpdate,
) -> tuple[ResearchProposal, list[str]]:
    updates = changes.model_dump(exclude_unset=True)
    with guard_locks.hold(request_key(request_id)), atomic(db):
        proposal = get_proposal(db, request_id)
        ensure_owner(proposal, actor)
        before = proposal.status
        PROPOSAL_WORKFLOW.ensure(before, ProposalStatus.pending, "edit")
        if "title" in updates:
            title = (updates["title"] or "").strip()
            if not title:
                raise ValidationError("title is required", field="title")
            proposal.title = title
        if updates.get("axis_id"):
            _ensure_axis(db, updates["axis_id"])
            proposal.axis_id = updates["axis_id"]
        for field in ("degree", "justification", "applied_goal"):
            if updates.get(field) is not None:
                setattr(proposal, field, updates[field])
        if "student_name" in updates:
            proposal.student_name = updates["student_name"] or None
        proposal.status = ProposalStatus.pending
        bump(proposal)
        audit_trail.record(
            db, "Research proposal edited", actor, f"Proposal edited: {proposal.title}",
            request=proposal, from_status=before, to_status=ProposalStatus.pending,
        )
        warnings = similar_titles(db, proposal.title)

    db.refresh(proposal)
    return proposal, warnings


def decide_proposal(
    db: Session,
    request_id: str,
    actor: Actor,
    decision: str,
    notes: Optional[str] = None,
) -> ResearchProposal:
    target = parse_status(ProposalStatus, decision, "decision")
    if target not in DECISIONS:
        raise ValidationError(
            "decision must be APPROVED, REJECTED or MODIFICATION_REQUESTED", field="decision",
        )

    with guard_locks.hold(request_key(request_id)), atomic(db):
        proposal = get_proposal(db, request_id)
        ensure_role(actor)
        before = proposal.status
        PROPOSAL_WORKFLOW.ensure(before, target, "decide")
        proposal.status = target
        proposal.review_notes = notes
        bump(proposal)

        details = f"Proposal {target.value.lower().replace('_', ' ')}: {proposal.title}"
        if target == ProposalStatus.approved:
            topic = ResearchTopic(
                axis_id=proposal.axis_id,
                title=proposal.title,
                status=TopicStatus.in_progress if proposal.student_name else TopicStatus.available,
                proposal_id=proposal.request_id,
            )
            db.add(topic)
            details += " (added to the research plan)"
        audit_trail.record(
            db, "Research proposal decision", actor, details,
            request=proposal, from_status=before, to_status=target,
        )

    db.refresh(proposal)
    logger.info("Proposal %s -> %s by %s", request_id, target.value, actor.actor_id)
    return proposal


def cancel_proposal(db: Session, request_id: str, actor: Actor) -> ResearchProposal:
    with guard_locks.hold(request_key(request_id)), atomic(db):
        proposal = get_proposal(db, request_id)
        ensure_owner(proposal, actor)
        before = proposal.status
        PROPOSAL_WORKFLOW.ensure(before, ProposalStatus.cancelled, "cancel")
        proposal.status = ProposalStatus.cancelled
        bump(proposal)
        audit_trail.record(
            db, "Research proposal withdrawn", actor, f"Proposal withdrawn: {proposal.title}",
            request=proposal, from_status=before, to_status=ProposalStatus.cancelled,
        )

    db.refresh(proposal)
    return proposal
