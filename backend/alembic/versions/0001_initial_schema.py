"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2025-01-05

Creates all tables for the approval core:
leave_requests, career_requests, lab_bookings, research_axes,
research_proposals, research_topics, audit_entries.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _request_columns() -> list[sa.Column]:
    return [
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("requester_id", sa.String(36), nullable=False, index=True),
        sa.Column("requester_name", sa.String(150), nullable=False),
        sa.Column("initial_status", sa.String(30), nullable=False),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # --- leave_requests ---
    op.create_table(
        "leave_requests",
        *_request_columns(),
        sa.Column("leave_type", sa.String(20), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("days_count", sa.Integer, nullable=False),
        sa.Column("substitute_id", sa.String(36), nullable=True, index=True),
        sa.Column("substitute_name", sa.String(150), nullable=True),
        sa.Column("substitute_responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("substitute_decline_reason", sa.String(500), nullable=True),
        sa.Column("head_notes", sa.String(500), nullable=True),
        sa.Column("details", sa.JSON, nullable=False),
        sa.Column("attachment_urls", sa.JSON, nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
    )

    # --- career_requests ---
    op.create_table(
        "career_requests",
        *_request_columns(),
        sa.Column("movement_kind", sa.String(20), nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("details", sa.JSON, nullable=False),
        sa.Column("attachment_urls", sa.JSON, nullable=False),
        sa.Column("review_notes", sa.String(500), nullable=True),
        sa.Column("status", sa.String(30), nullable=False),
    )

    # --- lab_bookings ---
    op.create_table(
        "lab_bookings",
        *_request_columns(),
        sa.Column("resource_key", sa.String(200), nullable=False),
        sa.Column("booking_date", sa.Date, nullable=False, index=True),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("researcher_name", sa.String(150), nullable=False),
        sa.Column("lab_name", sa.String(200), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
    )

    # --- research_axes ---
    op.create_table(
        "research_axes",
        sa.Column("axis_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- research_proposals ---
    op.create_table(
        "research_proposals",
        *_request_columns(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("axis_id", sa.String(36), sa.ForeignKey("research_axes.axis_id"), nullable=False),
        sa.Column("degree", sa.String(10), nullable=False),
        sa.Column("justification", sa.Text, nullable=False, server_default=""),
        sa.Column("applied_goal", sa.Text, nullable=False, server_default=""),
        sa.Column("student_name", sa.String(150), nullable=True),
        sa.Column("review_notes", sa.String(500), nullable=True),
        sa.Column("status", sa.String(30), nullable=False),
    )

    # --- research_topics ---
    op.create_table(
        "research_topics",
        sa.Column("topic_id", sa.String(36), primary_key=True),
        sa.Column("axis_id", sa.String(36), sa.ForeignKey("research_axes.axis_id"), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("proposal_id", sa.String(36), sa.ForeignKey("research_proposals.request_id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- audit_entries ---
    op.create_table(
        "audit_entries",
        sa.Column("entry_id", sa.String(36), primary_key=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("actor_id", sa.String(36), nullable=True),
        sa.Column("actor_name", sa.String(150), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("details", sa.Text, nullable=False, server_default=""),
        sa.Column("request_kind", sa.String(30), nullable=True),
        sa.Column("request_id", sa.String(36), nullable=True, index=True),
        sa.Column("from_status", sa.String(30), nullable=True),
        sa.Column("to_status", sa.String(30), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("audit_entries")
    op.drop_table("research_topics")
    op.drop_table("research_proposals")
    op.drop_table("research_axes")
    op.drop_table("lab_bookings")
    op.drop_table("career_requests")
    op.drop_table("leave_requests")
