"""Research plan and proposal ORM models."""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from approvals.database import Base
from approvals.models.request_base import RequestMixin, RequestKind


class TopicStatus(str, enum.Enum):
    available = "AVAILABLE"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"


class ProposalStatus(str, enum.Enum):
    pending = "PENDING"
    modification_requested = "MODIFICATION_REQUESTED"
    approved = "APPROVED"
    rejected = "REJECTED"
    cancelled = "CANCELLED"


class Degree(str, enum.Enum):
    msc = "MSc"
    phd = "PhD"


class ResearchAxis(Base):
    __tablename__ = "research_axes"

    axis_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    topics = relationship("ResearchTopic", back_populates="axis", cascade="all, delete-orphan")


class ResearchTopic(Base):
    __tablename__ = "research_topics"

    topic_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    axis_id = Column(String(36), ForeignKey("research_axes.axis_id"), nullable=False)
    title = Column(String(500), nullable=False)
    status = Column(SAEnum(TopicStatus), nullable=False, default=TopicStatus.available)
    proposal_id = Column(String(36), ForeignKey("research_proposals.request_id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    axis = relationship("ResearchAxis", back_populates="topics")


class ResearchProposal(RequestMixin, Base):
    __tablename__ = "research_proposals"

    kind = RequestKind.research_proposal

    title = Column(String(500), nullable=False)
    axis_id = Column(String(36), ForeignKey("research_axes.axis_id"), nullable=False)
    degree = Column(SAEnum(Degree), nullable=False)
    justification = Column(Text, nullable=False, default="")
    applied_goal = Column(Text, nullable=False, default="")
    student_name = Column(String(150), nullable=True)
    review_notes = Column(String(500), nullable=True)
    status = Column(SAEnum(ProposalStatus), nullable=False)
