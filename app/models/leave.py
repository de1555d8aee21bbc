"""
Leave models
"""
from sqlalchemy import (
    Column,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    Numeric,
    Enum as SQLEnum,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
import enum
from app.db.base import Base


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ApprovalDecision(str, enum.Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type = Column(String(32), nullable=False, index=True)  # code from the leave type registry
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    hours = Column(Numeric(7, 2), nullable=False)
    reason = Column(Text, nullable=False)
    relationship_code = Column(String(32), nullable=True)  # bereavement
    child_birth_date = Column(Date, nullable=True)  # parental
    attachment_ref = Column(String, nullable=True)
    status = Column(
        SQLEnum(LeaveStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        server_default=text("'pending'"),
    )
    approval_level = Column(Integer, nullable=False, default=0)  # 0 = auto-approved / not escalated
    current_approver_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    # Relationships
    employee = relationship("Employee", foreign_keys=[employee_id], back_populates="leave_requests")
    current_approver = relationship("Employee", foreign_keys=[current_approver_id])
    approvals = relationship(
        "ApprovalRecord",
        back_populates="leave_request",
        order_by="ApprovalRecord.level",
        cascade="all, delete-orphan",
    )
    approval_chain = relationship(
        "LeaveApprovalChainStep",
        back_populates="leave_request",
        order_by="LeaveApprovalChainStep.level",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_leave_requests_employee_dates", "employee_id", "start_at", "end_at"),
        CheckConstraint("start_at < end_at", name="check_start_before_end"),
        CheckConstraint("approval_level >= 0", name="check_approval_level_non_negative"),
    )

    @property
    def is_auto_approved(self) -> bool:
        return self.status == LeaveStatus.APPROVED and self.approval_level == 0


class ApprovalRecord(Base):
    """Append-only audit entry, one per (request, level) once that level is acted upon."""
    __tablename__ = "approval_records"

    id = Column(Integer, primary_key=True, index=True)
    leave_request_id = Column(Integer, ForeignKey("leave_requests.id"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("employees.id"), nullable=True)  # NULL for the system approver
    approver_name = Column(String, nullable=False)
    level = Column(Integer, nullable=False)
    decision = Column(
        SQLEnum(ApprovalDecision, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    comment = Column(Text, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=False)

    leave_request = relationship("LeaveRequest", back_populates="approvals")

    __table_args__ = (
        UniqueConstraint("leave_request_id", "level", name="uq_approval_records_request_level"),
    )


class LeaveApprovalChainStep(Base):
    """Approver expected at each escalation level, fixed when the request is submitted."""
    __tablename__ = "leave_approval_chain"

    id = Column(Integer, primary_key=True, index=True)
    leave_request_id = Column(Integer, ForeignKey("leave_requests.id"), nullable=False, index=True)
    level = Column(Integer, nullable=False)  # 1 = nearest supervisor
    approver_id = Column(Integer, ForeignKey("employees.id"), nullable=False)

    leave_request = relationship("LeaveRequest", back_populates="approval_chain")

    __table_args__ = (
        UniqueConstraint("leave_request_id", "level", name="uq_leave_approval_chain_request_level"),
        CheckConstraint("level >= 1", name="check_approval_chain_level_positive"),
    )
