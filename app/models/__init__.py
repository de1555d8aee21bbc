"""
Database models
"""
from app.models.employee import Employee, Gender
from app.models.work_schedule import WorkSchedule
from app.models.audit_log import AuditLog
from app.models.leave import (
    LeaveRequest,
    ApprovalRecord,
    LeaveApprovalChainStep,
    LeaveStatus,
    ApprovalDecision,
)

__all__ = [
    "Employee",
    "Gender",
    "WorkSchedule",
    "AuditLog",
    "LeaveRequest",
    "ApprovalRecord",
    "LeaveApprovalChainStep",
    "LeaveStatus",
    "ApprovalDecision",
]
