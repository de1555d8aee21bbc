"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("employees.id"), nullable=True)  # NULL when the system acts
    action = Column(String, nullable=False)  # e.g., "LEAVE_SUBMIT", "LEAVE_APPROVE", "LEAVE_CANCEL"
    entity_type = Column(String, nullable=False)  # e.g., "leave_requests"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
