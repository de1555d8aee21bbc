"""
Work schedule model: one employee's expected working window for one date
"""
from sqlalchemy import Column, Integer, String, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import Base


class WorkSchedule(Base):
    __tablename__ = "work_schedules"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    work_date = Column(Date, nullable=False)
    clock_in = Column(String(5), nullable=False)   # "HH:MM"
    clock_out = Column(String(5), nullable=False)  # "HH:MM"; earlier than clock_in means overnight

    employee = relationship("Employee", back_populates="work_schedules")

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="uq_work_schedules_employee_date"),
    )
