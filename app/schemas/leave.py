"""
Leave schemas
"""
from datetime import date, datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, AliasChoices, model_validator
from pydantic import ConfigDict
from app.models.leave import LeaveStatus, ApprovalDecision
from app.services.approval_workflow import describe_state


# --- Hours calculator ---


class WorkScheduleIn(BaseModel):
    """One day's expected working window"""
    work_date: Optional[date] = Field(
        None,
        validation_alias=AliasChoices("work_date", "date"),
        description="Date the schedule applies to (required by the schedule method)"
    )
    clock_in: str = Field(..., description="Clock-in time (HH:MM)")
    clock_out: str = Field(..., description="Clock-out time (HH:MM); earlier than clock_in means overnight")


class HoursCalculationRequest(BaseModel):
    """Schema for computing consumed hours of a leave range"""
    start: datetime = Field(..., description="Leave start")
    end: datetime = Field(..., description="Leave end")
    schedules: Optional[List[WorkScheduleIn]] = Field(
        None,
        description="Per-date work schedules; when omitted the approximate weekday method is used"
    )
    daily_hours: Optional[float] = Field(None, gt=0, le=24, description="Per-day cap for the approximate method")


class HoursCalculationOut(BaseModel):
    hours: float
    method: str = Field(..., description="'schedule' or 'simple'")
    approximate: bool = Field(..., description="True when the figure is an estimate without schedule data")


# --- Validation engine ---


class LeaveExtrasIn(BaseModel):
    relationship: Optional[str] = Field(None, description="Relationship to the deceased (bereavement)")
    child_birth_date: Optional[date] = Field(None, description="Child birth date (parental)")
    attachment_ref: Optional[str] = Field(None, description="Reference to the uploaded attachment")


class RequesterProfileIn(BaseModel):
    hire_date: Optional[date] = None
    gender: Optional[str] = None


class UsageIn(BaseModel):
    """Prior consumption snapshot, in days"""
    used_days: Dict[str, float] = Field(default_factory=dict, description="Used days per leave type this year")
    monthly_menstrual: Dict[str, float] = Field(default_factory=dict, description="Menstrual days per YYYY-MM")
    marriage_used: bool = False
    bereavement_used: Dict[str, float] = Field(default_factory=dict, description="Bereavement days per relationship")


class ExistingRequestIn(BaseModel):
    id: Optional[int] = None
    leave_type: str
    start: datetime
    end: datetime
    status: LeaveStatus
    child_birth_date: Optional[date] = None


class LeaveValidateRequest(BaseModel):
    """Schema for a validation preview (no persistence)"""
    leave_type: str = Field(..., description="Leave type code")
    start: datetime
    end: datetime
    hours: float = Field(..., description="Consumed hours for the range")
    reason: Optional[str] = Field("", description="Reason for leave")
    extras: LeaveExtrasIn = Field(default_factory=LeaveExtrasIn)
    requester_profile: RequesterProfileIn = Field(default_factory=RequesterProfileIn)
    usage: UsageIn = Field(default_factory=UsageIn)
    existing_requests: List[ExistingRequestIn] = Field(default_factory=list)


class ValidationResultOut(BaseModel):
    errors: List[str]
    warnings: List[str]
    is_valid: bool


# --- Lifecycle ---


class LeaveApplyRequest(BaseModel):
    """Schema for applying leave"""
    employee_id: int = Field(..., description="Requester ID")
    leave_type: str = Field(..., description="Leave type code")
    start: datetime = Field(..., description="Start of leave")
    end: datetime = Field(..., description="End of leave")
    reason: str = Field(..., description="Reason for leave")
    relationship: Optional[str] = Field(None, description="Relationship (bereavement)")
    child_birth_date: Optional[date] = Field(None, description="Child birth date (parental)")
    attachment_ref: Optional[str] = Field(None, description="Attachment reference")


class ApprovalActionRequest(BaseModel):
    """Schema for approving or rejecting at a level"""
    acting_approver_id: int = Field(..., description="ID of the approver acting")
    expected_level: int = Field(..., ge=1, description="Level the approver believes the request is pending at")
    comment: Optional[str] = Field(None, description="Comment (required for rejection)")


class CancelRequest(BaseModel):
    employee_id: int = Field(..., description="Requester ID")


class ApprovalRecordOut(BaseModel):
    id: int
    leave_request_id: int
    approver_id: Optional[int]
    approver_name: str
    level: int
    decision: ApprovalDecision
    comment: Optional[str]
    decided_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeaveOut(BaseModel):
    """Schema for leave output"""
    id: int
    employee_id: int
    leave_type: str
    start_at: datetime
    end_at: datetime
    hours: float
    reason: str
    relationship_code: Optional[str] = None
    child_birth_date: Optional[date] = None
    attachment_ref: Optional[str] = None
    status: LeaveStatus
    approval_level: int
    current_approver_id: Optional[int] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    approvals: List[ApprovalRecordOut] = Field(default_factory=list)
    state: Optional[str] = Field(None, description="auto-approved, pending@L, approved, rejected or cancelled")

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def set_state(self) -> "LeaveOut":
        self.state = describe_state(self.status, self.approval_level)
        return self


class SubmissionOut(BaseModel):
    leave: LeaveOut
    warnings: List[str]
    auto_approved: bool
    approximate_hours: bool


class ActionOut(BaseModel):
    leave: LeaveOut
    record: Optional[ApprovalRecordOut] = None


class LeaveTypeOut(BaseModel):
    code: str
    name: str
    is_paid: bool
    requires_attachment: bool
    annual_reset: bool
    max_days_per_year: Optional[float] = None
    gender_restriction: Optional[str] = None
    description: str


class LeaveListResponse(BaseModel):
    """Schema for leave list response"""
    items: List[LeaveOut]
    total: int
