"""
Leave type registry - static configuration per leave category
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, List, Optional

from app.core.errors import UnknownLeaveType
from app.models.employee import Gender


class LeaveTypeCode(str, Enum):
    ANNUAL = "annual"
    PERSONAL = "personal"
    SICK = "sick"
    MENSTRUAL = "menstrual"
    MARRIAGE = "marriage"
    BEREAVEMENT = "bereavement"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    PARENTAL = "parental"
    OCCUPATIONAL = "occupational"
    OTHER = "other"


@dataclass(frozen=True)
class LeaveTypeConfig:
    code: LeaveTypeCode
    name: str
    is_paid: bool
    requires_attachment: bool
    annual_reset: bool
    max_days_per_year: Optional[float] = None
    gender_restriction: Optional[str] = None
    description: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        data["code"] = self.code.value
        return data


_CONFIGS = [
    LeaveTypeConfig(
        code=LeaveTypeCode.ANNUAL,
        name="Annual leave",
        is_paid=True,
        requires_attachment=False,
        annual_reset=True,
        description="Entitlement grows with seniority (3 to 30 days per year)",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.PERSONAL,
        name="Personal leave (unpaid)",
        is_paid=False,
        requires_attachment=False,
        annual_reset=True,
        max_days_per_year=14,
        description="Up to 14 days per year",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.SICK,
        name="Sick leave",
        is_paid=True,
        requires_attachment=True,
        annual_reset=True,
        max_days_per_year=30,
        description="Up to 30 days per year, shared with menstrual leave",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.MENSTRUAL,
        name="Menstrual leave",
        is_paid=True,
        requires_attachment=False,
        annual_reset=True,
        max_days_per_year=12,
        gender_restriction=Gender.FEMALE.value,
        description="One day per calendar month, counted against the sick leave quota",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.MARRIAGE,
        name="Marriage leave",
        is_paid=True,
        requires_attachment=True,
        annual_reset=False,
        max_days_per_year=8,
        description="Once only, up to 8 days",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.BEREAVEMENT,
        name="Bereavement leave",
        is_paid=True,
        requires_attachment=True,
        annual_reset=True,
        description="Parent/spouse/child 8 days, grandparent/sibling 6 days, other relatives 3 days",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.MATERNITY,
        name="Maternity leave",
        is_paid=True,
        requires_attachment=True,
        annual_reset=True,
        max_days_per_year=56,
        gender_restriction=Gender.FEMALE.value,
        description="Fixed 8 weeks (56 days)",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.PATERNITY,
        name="Paternity leave",
        is_paid=True,
        requires_attachment=False,
        annual_reset=True,
        max_days_per_year=7,
        gender_restriction=Gender.MALE.value,
        description="Up to 7 days",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.PARENTAL,
        name="Parental leave (unpaid)",
        is_paid=False,
        requires_attachment=True,
        annual_reset=False,
        description="Up to 2 years per child, ending before the child turns 3",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.OCCUPATIONAL,
        name="Occupational injury leave",
        is_paid=True,
        requires_attachment=True,
        annual_reset=False,
        description="No day limit, requires proof of work injury, not counted as sick leave",
    ),
    LeaveTypeConfig(
        code=LeaveTypeCode.OTHER,
        name="Other (unpaid)",
        is_paid=False,
        requires_attachment=False,
        annual_reset=True,
        description="Free-form leave reviewed manually by the supervisor",
    ),
]

LEAVE_TYPES: Dict[str, LeaveTypeConfig] = {config.code.value: config for config in _CONFIGS}

# Bereavement ceilings by relationship (days)
BEREAVEMENT_DAYS: Dict[str, float] = {
    "parent": 8,
    "spouse": 8,
    "child": 8,
    "grandparent": 6,
    "sibling": 6,
    "other": 3,
}
DEFAULT_BEREAVEMENT_DAYS = 3


def get_leave_type(code: Optional[str]) -> LeaveTypeConfig:
    """
    Look up a leave type by code.

    Raises:
        UnknownLeaveType: If the code is missing or not registered
    """
    if code is None or (isinstance(code, str) and not code.strip()):
        raise UnknownLeaveType("Leave type code is required")
    key = code.value if isinstance(code, Enum) else str(code).strip().lower()
    config = LEAVE_TYPES.get(key)
    if config is None:
        raise UnknownLeaveType(f"Unknown leave type: {code}")
    return config


def list_leave_types() -> List[LeaveTypeConfig]:
    return list(LEAVE_TYPES.values())


def bereavement_ceiling(relationship: Optional[str]) -> float:
    """Allowed bereavement days for a relationship; unknown relationships get the default."""
    if not relationship:
        return DEFAULT_BEREAVEMENT_DAYS
    return BEREAVEMENT_DAYS.get(relationship.strip().lower(), DEFAULT_BEREAVEMENT_DAYS)
