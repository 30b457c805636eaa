from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Login role used for access control."""

    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class EmployeeStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    RESIGNED = "Resigned"


class EmploymentType(str, Enum):
    FULL_TIME = "Full-Time"
    PART_TIME = "Part-Time"
    CONTRACT = "Contract"
    INTERN = "Intern"


class ResignationStatus(str, Enum):
    PENDING = "Pending"
    REVOKED = "Revoked"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LeaveType(str, Enum):
    CASUAL = "Casual"
    SICK = "Sick"
    EARNED = "Earned"
    LOP = "LOP"


class LeaveStatus(str, Enum):
    """Leave approval flow. APPROVED and REJECTED are terminal."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REGULARIZE_UNPAID = "regularize-unpaid"


class RegularizationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class DeductionType(str, Enum):
    """Typed payslip deduction line."""

    LOP = "LOP"
    TAX = "Tax"
    PT = "PT"
    PF = "PF"
    MANUAL = "Manual"
    GST = "GST"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    NOT_PAID = "Not Yet Paid"


class ExpenseType(str, Enum):
    TRAVEL = "Travel"
    FOOD = "Food"
    LODGING = "Lodging"
    MISCELLANEOUS = "Miscellaneous"


class ExpenseStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class TripStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    IN_PROGRESS = "In Progress"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


class DailyLogStatus(str, Enum):
    PENDING = "Pending"
    STARTED = "Started"
    COMPLETED = "Completed"


class LocationType(str, Enum):
    PING = "Ping"
    CHECK_IN = "CheckIn"
    AUTO_ARRIVAL = "AutoArrival"
    START_SHIFT = "StartShift"
    END_SHIFT = "EndShift"
    ACTIVITY = "Activity"
    START_TRIP = "StartTrip"


class DocumentStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SubmissionStatus(str, Enum):
    """Global document submission window."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
