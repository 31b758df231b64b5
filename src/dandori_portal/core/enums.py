from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """User roles used for access control."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    EXECUTIVE = "executive"
    HR = "hr"
    ADMIN = "admin"
    APPLICANT = "applicant"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    RETIRED = "retired"


class TenantStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class PunchType(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    BREAK_START = "break_start"
    BREAK_END = "break_end"


class AttendanceStatus(str, Enum):
    """Daily attendance state derived from the day's punches."""

    WORKING = "working"
    ON_BREAK = "on_break"
    COMPLETED = "completed"
    ABSENT = "absent"


class Punctuality(str, Enum):
    ON_TIME = "on_time"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    LATE_EARLY_LEAVE = "late_early_leave"


class LeaveType(str, Enum):
    PAID = "paid"
    SICK = "sick"
    SPECIAL = "special"
    COMPENSATORY = "compensatory"
    HALF_DAY_AM = "half_day_am"
    HALF_DAY_PM = "half_day_pm"

    @property
    def is_half_day(self) -> bool:
        return self in (LeaveType.HALF_DAY_AM, LeaveType.HALF_DAY_PM)

    @property
    def uses_paid_balance(self) -> bool:
        return self == LeaveType.PAID or self.is_half_day


class LeaveStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class WorkflowType(str, Enum):
    LEAVE_REQUEST = "leave_request"
    OVERTIME_REQUEST = "overtime_request"
    EXPENSE_CLAIM = "expense_claim"
    BUSINESS_TRIP = "business_trip"
    PURCHASE_REQUEST = "purchase_request"
    ATTENDANCE_CORRECTION = "attendance_correction"


class WorkflowStatus(str, Enum):
    """Overall state of an approval request."""

    DRAFT = "draft"
    PENDING = "pending"
    PARTIALLY_APPROVED = "partially_approved"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"
    CANCELLED = "cancelled"

    @property
    def is_open(self) -> bool:
        return self in (WorkflowStatus.PENDING, WorkflowStatus.PARTIALLY_APPROVED)

    @property
    def is_final(self) -> bool:
        return self in (WorkflowStatus.APPROVED, WorkflowStatus.REJECTED, WorkflowStatus.CANCELLED)


class StepStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SKIPPED = "skipped"


class ExecutionMode(str, Enum):
    SERIAL = "serial"
    PARALLEL = "parallel"


class ApproverType(str, Enum):
    USER = "user"
    ROLE = "role"
    MANAGER = "manager"
    POSITION = "position"


class FlowType(str, Enum):
    ORGANIZATION = "organization"
    CUSTOM = "custom"


class ConditionOperator(str, Enum):
    GTE = "gte"
    LTE = "lte"
    GT = "gt"
    LT = "lt"
    EQ = "eq"
    NE = "ne"


class Urgency(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class EmploymentType(str, Enum):
    MONTHLY = "monthly"
    HOURLY = "hourly"


class AllowanceCode(str, Enum):
    POSITION = "position"
    COMMUTE = "commute"
    HOUSING = "housing"
    FAMILY = "family"
    QUALIFICATION = "qualification"
    OTHER = "other"


class PaySlipStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    PAID = "paid"


class BonusType(str, Enum):
    SUMMER = "summer"
    WINTER = "winter"
    SPECIAL = "special"


class BonusSlipStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"


class DeclarationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class DisabilityType(str, Enum):
    GENERAL = "general"
    SPECIAL = "special"
    SPECIAL_LIVING = "special_living"


class YearEndStatus(str, Enum):
    CALCULATED = "calculated"
    CONFIRMED = "confirmed"
    PAID = "paid"


class WithholdingSlipStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    DELIVERED = "delivered"


class AssetStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class OwnershipType(str, Enum):
    OWNED = "owned"
    LEASED = "leased"
    RENTAL = "rental"


class MaintenanceType(str, Enum):
    OIL_CHANGE = "oil_change"
    TIRE_CHANGE = "tire_change"
    INSPECTION = "inspection"
    SHAKEN = "shaken"
    REPAIR = "repair"
    OTHER = "other"


class TireType(str, Enum):
    SUMMER = "summer"
    WINTER = "winter"


class WarningLevel(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class LicenseType(str, Enum):
    USER_BASED = "user_based"
    FIXED = "fixed"
    USAGE_BASED = "usage_based"


class LicenseStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Currency(str, Enum):
    JPY = "JPY"
    USD = "USD"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class DWNotificationType(str, Enum):
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_OVERDUE = "payment_overdue"
    PAYMENT_DUE_SOON = "payment_due_soon"
    INVOICE_GENERATED = "invoice_generated"
    TENANT_CREATED = "tenant_created"
    TENANT_SUSPENDED = "tenant_suspended"
    SYSTEM_ALERT = "system_alert"
