"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_LATE_GRACE_MINUTES = 0

# Attendance
STANDARD_WORK_MINUTES = 480

# Leave
DEFAULT_PAID_LEAVE_DAYS = 20
HALF_DAY = 0.5
PENDING_LEAVE_PREVIEW = 10
NO_DEPARTMENT_LABEL = "未設定"

# Payroll: employee share of social insurance
HEALTH_INSURANCE_RATE = 0.0495
PENSION_INSURANCE_RATE = 0.0915
EMPLOYMENT_INSURANCE_RATE = 0.006

OVERTIME_PREMIUM = 1.25
LATE_NIGHT_PREMIUM = 1.5
HOLIDAY_PREMIUM = 1.35

DEFAULT_WORKING_DAYS = 20
HOURS_PER_DAY = 8

# Approval workflow
DEADLINE_HOURS_BY_URGENCY = {"high": 24, "normal": 48, "low": 72}
ESCALATION_DEADLINE_HOURS = 24
ESCALATION_CHAIN = ("manager", "hr", "admin")

LEAVE_DAYS_NEEDS_HR = 5
EXPENSE_NEEDS_ADMIN = 100_000
EXPENSE_NEEDS_HR = 500_000
OVERTIME_HOURS_NEEDS_HR = 40
OVERTIME_HOURS_NEEDS_ADMIN = 60
CORRECTION_DAYS_NEEDS_HR = 30

# Billing
BASE_MONTHLY_FEE = 10_000
PER_USER_FEE = 1_000
CONSUMPTION_TAX_RATE = 0.10
PAYMENT_TERM_DAYS = 30
DUE_SOON_DAYS = 7

# Assets
DEADLINE_CRITICAL_DAYS = 30
DEADLINE_WARNING_DAYS = 60
DEADLINE_LOOKAHEAD_DAYS = 90

# SaaS
RENEWAL_ALERT_DAYS = 60
IDLE_LICENSE_DAYS = 90

# Pages
LOCALES = ("ja", "en")
DEFAULT_LOCALE = "ja"
