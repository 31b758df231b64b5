from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from flask_sqlalchemy import SQLAlchemy

from .assets.service import AssetService
from .assets.sqlalchemy_asset_repository import SQLAlchemyAssetRepository
from .attendance.factory import AttendanceStrategyFactory
from .attendance.report import AttendanceReportService
from .attendance.rules import WorkRules
from .attendance.service import AttendanceService
from .attendance.sqlalchemy_attendance_repository import SQLAlchemyAttendanceRepository
from .billing.service import BillingService
from .billing.sqlalchemy_billing_repository import (
    SQLAlchemyDWNotificationRepository,
    SQLAlchemyInvoiceRepository,
    SQLAlchemyPaymentRepository,
)
from .database.tables.payroll import AllowanceRow, DeductionRow, SalarySettingRow
from .leave.service import LeaveService
from .leave.sqlalchemy_leave_repository import SQLAlchemyLeaveRepository
from .notifications.service import NotificationService
from .notifications.sqlalchemy_notification_repository import SQLAlchemyNotificationRepository
from .organization.service import OrganizationService
from .organization.sqlalchemy_organization_repository import SQLAlchemyOrganizationRepository
from .payroll.bonus_service import BonusService
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.calculator.tax_methods import tax_method_for
from .payroll.master_service import PayrollMasterService
from .payroll.model import EmployeeAllowance, EmployeeDeduction, SalarySetting
from .payroll.service import PayrollService
from .payroll.sqlalchemy_payroll_repository import (
    SQLAlchemyBonusSlipRepository,
    SQLAlchemyMasterDataRepository,
    SQLAlchemyPaySlipRepository,
)
from .saas.service import SaaSManagementService
from .saas.sqlalchemy_saas_repository import SQLAlchemySaaSRepository
from .tenants.service import TenantService
from .tenants.sqlalchemy_tenant_repository import SQLAlchemyTenantRepository
from .users.service import AuthService, UserService
from .users.sqlalchemy_user_repository import SQLAlchemyUserRepository
from .workflow.flows import ApprovalFlowService
from .workflow.service import WorkflowService
from .workflow.sqlalchemy_workflow_repository import (
    SQLAlchemyApprovalFlowRepository,
    SQLAlchemyWorkflowRequestRepository,
)
from .year_end.service import DeclarationService, YearEndService
from .year_end.sqlalchemy_year_end_repository import (
    SQLAlchemyDeclarationRepository,
    SQLAlchemyWithholdingSlipRepository,
    SQLAlchemyYearEndResultRepository,
)
from .year_end.withholding import WithholdingSlipService


@dataclass(frozen=True)
class Container:
    db: SQLAlchemy

    tenants_repo: SQLAlchemyTenantRepository
    users_repo: SQLAlchemyUserRepository
    attendance_repo: SQLAlchemyAttendanceRepository
    pay_slips_repo: SQLAlchemyPaySlipRepository

    auth_service: AuthService
    user_service: UserService
    tenant_service: TenantService
    organization_service: OrganizationService
    notification_service: NotificationService
    attendance_service: AttendanceService
    attendance_report_service: AttendanceReportService
    approval_flow_service: ApprovalFlowService
    workflow_service: WorkflowService
    leave_service: LeaveService
    payroll_master_service: PayrollMasterService
    payroll_service: PayrollService
    bonus_service: BonusService
    declaration_service: DeclarationService
    year_end_service: YearEndService
    withholding_slip_service: WithholdingSlipService
    asset_service: AssetService
    saas_service: SaaSManagementService
    billing_service: BillingService


def build_container(*, db: SQLAlchemy, config: Mapping[str, Any]) -> Container:
    tenants_repo = SQLAlchemyTenantRepository(db)
    users_repo = SQLAlchemyUserRepository(db)
    attendance_repo = SQLAlchemyAttendanceRepository(db)
    pay_slips_repo = SQLAlchemyPaySlipRepository(db)
    bonus_slips_repo = SQLAlchemyBonusSlipRepository(db)
    declarations_repo = SQLAlchemyDeclarationRepository(db)
    year_end_results_repo = SQLAlchemyYearEndResultRepository(db)
    dw_notifications_repo = SQLAlchemyDWNotificationRepository(db)

    calculator = StandardPayrollCalculator(tax_method_for(str(config.get("PAYROLL_TAX_METHOD", "annualized"))))

    notification_service = NotificationService(SQLAlchemyNotificationRepository(db))
    organization_service = OrganizationService(SQLAlchemyOrganizationRepository(db), users_repo)
    approval_flow_service = ApprovalFlowService(SQLAlchemyApprovalFlowRepository(db))
    workflow_service = WorkflowService(
        SQLAlchemyWorkflowRequestRepository(db),
        users_repo,
        organization_service,
        approval_flow_service,
        notification_service,
    )
    payroll_master_service = PayrollMasterService(
        SQLAlchemyMasterDataRepository(db, SalarySettingRow, SalarySetting, label="給与設定"),
        SQLAlchemyMasterDataRepository(db, AllowanceRow, EmployeeAllowance, label="手当"),
        SQLAlchemyMasterDataRepository(db, DeductionRow, EmployeeDeduction, label="控除"),
        users_repo,
    )

    return Container(
        db=db,
        tenants_repo=tenants_repo,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        pay_slips_repo=pay_slips_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        tenant_service=TenantService(tenants_repo, dw_notifications_repo),
        organization_service=organization_service,
        notification_service=notification_service,
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            rules=WorkRules.from_config(config),
            strategy_factory=AttendanceStrategyFactory(),
        ),
        attendance_report_service=AttendanceReportService(attendance_repo, calculator=calculator),
        approval_flow_service=approval_flow_service,
        workflow_service=workflow_service,
        leave_service=LeaveService(SQLAlchemyLeaveRepository(db), users_repo, workflow_service),
        payroll_master_service=payroll_master_service,
        payroll_service=PayrollService(
            pay_slips_repo, payroll_master_service, users_repo, attendance_repo, calculator=calculator
        ),
        bonus_service=BonusService(bonus_slips_repo, pay_slips_repo, payroll_master_service, users_repo),
        declaration_service=DeclarationService(declarations_repo, users_repo),
        year_end_service=YearEndService(
            year_end_results_repo, declarations_repo, pay_slips_repo, bonus_slips_repo, users_repo
        ),
        withholding_slip_service=WithholdingSlipService(
            SQLAlchemyWithholdingSlipRepository(db), year_end_results_repo, declarations_repo, users_repo, tenants_repo
        ),
        asset_service=AssetService(SQLAlchemyAssetRepository(db), users_repo),
        saas_service=SaaSManagementService(SQLAlchemySaaSRepository(db), users_repo),
        billing_service=BillingService(
            SQLAlchemyInvoiceRepository(db), SQLAlchemyPaymentRepository(db), dw_notifications_repo, tenants_repo
        ),
    )
