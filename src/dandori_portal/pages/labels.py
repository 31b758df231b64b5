from __future__ import annotations

LABELS: dict[str, dict[str, str]] = {
    "ja": {
        "app_name": "Dandori Portal",
        "login": "ログイン",
        "logout": "ログアウト",
        "email": "メールアドレス",
        "password": "パスワード",
        "tenant_id": "テナントID",
        "dashboard": "ダッシュボード",
        "attendance": "勤怠",
        "leave": "休暇",
        "workflow": "承認",
        "payroll": "給与",
        "today": "本日の勤怠",
        "not_punched": "未打刻",
        "check_in": "出勤",
        "check_out": "退勤",
        "break_start": "休憩開始",
        "break_end": "休憩終了",
        "sessions": "本日の打刻",
        "work_minutes": "労働時間(分)",
        "pending_approvals": "承認待ち",
        "leave_balance": "有給残日数",
        "granted": "付与",
        "used": "取得",
        "remaining": "残り",
        "period": "期間",
        "days": "日数",
        "status": "状態",
        "type": "種別",
        "title": "件名",
        "requester": "申請者",
        "pay_period": "支給月",
        "gross_pay": "総支給額",
        "net_pay": "差引支給額",
        "no_items": "データがありません",
    },
    "en": {
        "app_name": "Dandori Portal",
        "login": "Log in",
        "logout": "Log out",
        "email": "Email",
        "password": "Password",
        "tenant_id": "Tenant ID",
        "dashboard": "Dashboard",
        "attendance": "Attendance",
        "leave": "Leave",
        "workflow": "Approvals",
        "payroll": "Payroll",
        "today": "Today",
        "not_punched": "Not punched in",
        "check_in": "Check in",
        "check_out": "Check out",
        "break_start": "Start break",
        "break_end": "End break",
        "sessions": "Today's punches",
        "work_minutes": "Work (min)",
        "pending_approvals": "Pending approvals",
        "leave_balance": "Paid leave left",
        "granted": "Granted",
        "used": "Used",
        "remaining": "Remaining",
        "period": "Period",
        "days": "Days",
        "status": "Status",
        "type": "Type",
        "title": "Title",
        "requester": "Requester",
        "pay_period": "Pay period",
        "gross_pay": "Gross pay",
        "net_pay": "Net pay",
        "no_items": "Nothing to show",
    },
}

FLASH = {
    "ja": {
        "logged_in": "ログインしました",
        "logged_out": "ログアウトしました",
        "punched": "打刻しました",
    },
    "en": {
        "logged_in": "Logged in",
        "logged_out": "Logged out",
        "punched": "Punch recorded",
    },
}
