from datetime import datetime, time

from dandori_portal.attendance.factory import AttendanceStrategyFactory
from dandori_portal.attendance.rules import WorkRules
from dandori_portal.attendance.strategies.early_strategy import EarlyLeaveStrategy, LateEarlyLeaveStrategy
from dandori_portal.attendance.strategies.late_strategy import LateStrategy
from dandori_portal.attendance.strategies.normal_strategy import NormalStrategy
from dandori_portal.core.enums import Punctuality


def test_factory_checkin_on_time_within_grace():
    rules = WorkRules(work_start=time(9, 0), work_end=time(18, 0), grace_minutes=5)
    check_in = datetime(2025, 1, 6, 9, 5, 0)

    strategy = AttendanceStrategyFactory().for_day(check_in=check_in, check_out=None, rules=rules)

    assert isinstance(strategy, NormalStrategy)


def test_factory_checkin_late_after_grace():
    rules = WorkRules(work_start=time(9, 0), work_end=time(18, 0), grace_minutes=5)
    check_in = datetime(2025, 1, 6, 9, 6, 0)

    strategy = AttendanceStrategyFactory().for_day(check_in=check_in, check_out=None, rules=rules)

    assert isinstance(strategy, LateStrategy)
    assert strategy.decide(check_in=check_in, check_out=None, rules=rules).punctuality == Punctuality.LATE


def test_factory_early_leave_and_both():
    rules = WorkRules()
    early_out = datetime(2025, 1, 6, 17, 0)

    early = AttendanceStrategyFactory().for_day(check_in=datetime(2025, 1, 6, 9, 0), check_out=early_out, rules=rules)
    both = AttendanceStrategyFactory().for_day(check_in=datetime(2025, 1, 6, 9, 30), check_out=early_out, rules=rules)

    assert isinstance(early, EarlyLeaveStrategy)
    assert isinstance(both, LateEarlyLeaveStrategy)


def test_rules_from_config():
    rules = WorkRules.from_config({"WORK_START": "08:30", "WORK_END": "17:30", "LATE_GRACE_MINUTES": "10"})

    assert rules.work_start == time(8, 30)
    assert rules.work_end == time(17, 30)
    assert rules.grace_minutes == 10
