from dataclasses import replace
from datetime import date

import pytest

from src.hr_portal.hr_portal.core.enums import LeaveAction, LeaveStatus, LeaveType, Role
from src.hr_portal.hr_portal.core.exceptions import AuthorizationError, ConflictError, ValidationError
from src.hr_portal.hr_portal.leaves.service import BALANCE_EXHAUSTED, LeaveService
from src.hr_portal.hr_portal.notifications.messages import MessageBuilder
from src.hr_portal.hr_portal.payroll.model import PayslipDraft
from src.hr_portal.hr_portal.users.principal import Principal


@pytest.fixture
def service(leaves_repo, employees_repo, ledger, outbox):
    return LeaveService(leaves_repo, employees_repo, ledger, outbox, MessageBuilder())


def _apply(service, principal, days, leave_type=LeaveType.CASUAL, start=date(2025, 3, 3)):
    return service.apply(
        principal,
        leave_type=leave_type,
        from_date=start,
        to_date=start.replace(day=start.day + days - 1),
        reason="Family function",
    )


def test_balance_five_then_three_then_refused(service, employee, manager, employees_repo, leaves_repo):
    first = _apply(service, employee, 3)
    service.decide(manager, first, action=LeaveAction.APPROVE)
    assert employees_repo.get_by_id(employee.employee_id).leave_balance == 2

    with pytest.raises(ValidationError, match="Insufficient balance"):
        _apply(service, employee, 3, start=date(2025, 3, 10))

    # a request that slipped through before the balance dropped is still refused at approval
    second = leaves_repo.create(replace(leaves_repo.get(first), total_days=3))
    with pytest.raises(ValidationError, match="Insufficient leave balance"):
        service.decide(manager, second, action=LeaveAction.APPROVE)
    assert employees_repo.get_by_id(employee.employee_id).leave_balance == 2
    assert leaves_repo.get(second).status == LeaveStatus.PENDING


def test_second_decision_changes_nothing(service, employee, hr, employees_repo, leaves_repo):
    leave_id = _apply(service, employee, 2)
    service.decide(hr, leave_id, action=LeaveAction.APPROVE)
    before = (employees_repo.get_by_id(employee.employee_id), leaves_repo.get(leave_id))

    for action in (LeaveAction.APPROVE, LeaveAction.REJECT, LeaveAction.REGULARIZE_UNPAID):
        with pytest.raises(ConflictError):
            service.decide(hr, leave_id, action=action)

    assert (employees_repo.get_by_id(employee.employee_id), leaves_repo.get(leave_id)) == before


def test_reject_defaults_reason(service, employee, hr, leaves_repo, employees_repo):
    leave_id = _apply(service, employee, 1)
    decided = service.decide(hr, leave_id, action=LeaveAction.REJECT)
    assert decided.status == LeaveStatus.REJECTED
    assert leaves_repo.get(leave_id).rejection_reason == "No reason provided"
    assert employees_repo.get_by_id(employee.employee_id).leave_balance == 5


def test_lop_leave_increments_counters_and_amends_payslip(service, employee, hr, employees_repo, payslips_repo):
    payslip_id = payslips_repo.upsert(
        PayslipDraft(
            employee_id=employee.employee_id, month=3, year=2025, basic_salary=30000, hra=0, travel_allowance=0,
            other_allowances=0, bonuses=0, reimbursements=0, pf=0, professional_tax=0, taxes=0, lop_days=0,
            deductions=0, net_pay=30000,
        )
    )
    leave_id = _apply(service, employee, 2, leave_type=LeaveType.LOP)
    service.decide(hr, leave_id, action=LeaveAction.APPROVE)

    emp = employees_repo.get_by_id(employee.employee_id)
    assert (emp.leave_balance, emp.lop_count, emp.lop_days_this_month) == (5, 2, 2)
    payslip = payslips_repo.get(payslip_id)
    assert payslip.deductions == 2000.0
    assert payslip.net_pay == 28000.0
    assert payslip.lop_days == 2
    assert payslip.lines[-1].label == "Loss of Pay for 2 day(s)"


def test_regularize_unpaid_turns_paid_leave_into_lop(service, employee, hr, employees_repo, leaves_repo):
    leave_id = _apply(service, employee, 4)
    decided = service.decide(hr, leave_id, action=LeaveAction.REGULARIZE_UNPAID)
    assert decided.leave_type == LeaveType.LOP
    assert leaves_repo.get(leave_id).leave_type == LeaveType.LOP
    emp = employees_repo.get_by_id(employee.employee_id)
    assert emp.leave_balance == 5
    assert emp.lop_days_this_month == 4


def test_apply_refused_when_balance_exhausted(service, employee, employees_repo):
    employees_repo._patch(employee.employee_id, leave_balance=0)
    with pytest.raises(ValidationError) as exc:
        _apply(service, employee, 1)
    assert str(exc.value) == BALANCE_EXHAUSTED
    assert _apply(service, employee, 1, leave_type=LeaveType.LOP)


def test_manager_scope(service, employee, manager, employees_repo, make_emp):
    employees_repo.add(make_emp(9, department="Sales"))

    outsider = Principal(user_id=9, employee_id=9, role=Role.EMPLOYEE)
    leave_id = _apply(service, outsider, 1)
    with pytest.raises(AuthorizationError):
        service.decide(manager, leave_id, action=LeaveAction.APPROVE)
    assert [x.leave_id for x in service.list_pending(manager)] == []

    mine = _apply(service, employee, 1, start=date(2025, 3, 20))
    assert [x.leave_id for x in service.list_pending(manager)] == [mine]


def test_apply_notifies_department_manager(service, employee, outbox):
    _apply(service, employee, 1)
    assert [n.recipient for n in outbox.sent] == ["emp2@example.com"]
    assert "New Leave Request" in outbox.sent[0].subject


def test_losing_the_status_race_refunds_balance(service, employee, hr, manager, employees_repo, leaves_repo, monkeypatch):
    leave_id = _apply(service, employee, 2)
    original = leaves_repo.transition

    def decided_elsewhere(leave_id, **kwargs):
        # another approver wins between the balance debit and the status write
        original(leave_id, expected=LeaveStatus.PENDING, target=LeaveStatus.REJECTED,
                 action_by=manager.employee_id, action_at=kwargs["action_at"], rejection_reason="Busy")
        return original(leave_id, **kwargs)

    monkeypatch.setattr(leaves_repo, "transition", decided_elsewhere)

    with pytest.raises(ConflictError):
        service.decide(hr, leave_id, action=LeaveAction.APPROVE)

    assert employees_repo.get_by_id(employee.employee_id).leave_balance == 5
    assert leaves_repo.get(leave_id).status == LeaveStatus.REJECTED
