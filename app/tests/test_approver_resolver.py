"""
Tests for approver resolution and approval authorization
"""
import pytest
from fastapi import HTTPException
from app.models.approver import ApproverRole
from app.models.audit_log import AuditLog
from app.services.approver_service import (
    get_approvers_for_user,
    can_user_approve,
    get_effective_roles,
    create_approver,
    deactivate_approver,
)


def _user_ids(approvers):
    return [a.user_id for a in approvers]


def test_member_gets_department_managers_then_globals(db, employee, manager, hr_user, finance_head):
    approvers = get_approvers_for_user(db, employee.id)
    assert _user_ids(approvers) == [manager.id, hr_user.id]


def test_department_head_escalates_to_peer_heads_and_globals(db, manager, finance_head, hr_user):
    """A head never lands in their own department slot"""
    approvers = get_approvers_for_user(db, manager.id)
    assert _user_ids(approvers) == [finance_head.id, hr_user.id]
    assert manager.id not in _user_ids(approvers)


def test_user_without_department_gets_globals_only(db, make_user, manager, hr_user):
    loner = make_user("Lou")
    assert _user_ids(get_approvers_for_user(db, loner.id)) == [hr_user.id]


def test_user_with_several_records_appears_once(db, employee, manager, hr_user, make_approver, engineering):
    make_approver(hr_user, ApproverRole.DEPT_MANAGER, engineering)
    approvers = get_approvers_for_user(db, employee.id)
    assert _user_ids(approvers) == [manager.id, hr_user.id]


def test_inactive_records_are_ignored(db, employee, make_user, make_approver, engineering, hr_user):
    former = make_user("Otto", engineering)
    make_approver(former, ApproverRole.DEPT_MANAGER, engineering, is_active=False)
    assert _user_ids(get_approvers_for_user(db, employee.id)) == [hr_user.id]


def test_unknown_user_is_404(db):
    with pytest.raises(HTTPException) as exc_info:
        get_approvers_for_user(db, 9999)
    assert exc_info.value.status_code == 404


def test_nobody_approves_themselves(db, hr_user, manager):
    assert can_user_approve(db, hr_user.id, hr_user.id) is False
    assert can_user_approve(db, manager.id, manager.id) is False


def test_user_without_approver_record_cannot_approve(db, employee, manager):
    assert can_user_approve(db, employee.id, manager.id) is False


def test_global_approver_can_approve_anyone(db, hr_user, employee, manager):
    assert can_user_approve(db, hr_user.id, employee.id) is True
    assert can_user_approve(db, hr_user.id, manager.id) is True


def test_department_manager_scope(db, manager, employee, make_user, finance):
    outsider = make_user("Olga", finance)
    assert can_user_approve(db, manager.id, employee.id) is True
    assert can_user_approve(db, manager.id, outsider.id) is False


def test_peer_department_heads_approve_each_other(db, manager, finance_head):
    assert can_user_approve(db, finance_head.id, manager.id) is True
    assert can_user_approve(db, manager.id, finance_head.id) is True


def test_deactivated_approver_loses_capability(db, manager, employee, hr_user):
    record = manager.approver_records[0]
    deactivate_approver(db, record.id, actor_id=hr_user.id)
    assert can_user_approve(db, manager.id, employee.id) is False


def test_effective_roles_follow_active_records(db, manager, hr_user):
    assert "DEPT_MANAGER" in get_effective_roles(db, manager)
    assert "EMPLOYEE" in get_effective_roles(db, manager)

    deactivate_approver(db, manager.approver_records[0].id, actor_id=hr_user.id)
    assert "DEPT_MANAGER" not in get_effective_roles(db, manager)


def test_create_approver_rejects_duplicate_active_grant(db, employee, engineering, hr_user):
    approver = create_approver(db, employee.id, engineering.id, ApproverRole.DEPT_MANAGER, actor_id=hr_user.id)
    assert approver.is_active is True

    with pytest.raises(HTTPException) as exc_info:
        create_approver(db, employee.id, engineering.id, ApproverRole.DEPT_MANAGER, actor_id=hr_user.id)
    assert exc_info.value.status_code == 409

    audit = db.query(AuditLog).filter(AuditLog.action == "APPROVER_CREATE").one()
    assert audit.entity_id == approver.id
    assert audit.meta_json["role"] == "DEPT_MANAGER"


def test_create_approver_unknown_department_is_404(db, employee, hr_user):
    with pytest.raises(HTTPException) as exc_info:
        create_approver(db, employee.id, 9999, ApproverRole.DEPT_MANAGER, actor_id=hr_user.id)
    assert exc_info.value.status_code == 404


def test_deactivate_keeps_the_row(db, manager, hr_user):
    record = manager.approver_records[0]
    deactivated = deactivate_approver(db, record.id, actor_id=hr_user.id)
    assert deactivated.id == record.id
    assert deactivated.is_active is False
    assert db.query(AuditLog).filter(AuditLog.action == "APPROVER_DEACTIVATE").count() == 1
