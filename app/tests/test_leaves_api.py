"""
End-to-end tests for the leave, approver and notification endpoints
"""
from datetime import date, timedelta
from fastapi import status
from app.core.security import create_access_token
from app.models.leave import LeaveRequest, LeaveStatus

MONDAY = date.fromisocalendar(date.today().year, 10, 1)


def _apply(client, headers, type_id, start=MONDAY, end=MONDAY, **extra):
    return client.post(
        "/api/v1/leaves",
        json={
            "type_id": type_id,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            **extra,
        },
        headers=headers,
    )


def test_apply_approve_approve_flow(client, db, employee, manager, hr_user, annual_leave, auth_headers):
    response = _apply(client, auth_headers(employee), annual_leave.id, end=MONDAY + timedelta(days=2), reason="Rest")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["message"] == "Leave Request Created"
    assert data["request"]["status"] == "PENDING"
    assert data["request"]["duration"] == 3
    assert data["request"]["type"]["name"] == "Annual Leave"
    assert data["current_approval"]["phase"] == 1
    assert data["current_approval"]["approver_id"] == manager.id
    leave_id = data["request"]["id"]

    pending = client.get("/api/v1/leaves/pending", headers=auth_headers(manager))
    assert pending.status_code == status.HTTP_200_OK
    assert [r["id"] for r in pending.json()] == [leave_id]

    response = client.post(
        f"/api/v1/leaves/approvals/{data['current_approval']['id']}/approve",
        json={"note": "OK from me"},
        headers=auth_headers(manager),
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["is_final"] is False
    assert body["message"] == "Approval moved to next phase"
    assert body["approval"]["phase"] == 2
    assert body["approval"]["approver_id"] == hr_user.id

    response = client.post(
        f"/api/v1/leaves/approvals/{body['approval']['id']}/approve",
        json={},
        headers=auth_headers(hr_user),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"approval": None, "is_final": True, "message": "Leave request fully approved"}

    detail = client.get(f"/api/v1/leaves/{leave_id}", headers=auth_headers(employee))
    assert detail.json()["status"] == "APPROVED"
    assert detail.json()["current_approval_id"] is None

    history = client.get(f"/api/v1/leaves/{leave_id}/history", headers=auth_headers(employee)).json()
    assert [h["status"] for h in history] == ["APPROVED", "APPROVED"]
    assert history[0]["note"] == "OK from me"
    assert history[0]["action_date"] is not None

    balance = client.get(f"/api/v1/leaves/balance/{annual_leave.id}", headers=auth_headers(employee)).json()
    assert balance["used_leave_days"] == 3
    assert balance["balance"] == 7


def test_reject_flow_and_reason_required(client, db, employee, manager, hr_user, annual_leave, auth_headers):
    data = _apply(client, auth_headers(employee), annual_leave.id).json()
    approval_id = data["current_approval"]["id"]

    response = client.post(
        f"/api/v1/leaves/approvals/{approval_id}/reject",
        json={"note": ""},
        headers=auth_headers(manager),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = client.post(
        f"/api/v1/leaves/approvals/{approval_id}/reject",
        json={"note": "Quarter close"},
        headers=auth_headers(manager),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "REJECTED"

    leave = db.query(LeaveRequest).filter(LeaveRequest.id == data["request"]["id"]).one()
    assert leave.status == LeaveStatus.REJECTED

    response = client.post(
        f"/api/v1/leaves/approvals/{approval_id}/approve",
        json={},
        headers=auth_headers(manager),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "This request has already been processed"


def test_error_envelope(client, manager, auth_headers):
    response = client.post("/api/v1/leaves/approvals/9999/approve", json={}, headers=auth_headers(manager))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    body = response.json()
    assert body["error"] is True
    assert body["detail"] == "Approval not found"
    assert body["path"] == "/api/v1/leaves/approvals/9999/approve"


def test_wrong_approver_is_forbidden(client, employee, manager, hr_user, annual_leave, auth_headers):
    data = _apply(client, auth_headers(employee), annual_leave.id).json()
    response = client.post(
        f"/api/v1/leaves/approvals/{data['current_approval']['id']}/approve",
        json={},
        headers=auth_headers(employee),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_insufficient_balance_is_400(client, employee, manager, hr_user, annual_leave, auth_headers):
    response = _apply(client, auth_headers(employee), annual_leave.id, end=MONDAY + timedelta(days=14))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Insufficient leave balance. You have 10 days remaining."


def test_leave_types_and_my_leaves(client, employee, manager, hr_user, annual_leave, auth_headers):
    types = client.get("/api/v1/leaves/types", headers=auth_headers(employee))
    assert types.status_code == status.HTTP_200_OK
    assert types.json() == [{"entitlement_id": annual_leave.id, "name": "Annual Leave", "value": 10, "unit": "days"}]

    _apply(client, auth_headers(employee), annual_leave.id)
    mine = client.get("/api/v1/leaves/my", headers=auth_headers(employee)).json()
    assert len(mine) == 1
    assert mine[0]["user_id"] == employee.id


def test_requests_are_never_deleted(client, db, employee, manager, hr_user, annual_leave, auth_headers):
    leave_id = _apply(client, auth_headers(employee), annual_leave.id).json()["request"]["id"]

    response = client.delete(f"/api/v1/leaves/{leave_id}", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert db.query(LeaveRequest).filter(LeaveRequest.id == leave_id).count() == 1


def test_request_is_visible_to_owner_chain_and_hr_only(
    client, employee, manager, hr_user, annual_leave, make_user, engineering, auth_headers
):
    leave_id = _apply(client, auth_headers(employee), annual_leave.id, reason="Private").json()["request"]["id"]
    colleague = make_user("Cara", engineering)

    for viewer in (employee, manager, hr_user):
        response = client.get(f"/api/v1/leaves/{leave_id}", headers=auth_headers(viewer))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["reason"] == "Private"

    response = client.get(f"/api/v1/leaves/{leave_id}", headers=auth_headers(colleague))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    response = client.get(f"/api/v1/leaves/{leave_id}/history", headers=auth_headers(colleague))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    history = client.get(f"/api/v1/leaves/{leave_id}/history", headers=auth_headers(manager)).json()
    assert [s["phase"] for s in history] == [1, 2]


def test_user_leave_listing_for_managers_and_hr(
    client, employee, manager, hr_user, annual_leave, make_user, finance, auth_headers
):
    leave_id = _apply(client, auth_headers(employee), annual_leave.id).json()["request"]["id"]
    accountant = make_user("Finn", finance)

    response = client.get(f"/api/v1/leaves/user/{employee.id}", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_200_OK
    assert [r["id"] for r in response.json()] == [leave_id]

    response = client.get(f"/api/v1/leaves/user/{employee.id}", headers=auth_headers(hr_user))
    assert [r["id"] for r in response.json()] == [leave_id]

    # Mary manages Engineering, not Finance
    response = client.get(f"/api/v1/leaves/user/{accountant.id}", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.get(f"/api/v1/leaves/user/{manager.id}", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.get("/api/v1/leaves/user/9999", headers=auth_headers(hr_user))
    assert response.status_code == status.HTTP_404_NOT_FOUND



def test_missing_or_invalid_token(client, employee):
    response = client.get("/api/v1/leaves/my")
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    response = client.get("/api/v1/leaves/my", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    token = create_access_token({"sub": "9999"})
    response = client.get("/api/v1/leaves/my", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_approver_management_requires_hr_or_admin(
    client, employee, hr_user, engineering, make_user, auth_headers
):
    payload = {"user_id": employee.id, "department_id": engineering.id, "role": "DEPT_MANAGER"}

    response = client.post("/api/v1/approvers", json=payload, headers=auth_headers(employee))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    # HR comes from Hana's active approver record, not from her base roles
    response = client.post("/api/v1/approvers", json=payload, headers=auth_headers(hr_user))
    assert response.status_code == status.HTTP_201_CREATED
    approver = response.json()
    assert approver["role"] == "DEPT_MANAGER"
    assert approver["is_active"] is True

    admin = make_user("Ada", roles=["EMPLOYEE", "ADMIN"])
    response = client.delete(f"/api/v1/approvers/{approver['id']}", headers=auth_headers(admin))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_active"] is False


def test_approver_listings(client, employee, manager, hr_user, engineering, auth_headers):
    globals_ = client.get("/api/v1/approvers", headers=auth_headers(employee)).json()
    assert [a["user_id"] for a in globals_] == [hr_user.id]

    dept = client.get(f"/api/v1/approvers/department/{engineering.id}", headers=auth_headers(employee)).json()
    assert [a["user_id"] for a in dept] == [manager.id]

    chain = client.get(f"/api/v1/approvers/user/{employee.id}", headers=auth_headers(employee)).json()
    assert [a["user_id"] for a in chain] == [manager.id, hr_user.id]


def test_notification_endpoints(client, employee, manager, hr_user, annual_leave, auth_headers):
    _apply(client, auth_headers(employee), annual_leave.id)

    response = client.get("/api/v1/notifications", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_200_OK
    items = response.json()
    assert len(items) == 1
    assert items[0]["type"] == "LEAVE_REQUESTED"
    assert items[0]["read"] is False

    response = client.post(f"/api/v1/notifications/{items[0]['id']}/read", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["read"] is True

    response = client.post("/api/v1/notifications/read-all", headers=auth_headers(manager))
    assert response.json() == {"updated": 0}
