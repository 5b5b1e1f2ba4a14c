"""
Leave endpoints
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, get_event_publisher, require_roles
from app.models.user import User, Role
from app.schemas.leave import (
    LeaveCreateRequest,
    LeaveCreatedResponse,
    LeaveOut,
    LeaveTypeOut,
    LeaveBalanceOut,
    ApprovalOut,
    ApproveActionRequest,
    RejectActionRequest,
    ApprovalResultResponse,
)
from app.services.approval_flow_service import approve_leave_request, reject_leave_request
from app.services.balance_service import check_leave_balance
from app.services.events import BackgroundPublisher
from app.services.leave_service import (
    create_leave_request,
    get_available_leave_types,
    get_leave_request,
    get_approval_history,
    ensure_can_view_leave_request,
    list_user_leave_requests,
    list_leave_requests_for_user,
    list_pending_for_approver,
)

router = APIRouter()


@router.get("/types", response_model=List[LeaveTypeOut])
async def leave_types_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Leave types granted by the caller's level"""
    return get_available_leave_types(db, current_user.id)


@router.get("/balance/{type_id}", response_model=LeaveBalanceOut)
async def leave_balance_endpoint(
    type_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Current-year balance of one leave type for the caller"""
    return check_leave_balance(db, current_user.id, type_id)


@router.post("", response_model=LeaveCreatedResponse, status_code=201)
async def create_leave_endpoint(
    leave_data: LeaveCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    publisher: BackgroundPublisher = Depends(get_event_publisher)
):
    """
    Request leave for the caller

    Validates the range and the remaining balance, stores the request and
    builds its approval chain. Returns the request and its first step;
    the first approver is notified after the response.
    """
    leave_request, first_step = create_leave_request(
        db=db,
        user_id=current_user.id,
        type_id=leave_data.type_id,
        start_date=leave_data.start_date,
        end_date=leave_data.end_date,
        reason=leave_data.reason,
        doa_id=leave_data.doa_id,
        uploads=leave_data.uploads,
        bus=publisher,
    )
    return LeaveCreatedResponse(
        request=LeaveOut.model_validate(leave_request),
        current_approval=ApprovalOut.model_validate(first_step),
    )


@router.get("/my", response_model=List[LeaveOut])
async def my_leaves_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Caller's own leave requests"""
    return list_user_leave_requests(db, current_user.id)


@router.get("/pending", response_model=List[LeaveOut])
async def pending_leaves_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Requests currently waiting on the caller's approval"""
    return list_pending_for_approver(db, current_user.id)


@router.get("/user/{user_id}", response_model=List[LeaveOut])
async def user_leaves_endpoint(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(
        require_roles(Role.HR, Role.DEPT_MANAGER, Role.LEAVE_MANAGER)
    )
):
    """Leave requests of an employee the caller manages"""
    return list_leave_requests_for_user(db, user_id, current_user)


@router.post("/approvals/{approval_id}/approve", response_model=ApprovalResultResponse)
async def approve_step_endpoint(
    approval_id: int,
    body: ApproveActionRequest = ApproveActionRequest(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    publisher: BackgroundPublisher = Depends(get_event_publisher)
):
    """Approve the active step assigned to the caller"""
    result = approve_leave_request(db, approval_id, current_user.id, body.note, bus=publisher)
    next_step = result["approval"]
    return ApprovalResultResponse(
        approval=ApprovalOut.model_validate(next_step) if next_step is not None else None,
        is_final=result["is_final"],
        message=result["message"],
    )


@router.post("/approvals/{approval_id}/reject", response_model=ApprovalOut)
async def reject_step_endpoint(
    approval_id: int,
    body: RejectActionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    publisher: BackgroundPublisher = Depends(get_event_publisher)
):
    """Reject the active step assigned to the caller; the request is rejected as a whole"""
    return reject_leave_request(db, approval_id, current_user.id, body.note, bus=publisher)


@router.get("/{leave_request_id}", response_model=LeaveOut)
async def get_leave_endpoint(
    leave_request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    leave_request = get_leave_request(db, leave_request_id)
    ensure_can_view_leave_request(db, leave_request, current_user)
    return leave_request


@router.get("/{leave_request_id}/history", response_model=List[ApprovalOut])
async def approval_history_endpoint(
    leave_request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Approval chain of a request ordered by phase"""
    ensure_can_view_leave_request(db, get_leave_request(db, leave_request_id), current_user)
    return get_approval_history(db, leave_request_id)
