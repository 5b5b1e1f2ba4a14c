"""
Leave service - request orchestration and leave queries
"""
import logging
from datetime import date, datetime
from typing import List, Optional, Tuple, Union
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
from app.core.errors import persistence_failure
from app.models.user import User, Role
from app.models.leave import LeaveRequest, LeaveStatus, Approval
from app.models.upload import Upload
from app.services.approval_flow_service import initialize_approval_flow
from app.services.approver_service import can_user_approve, get_effective_roles
from app.services.audit_service import log_audit
from app.services.balance_service import check_leave_balance
from app.services.entitlement_service import (
    get_leave_entitlements,
    load_user_with_level,
    find_level_entitlement,
)
from app.services.events import Publisher, event_bus
from app.utils.datetime_utils import count_business_days, normalize_date

logger = logging.getLogger(__name__)


def get_available_leave_types(db: Session, user_id: int) -> List[dict]:
    """Leave types the user's level grants, with their allowance"""
    return get_leave_entitlements(db, user_id)


def _validate_doa(db: Session, doa_id: Optional[int], user_id: int) -> None:
    if doa_id is None:
        return
    if doa_id == user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delegate your duties to yourself"
        )
    if not db.query(User.id).filter(User.id == doa_id, User.active.is_(True)).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Delegate with id {doa_id} not found"
        )


def _attach_uploads(db: Session, leave_request: LeaveRequest, upload_ids: List[int]) -> None:
    if not upload_ids:
        return
    unique_ids = set(upload_ids)
    uploads = db.query(Upload).filter(Upload.id.in_(unique_ids)).all()
    found = {u.id for u in uploads}
    missing = unique_ids - found
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Uploads not found: {sorted(missing)}"
        )
    for upload in uploads:
        if upload.user_id != leave_request.user_id or upload.leave_request_id is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Upload {upload.id} cannot be attached to this request"
            )
        upload.leave_request_id = leave_request.id


def create_leave_request(
    db: Session,
    user_id: int,
    type_id: int,
    start_date: Union[date, datetime],
    end_date: Union[date, datetime],
    reason: Optional[str] = None,
    doa_id: Optional[int] = None,
    uploads: Optional[List[int]] = None,
    bus: Publisher = event_bus
) -> Tuple[LeaveRequest, Approval]:
    """
    Validate and persist a leave request together with its approval chain

    The request, its uploads and every approval step are committed in one
    transaction; nothing is stored if no approver can be resolved.

    Args:
        db: Database session
        user_id: Requester
        type_id: Entitlement (leave type) ID
        start_date: First day of leave
        end_date: Last day of leave
        reason: Free-text reason
        doa_id: Optional delegate of authority
        uploads: IDs of previously uploaded supporting documents
        bus: Event bus or publisher notified after commit

    Returns:
        (created LeaveRequest, its phase-1 Approval)

    Raises:
        HTTPException: 404 employee/level/approvers missing, 400 invalid range,
            type not on level or insufficient balance
    """
    events: List[object] = []
    try:
        user = load_user_with_level(db, user_id)
        find_level_entitlement(user, type_id)

        start = normalize_date(start_date)
        end = normalize_date(end_date)
        if start > end:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Start date cannot be after end date"
            )

        duration = count_business_days(start, end)
        if duration <= 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Leave request must cover at least one business day"
            )
        # Approved and still-pending requests of this year both reduce what can be asked for
        balance = check_leave_balance(db, user_id, type_id)
        available = balance["balance"] - balance["pending_leave_days"]
        if duration > available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient leave balance. You have {max(available, 0)} days remaining."
            )

        _validate_doa(db, doa_id, user_id)

        leave_request = LeaveRequest(
            user_id=user_id,
            type_id=type_id,
            doa_id=doa_id,
            start_date=start,
            end_date=end,
            duration=duration,
            reason=reason,
            status=LeaveStatus.PENDING,
        )
        db.add(leave_request)
        db.flush()

        _attach_uploads(db, leave_request, uploads or [])

        steps, events = initialize_approval_flow(db, leave_request, user_id)

        log_audit(
            db=db,
            actor_id=user_id,
            action="LEAVE_APPLY",
            entity_type="leave_requests",
            entity_id=leave_request.id,
            meta={
                "type_id": type_id,
                "start_date": start,
                "end_date": end,
                "duration": duration,
                "phases": len(steps),
            },
        )
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise persistence_failure("create leave request", e)

    db.refresh(leave_request)
    first_step = steps[0]
    db.refresh(first_step)
    logger.info(
        "leave request created: leave_request_id=%s user_id=%s type_id=%s duration=%s",
        leave_request.id, user_id, type_id, duration,
    )
    bus.publish_all(events)
    return leave_request, first_step


def get_leave_request(db: Session, leave_request_id: int) -> LeaveRequest:
    """
    Raises:
        HTTPException: 404 if the request does not exist
    """
    leave_request = db.query(LeaveRequest).options(
        joinedload(LeaveRequest.type),
        joinedload(LeaveRequest.uploads),
    ).filter(LeaveRequest.id == leave_request_id).first()
    if not leave_request:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Leave request with id {leave_request_id} not found"
        )
    return leave_request


def get_approval_history(db: Session, leave_request_id: int) -> List[Approval]:
    """All steps of a request's chain, ordered by phase"""
    get_leave_request(db, leave_request_id)
    return db.query(Approval).options(
        joinedload(Approval.approver)
    ).filter(
        Approval.leave_request_id == leave_request_id
    ).order_by(Approval.phase.asc()).all()


def list_user_leave_requests(db: Session, user_id: int) -> List[LeaveRequest]:
    """A user's own requests, newest first"""
    return db.query(LeaveRequest).options(
        joinedload(LeaveRequest.type)
    ).filter(
        LeaveRequest.user_id == user_id
    ).order_by(LeaveRequest.start_date.desc(), LeaveRequest.id.desc()).all()


def list_pending_for_approver(db: Session, approver_id: int) -> List[LeaveRequest]:
    """
    PENDING requests whose active step is assigned to the given user

    Navigates through current_approval_id so that later phases created up
    front do not show up before their turn.
    """
    return db.query(LeaveRequest).options(
        joinedload(LeaveRequest.user),
        joinedload(LeaveRequest.type),
    ).join(
        Approval, LeaveRequest.current_approval_id == Approval.id
    ).filter(
        LeaveRequest.status == LeaveStatus.PENDING,
        Approval.approver_id == approver_id,
    ).order_by(LeaveRequest.created_at.asc(), LeaveRequest.id.asc()).all()


def _sees_all_requests(db: Session, viewer: User) -> bool:
    return bool(get_effective_roles(db, viewer) & {Role.HR.value, Role.ADMIN.value})


def ensure_can_view_leave_request(db: Session, leave_request: LeaveRequest, viewer: User) -> None:
    """
    Only the owner, approvers on the request's chain, HR and ADMIN may read it

    Raises:
        HTTPException: 403 for anyone else
    """
    if leave_request.user_id == viewer.id or _sees_all_requests(db, viewer):
        return
    on_chain = db.query(Approval.id).filter(
        Approval.leave_request_id == leave_request.id,
        Approval.approver_id == viewer.id,
    ).first()
    if not on_chain:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to view this leave request"
        )


def list_leave_requests_for_user(db: Session, user_id: int, viewer: User) -> List[LeaveRequest]:
    """
    Another user's requests, for managers and HR

    HR and ADMIN see anyone; other viewers only users they may approve.

    Raises:
        HTTPException: 404 unknown user, 403 viewer may not approve this user
    """
    if not db.query(User.id).filter(User.id == user_id).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee Not Found"
        )
    if viewer.id != user_id and not _sees_all_requests(db, viewer):
        if not can_user_approve(db, viewer.id, user_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not allowed to view this employee's leave requests"
            )
    return list_user_leave_requests(db, user_id)
