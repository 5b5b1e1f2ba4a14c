"""
Approval flow engine - sequential, phase-ordered approval chains for leave requests

Every step of a chain is created up front with status PENDING. The active
step is always reached through LeaveRequest.current_approval_id and phase
numbers, never through a bare status filter: after a rejection, later
phases stay PENDING for good.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
from app.core.constants import MSG_ALREADY_PROCESSED, MSG_APPROVAL_NOT_FOUND
from app.core.errors import persistence_failure
from app.models.leave import LeaveRequest, LeaveStatus, Approval, ApprovalStatus
from app.services.approver_service import get_approvers_for_user, can_user_approve
from app.services.audit_service import log_audit
from app.services.events import Publisher, LeaveRequested, LeaveApproved, LeaveRejected, event_bus
from app.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)


def initialize_approval_flow(
    db: Session,
    leave_request: LeaveRequest,
    requester_id: int
) -> Tuple[List[Approval], List[object]]:
    """
    Build the approval chain for a freshly added leave request

    Runs inside the caller's transaction and does not commit. Approvers are
    taken in resolution order; each one is re-checked with can_user_approve
    and only those passing get a phase, so phases are 1..N without gaps.

    Args:
        db: Database session
        leave_request: Flushed LeaveRequest (must have an id)
        requester_id: ID of the user who owns the request

    Returns:
        (steps ordered by phase, events to publish after commit)

    Raises:
        HTTPException: 404 if no usable approver remains
    """
    approvers = get_approvers_for_user(db, requester_id)
    if not approvers:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No approvers found for this employee"
        )

    candidates = [a for a in approvers if a.user_id != requester_id]
    if not candidates:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No valid approvers found (cannot self-approve)"
        )

    steps: List[Approval] = []
    for approver in candidates:
        if not can_user_approve(db, approver.user_id, requester_id):
            logger.info(
                "approval chain: skipping approver user_id=%s for leave_request_id=%s (not authorized)",
                approver.user_id, leave_request.id,
            )
            continue
        step = Approval(
            leave_request_id=leave_request.id,
            phase=len(steps) + 1,
            approver_id=approver.user_id,
            status=ApprovalStatus.PENDING,
        )
        db.add(step)
        steps.append(step)

    if not steps:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No valid approvers found for this employee"
        )

    db.flush()
    first = steps[0]
    leave_request.current_approval_id = first.id
    db.flush()

    logger.info(
        "approval chain created: leave_request_id=%s phases=%s approvers=%s",
        leave_request.id, len(steps), [s.approver_id for s in steps],
    )
    events = [
        LeaveRequested(
            leave_request_id=leave_request.id,
            requester_id=requester_id,
            approval_id=first.id,
            approver_id=first.approver_id,
        )
    ]
    return steps, events


def _lock_step(db: Session, approval_id: int) -> Tuple[Approval, LeaveRequest]:
    """Load and row-lock an approval step and its parent request."""
    approval = db.query(Approval).filter(Approval.id == approval_id).with_for_update().first()
    if not approval:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=MSG_APPROVAL_NOT_FOUND
        )
    leave_request = db.query(LeaveRequest).filter(
        LeaveRequest.id == approval.leave_request_id
    ).with_for_update().first()
    if not leave_request:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Leave request not found"
        )
    return approval, leave_request


def _authorize_actor(
    db: Session,
    approval: Approval,
    leave_request: LeaveRequest,
    actor_id: int,
    action: str
) -> None:
    """
    Same rule for approve and reject: the actor must be the step's assigned
    approver and must still be allowed to approve the requester right now.
    """
    if approval.approver_id != actor_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You are not authorized to {action} this request"
        )
    if not can_user_approve(db, actor_id, leave_request.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You are not authorized to {action} this request"
        )


def _ensure_actionable(approval: Approval, leave_request: LeaveRequest) -> None:
    if approval.status != ApprovalStatus.PENDING or leave_request.status != LeaveStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=MSG_ALREADY_PROCESSED
        )
    if leave_request.current_approval_id != approval.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Approval phase {approval.phase} is not the active step of this request"
        )


def _close_step(db: Session, approval: Approval, new_status: ApprovalStatus, note: Optional[str]) -> None:
    """
    Flip a step out of PENDING.

    The UPDATE is guarded on status so that of two concurrent actions only
    one can succeed; the loser sees zero rows and gets "already processed".
    """
    updated = db.query(Approval).filter(
        Approval.id == approval.id,
        Approval.status == ApprovalStatus.PENDING,
    ).update(
        {
            Approval.status: new_status,
            Approval.note: note,
            Approval.action_date: now_utc(),
        },
        synchronize_session="fetch",
    )
    if updated != 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=MSG_ALREADY_PROCESSED
        )
    logger.info(
        "approval transition: approval_id=%s leave_request_id=%s phase=%s before=PENDING after=%s",
        approval.id, approval.leave_request_id, approval.phase, new_status.value,
    )


def approve_leave_request(
    db: Session,
    approval_id: int,
    approver_id: int,
    note: Optional[str] = None,
    bus: Publisher = event_bus
) -> Dict[str, Any]:
    """
    Approve the active step of a leave request and advance the chain

    Args:
        db: Database session
        approval_id: Step being approved
        approver_id: User performing the approval
        note: Optional note stored on the step
        bus: Event bus or publisher notified after commit

    Returns:
        {"approval": next step or None, "is_final": bool, "message": str}

    Raises:
        HTTPException: 404 unknown step, 403 not authorized, 400 already processed / not active
    """
    events: List[object] = []
    try:
        approval, leave_request = _lock_step(db, approval_id)
        _authorize_actor(db, approval, leave_request, approver_id, "approve")
        _ensure_actionable(approval, leave_request)

        _close_step(db, approval, ApprovalStatus.APPROVED, note)

        next_step = db.query(Approval).filter(
            Approval.leave_request_id == leave_request.id,
            Approval.phase == approval.phase + 1,
            Approval.status == ApprovalStatus.PENDING,
        ).first()

        if next_step:
            leave_request.current_approval_id = next_step.id
            log_audit(
                db=db,
                actor_id=approver_id,
                action="LEAVE_APPROVE_PHASE",
                entity_type="approvals",
                entity_id=approval.id,
                meta={
                    "leave_request_id": leave_request.id,
                    "phase": approval.phase,
                    "next_phase": next_step.phase,
                    "note": note,
                },
            )
            events.append(LeaveRequested(
                leave_request_id=leave_request.id,
                requester_id=leave_request.user_id,
                approval_id=next_step.id,
                approver_id=next_step.approver_id,
            ))
            result = {
                "approval": next_step,
                "is_final": False,
                "message": "Approval moved to next phase",
            }
        else:
            leave_request.status = LeaveStatus.APPROVED
            leave_request.current_approval_id = None
            log_audit(
                db=db,
                actor_id=approver_id,
                action="LEAVE_APPROVE",
                entity_type="leave_requests",
                entity_id=leave_request.id,
                meta={"approval_id": approval.id, "phase": approval.phase, "note": note},
            )
            events.append(LeaveApproved(
                leave_request_id=leave_request.id,
                requester_id=leave_request.user_id,
                approver_id=approver_id,
            ))
            result = {
                "approval": None,
                "is_final": True,
                "message": "Leave request fully approved",
            }
            logger.info(
                "leave status transition: leave_request_id=%s before=PENDING after=APPROVED action=approve",
                leave_request.id,
            )

        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise persistence_failure("approve leave request", e)

    if result["approval"] is not None:
        db.refresh(result["approval"])
    bus.publish_all(events)
    return result


def reject_leave_request(
    db: Session,
    approval_id: int,
    approver_id: int,
    note: str,
    bus: Publisher = event_bus
) -> Approval:
    """
    Reject the active step; the whole request becomes REJECTED

    Later phases are left PENDING and are never actioned.

    Args:
        db: Database session
        approval_id: Step being rejected
        approver_id: User performing the rejection
        note: Rejection reason (required, sent to the requester)
        bus: Event bus or publisher notified after commit

    Returns:
        The rejected Approval step

    Raises:
        HTTPException: 404 unknown step, 403 not authorized, 400 already processed / missing reason
    """
    if not note or not note.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A reason is required to reject a leave request"
        )

    try:
        approval, leave_request = _lock_step(db, approval_id)
        _authorize_actor(db, approval, leave_request, approver_id, "reject")
        _ensure_actionable(approval, leave_request)

        _close_step(db, approval, ApprovalStatus.REJECTED, note)

        leave_request.status = LeaveStatus.REJECTED
        leave_request.current_approval_id = None
        log_audit(
            db=db,
            actor_id=approver_id,
            action="LEAVE_REJECT",
            entity_type="leave_requests",
            entity_id=leave_request.id,
            meta={"approval_id": approval.id, "phase": approval.phase, "note": note},
        )
        event = LeaveRejected(
            leave_request_id=leave_request.id,
            requester_id=leave_request.user_id,
            approver_id=approver_id,
            reason=note,
        )
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise persistence_failure("reject leave request", e)

    logger.info(
        "leave status transition: leave_request_id=%s before=PENDING after=REJECTED action=reject phase=%s",
        leave_request.id, approval.phase,
    )
    db.refresh(approval)
    bus.publish(event)
    return approval
