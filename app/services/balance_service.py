"""
Balance calculator - yearly leave usage per entitlement type
"""
from datetime import date
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session, joinedload
from fastapi import HTTPException, status
from app.core.constants import MSG_LEAVE_TYPE_UNAVAILABLE
from app.models.user import User
from app.models.level import LevelEntitlement
from app.models.leave import LeaveRequest, LeaveStatus
from app.services.entitlement_service import is_leave_entitlement
from app.utils.datetime_utils import count_business_days, start_of_year


def check_leave_balance(
    db: Session,
    user_id: int,
    type_id: int,
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Compute used / pending / rejected business days for the current year

    Only requests starting on or after January 1st of the current year count.
    balance = allowance - approved days; pending and rejected days are
    reported but not subtracted.

    Args:
        db: Database session
        user_id: Employee
        type_id: Entitlement (leave type) ID
        today: Reference date (defaults to date.today())

    Returns:
        {type_id, leave_type, entitlement, used_leave_days, pending_leave_days,
         rejected_leave_days, balance, unit}

    Raises:
        HTTPException: 404 if the user is missing, 400 if their level lacks this
            leave type
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee Not Found"
        )

    level_entitlement = None
    if user.level_id is not None:
        level_entitlement = db.query(LevelEntitlement).options(
            joinedload(LevelEntitlement.entitlement)
        ).filter(
            LevelEntitlement.level_id == user.level_id,
            LevelEntitlement.entitlement_id == type_id,
        ).first()
    if not level_entitlement or not is_leave_entitlement(level_entitlement):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=MSG_LEAVE_TYPE_UNAVAILABLE
        )

    requests = db.query(LeaveRequest).filter(
        LeaveRequest.user_id == user_id,
        LeaveRequest.type_id == type_id,
        LeaveRequest.start_date >= start_of_year(today),
    ).all()

    totals = {s: 0 for s in LeaveStatus}
    for leave_request in requests:
        totals[leave_request.status] += count_business_days(leave_request.start_date, leave_request.end_date)

    used = totals[LeaveStatus.APPROVED]
    return {
        "type_id": type_id,
        "leave_type": level_entitlement.entitlement.name,
        "entitlement": level_entitlement.value,
        "used_leave_days": used,
        "pending_leave_days": totals[LeaveStatus.PENDING],
        "rejected_leave_days": totals[LeaveStatus.REJECTED],
        "balance": level_entitlement.value - used,
        "unit": level_entitlement.entitlement.unit,
    }
