"""
Entitlement resolver - leave allowances by organizational level
"""
from typing import List, Dict, Any
from sqlalchemy.orm import Session, joinedload
from fastapi import HTTPException, status
from app.core.constants import MSG_LEAVE_TYPE_UNAVAILABLE
from app.models.user import User
from app.models.level import Level, LevelEntitlement, EntitlementType


def is_leave_entitlement(level_entitlement: LevelEntitlement) -> bool:
    entitlement = level_entitlement.entitlement
    if entitlement.type == EntitlementType.LEAVE:
        return True
    # Older entitlements carry no reliable type; a day-based unit marks them as leave
    return "day" in (entitlement.unit or "").lower()


def load_user_with_level(db: Session, user_id: int) -> User:
    """
    Load a user together with level -> level entitlements -> entitlement

    Raises:
        HTTPException: 404 if the user or their level is missing
    """
    user = db.query(User).options(
        joinedload(User.level)
        .joinedload(Level.entitlements)
        .joinedload(LevelEntitlement.entitlement)
    ).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee Not Found"
        )
    if not user.level:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No level assigned to this employee"
        )
    return user


def find_level_entitlement(user: User, type_id: int) -> LevelEntitlement:
    """
    Pick the allowance for one leave type from a loaded user's level

    Raises:
        HTTPException: 400 if the level does not grant this type or it is
            not a leave entitlement (claims, allowances)
    """
    for level_entitlement in user.level.entitlements:
        if level_entitlement.entitlement_id == type_id and is_leave_entitlement(level_entitlement):
            return level_entitlement
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=MSG_LEAVE_TYPE_UNAVAILABLE
    )


def get_leave_entitlements(db: Session, user_id: int) -> List[Dict[str, Any]]:
    """
    Leave allowances available to a user through their level

    Returns:
        List of {entitlement_id, name, value, unit}
    """
    user = load_user_with_level(db, user_id)
    return [
        {
            "entitlement_id": le.entitlement.id,
            "name": le.entitlement.name,
            "value": le.value,
            "unit": le.entitlement.unit,
        }
        for le in user.level.entitlements
        if is_leave_entitlement(le)
    ]
