"""
Approver management endpoints
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, require_roles
from app.models.user import User, Role
from app.schemas.approver import ApproverCreate, ApproverOut
from app.services.approver_service import (
    list_global_approvers,
    list_department_approvers,
    get_approvers_for_user,
    create_approver,
    deactivate_approver,
)

router = APIRouter()


@router.get("", response_model=List[ApproverOut])
async def list_global_approvers_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Active global approvers (no department scope)"""
    return list_global_approvers(db)


@router.get("/department/{department_id}", response_model=List[ApproverOut])
async def list_department_approvers_endpoint(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return list_department_approvers(db, department_id)


@router.get("/user/{user_id}", response_model=List[ApproverOut])
async def approvers_for_user_endpoint(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Approvers that would form the chain for this user's next request"""
    return get_approvers_for_user(db, user_id)


@router.post("", response_model=ApproverOut, status_code=201)
async def create_approver_endpoint(
    approver_data: ApproverCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.ADMIN, Role.HR))
):
    """Grant approval capability (Admin/HR only)"""
    return create_approver(
        db,
        user_id=approver_data.user_id,
        department_id=approver_data.department_id,
        role=approver_data.role,
        actor_id=current_user.id,
    )


@router.delete("/{approver_id}", response_model=ApproverOut)
async def deactivate_approver_endpoint(
    approver_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.ADMIN, Role.HR))
):
    """Deactivate an approver record (Admin/HR only); the record is kept"""
    return deactivate_approver(db, approver_id, current_user.id)
