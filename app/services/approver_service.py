"""
Approver resolver - who may approve whose requests
"""
import logging
from typing import List, Optional, Set
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
from app.core.errors import persistence_failure
from app.models.user import User
from app.models.department import Department
from app.models.approver import Approver, ApproverRole
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def _active_approvers(db: Session):
    return db.query(Approver).options(joinedload(Approver.user)).filter(Approver.is_active.is_(True))


def list_global_approvers(db: Session) -> List[Approver]:
    """Active approvers with no department scope (e.g. HR); they may approve anyone."""
    return _active_approvers(db).filter(
        Approver.department_id.is_(None)
    ).order_by(Approver.id.asc()).all()


def list_department_approvers(db: Session, department_id: int) -> List[Approver]:
    """Active DEPT_MANAGER approvers scoped to one department"""
    return _active_approvers(db).filter(
        Approver.department_id == department_id,
        Approver.role == ApproverRole.DEPT_MANAGER,
    ).order_by(Approver.id.asc()).all()


def list_peer_head_approvers(db: Session, exclude_department_id: int) -> List[Approver]:
    """Active DEPT_MANAGER approvers of every department except the given one"""
    return _active_approvers(db).filter(
        Approver.department_id.isnot(None),
        Approver.department_id != exclude_department_id,
        Approver.role == ApproverRole.DEPT_MANAGER,
    ).order_by(Approver.id.asc()).all()


def is_department_head(db: Session, user_id: int) -> bool:
    """True if the user heads any department"""
    return db.query(Department.id).filter(Department.head_id == user_id).first() is not None


def _unique_by_user(approvers: List[Approver]) -> List[Approver]:
    seen: Set[int] = set()
    unique = []
    for approver in approvers:
        if approver.user_id in seen:
            continue
        seen.add(approver.user_id)
        unique.append(approver)
    return unique


def get_approvers_for_user(db: Session, user_id: int) -> List[Approver]:
    """
    Resolve the ordered approver list for requests made by a user

    Rules:
    - Department head: DEPT_MANAGER approvers of other departments, then global approvers.
      The head's own department slot is skipped so they escalate to a peer or HR.
    - Everyone else: their department's DEPT_MANAGER approvers, then global approvers.

    A user holding several records appears once, at their first position.

    Raises:
        HTTPException: 404 if the user does not exist
    """
    user = db.query(User).options(joinedload(User.department)).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    department = user.department
    if department is not None and department.head_id == user.id:
        scoped = list_peer_head_approvers(db, department.id)
    elif department is not None:
        scoped = list_department_approvers(db, department.id)
    else:
        scoped = []

    return _unique_by_user(scoped + list_global_approvers(db))


def can_user_approve(db: Session, approver_user_id: int, target_user_id: int) -> bool:
    """
    Decide whether one user may approve another user's request

    Evaluated from current org data on every call, independent of any
    previously built approval chain.
    """
    # Self-approval is never allowed
    if approver_user_id == target_user_id:
        return False

    records = db.query(Approver).filter(
        Approver.user_id == approver_user_id,
        Approver.is_active.is_(True),
    ).all()
    if not records:
        return False

    if any(record.is_global for record in records):
        return True

    target = db.query(User).filter(User.id == target_user_id).first()
    if not target:
        return False

    manager_records = [r for r in records if r.role == ApproverRole.DEPT_MANAGER]
    if not manager_records:
        return False

    if target.department_id is not None and any(
        r.department_id == target.department_id for r in manager_records
    ):
        return True

    # Peer department heads approve each other
    return is_department_head(db, target_user_id)


def get_effective_roles(db: Session, user: User) -> Set[str]:
    """
    Base roles of the user plus the roles granted by active approver records

    Computed on demand so that deactivating an approver takes effect immediately.
    """
    roles = set(user.roles)
    records = db.query(Approver).filter(
        Approver.user_id == user.id,
        Approver.is_active.is_(True),
    ).all()
    for record in records:
        roles.add(record.role.value)
    return roles


def get_approver(db: Session, approver_id: int) -> Optional[Approver]:
    return db.query(Approver).filter(Approver.id == approver_id).first()


def create_approver(
    db: Session,
    user_id: int,
    department_id: Optional[int],
    role: ApproverRole,
    actor_id: int
) -> Approver:
    """
    Grant approval capability to a user

    Args:
        db: Database session
        user_id: User receiving the grant
        department_id: Department scope, or None for a global approver
        role: Approver role
        actor_id: ID of the user performing the change

    Returns:
        Created Approver instance

    Raises:
        HTTPException: 404 if user/department is missing, 409 if an identical active grant exists
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id {user_id} not found"
        )

    if department_id is not None:
        department = db.query(Department).filter(Department.id == department_id).first()
        if not department:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Department with id {department_id} not found"
            )

    query = db.query(Approver).filter(
        Approver.user_id == user_id,
        Approver.role == role,
        Approver.is_active.is_(True),
    )
    if department_id is None:
        query = query.filter(Approver.department_id.is_(None))
    else:
        query = query.filter(Approver.department_id == department_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An active approver with this role and scope already exists for this user"
        )

    try:
        approver = Approver(
            user_id=user_id,
            department_id=department_id,
            role=role,
            is_active=True,
        )
        db.add(approver)
        db.flush()
        log_audit(
            db=db,
            actor_id=actor_id,
            action="APPROVER_CREATE",
            entity_type="approvers",
            entity_id=approver.id,
            meta={"user_id": user_id, "department_id": department_id, "role": role},
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise persistence_failure("create approver", e)

    db.refresh(approver)
    logger.info(
        "approver created: approver_id=%s user_id=%s role=%s department_id=%s",
        approver.id, user_id, role.value, department_id,
    )
    return approver


def deactivate_approver(db: Session, approver_id: int, actor_id: int) -> Approver:
    """
    Soft-delete an approver record (is_active = False); the row is kept for the audit trail

    Raises:
        HTTPException: 404 if the approver record does not exist
    """
    approver = get_approver(db, approver_id)
    if not approver:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Approver with id {approver_id} not found"
        )

    if not approver.is_active:
        return approver

    try:
        approver.is_active = False
        log_audit(
            db=db,
            actor_id=actor_id,
            action="APPROVER_DEACTIVATE",
            entity_type="approvers",
            entity_id=approver.id,
            meta={"user_id": approver.user_id, "department_id": approver.department_id},
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise persistence_failure("deactivate approver", e)

    db.refresh(approver)
    logger.info("approver deactivated: approver_id=%s user_id=%s", approver.id, approver.user_id)
    return approver
