"""
Dependencies and guards for FastAPI endpoints
"""
from typing import Generator
from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.core.security import decode_token
from app.models.user import User, Role
from app.services.approver_service import get_effective_roles
from app.services.events import BackgroundPublisher, event_bus


security = HTTPBearer()


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_event_publisher(background_tasks: BackgroundTasks) -> BackgroundPublisher:
    """Workflow events of this request, delivered after the response is sent"""
    return BackgroundPublisher(event_bus, background_tasks)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from the bearer token
    """
    token = credentials.credentials

    try:
        payload = decode_token(token)
        sub_value = payload.get("sub")
        if sub_value is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        user_id: int = int(sub_value)
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user


def require_roles(*allowed_roles: Role):
    """
    Dependency factory for role-based access control

    Effective roles are the user's base roles plus those granted by active
    approver records, evaluated on every request.

    Usage:
        @router.post("")
        async def hr_endpoint(user: User = Depends(require_roles(Role.HR))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
        effective = get_effective_roles(db, current_user)

        # ADMIN is a superuser regardless of required roles
        if Role.ADMIN.value in effective:
            return current_user

        if not effective.intersection(r.value for r in allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user
    return role_checker
