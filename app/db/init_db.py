"""
Database initialization script
Helper function to seed minimal demo data
"""
import logging
from sqlalchemy.orm import Session
from app.models.approver import Approver, ApproverRole
from app.models.department import Department
from app.models.level import Level, Entitlement, LevelEntitlement, EntitlementType
from app.models.user import User, Role

logger = logging.getLogger(__name__)

DEFAULT_LEAVE_TYPES = {
    "Annual Leave": 20,
    "Sick Leave": 10,
    "Casual Leave": 5,
}


def init_db(db: Session) -> None:
    """
    Seed a department, a level with leave entitlements and a global HR approver

    This is a helper function and should NOT be auto-run on startup.
    Call manually when needed for initial setup.
    """
    existing_hr = db.query(Approver).filter(
        Approver.role == ApproverRole.HR,
        Approver.department_id.is_(None),
        Approver.is_active.is_(True),
    ).first()
    if existing_hr:
        logger.info("Global HR approver already exists, skipping initialization")
        return

    department = db.query(Department).filter(Department.name == "HR").first()
    if not department:
        department = Department(name="HR", active=True)
        db.add(department)
        db.flush()

    level = db.query(Level).filter(Level.name == "Default").first()
    if not level:
        level = Level(name="Default", description="Default entitlement level")
        db.add(level)
        db.flush()

    for name, allowance in DEFAULT_LEAVE_TYPES.items():
        entitlement = db.query(Entitlement).filter(Entitlement.name == name).first()
        if not entitlement:
            entitlement = Entitlement(name=name, unit="days", type=EntitlementType.LEAVE)
            db.add(entitlement)
            db.flush()
        linked = db.query(LevelEntitlement).filter(
            LevelEntitlement.level_id == level.id,
            LevelEntitlement.entitlement_id == entitlement.id,
        ).first()
        if not linked:
            db.add(LevelEntitlement(level_id=level.id, entitlement_id=entitlement.id, value=allowance))

    hr_user = db.query(User).filter(User.email == "hr@example.com").first()
    if not hr_user:
        hr_user = User(
            email="hr@example.com",
            first_name="Default",
            last_name="HR",
            user_roles=[Role.EMPLOYEE.value, Role.HR.value],
            department_id=department.id,
            level_id=level.id,
            active=True,
        )
        db.add(hr_user)
        db.flush()

    db.add(Approver(user_id=hr_user.id, role=ApproverRole.HR, department_id=None, is_active=True))
    db.commit()
    logger.info("Default HR approver created: email=%s", hr_user.email)


if __name__ == "__main__":
    from app.core.logging import setup_logging
    from app.db.session import SessionLocal

    setup_logging()
    session = SessionLocal()
    try:
        init_db(session)
    finally:
        session.close()
