"""
Notification dispatcher - turns leave workflow events into in-app
notifications and mail payloads

Runs after the workflow transaction has committed, in its own session.
Mail delivery is delegated to a mail-sender callable.
"""
import logging
from dataclasses import dataclass, asdict
from datetime import date
from typing import Callable, List, Optional
from sqlalchemy.orm import Session, joinedload, sessionmaker
from fastapi import HTTPException, status
from app.models.leave import LeaveRequest
from app.models.notification import Notification
from app.models.user import User
from app.services.events import EventBus, LeaveRequested, LeaveApproved, LeaveRejected
from app.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

LEAVE_REQUESTED = "LEAVE_REQUESTED"
LEAVE_APPROVED = "LEAVE_APPROVED"
LEAVE_REJECTED = "LEAVE_REJECTED"


@dataclass(frozen=True)
class LeaveMail:
    email: str
    name: str
    leave_type: str
    start_date: date
    end_date: date
    duration: int
    reason: Optional[str] = None


MailSender = Callable[[str, LeaveMail], None]


def log_mail_sender(kind: str, mail: LeaveMail) -> None:
    """Default mail sender: records the payload for the mail service to pick up."""
    logger.info("mail queued: kind=%s payload=%s", kind, asdict(mail))


class NotificationDispatcher:
    def __init__(self, session_factory: sessionmaker, mail_sender: MailSender = log_mail_sender):
        self.session_factory = session_factory
        self.mail_sender = mail_sender

    def register(self, bus: EventBus) -> None:
        bus.subscribe(LeaveRequested, self.notify)
        bus.subscribe(LeaveApproved, self.notify)
        bus.subscribe(LeaveRejected, self.notify)

    def unregister(self, bus: EventBus) -> None:
        bus.unsubscribe(LeaveRequested, self.notify)
        bus.unsubscribe(LeaveApproved, self.notify)
        bus.unsubscribe(LeaveRejected, self.notify)

    def notify(self, event: object) -> None:
        db = self.session_factory()
        try:
            if isinstance(event, LeaveRequested):
                self._leave_requested(db, event)
            elif isinstance(event, LeaveApproved):
                self._leave_approved(db, event)
            elif isinstance(event, LeaveRejected):
                self._leave_rejected(db, event)
            else:
                logger.warning("Ignoring unknown event %r", event)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _load_request(self, db: Session, leave_request_id: int) -> LeaveRequest:
        leave_request = db.query(LeaveRequest).options(
            joinedload(LeaveRequest.user),
            joinedload(LeaveRequest.type),
        ).filter(LeaveRequest.id == leave_request_id).first()
        if leave_request is None:
            raise LookupError(f"Leave request {leave_request_id} not found for notification")
        return leave_request

    def _store(
        self,
        db: Session,
        recipient_id: int,
        actor_id: Optional[int],
        leave_request_id: int,
        kind: str,
        message: str
    ) -> Notification:
        notification = Notification(
            recipient_id=recipient_id,
            actor_id=actor_id,
            leave_request_id=leave_request_id,
            type=kind,
            message=message,
            read=False,
            created_at=now_utc(),
        )
        db.add(notification)
        db.commit()
        return notification

    def _send_mail(self, kind: str, mail: LeaveMail) -> None:
        try:
            self.mail_sender(kind, mail)
        except Exception:
            logger.exception("Failed to send %s mail to %s", kind, mail.email)

    def _leave_requested(self, db: Session, event: LeaveRequested) -> None:
        leave_request = self._load_request(db, event.leave_request_id)
        approver = db.query(User).filter(User.id == event.approver_id).first()
        if approver is None:
            raise LookupError(f"Approver {event.approver_id} not found for notification")
        requester = leave_request.user
        message = (
            f"{requester.full_name} requested {leave_request.duration} day(s) of "
            f"{leave_request.type.name} from {leave_request.start_date} to {leave_request.end_date}."
        )
        self._store(db, approver.id, requester.id, leave_request.id, LEAVE_REQUESTED, message)
        self._send_mail(LEAVE_REQUESTED, LeaveMail(
            email=approver.contact_email,
            name=requester.full_name,
            leave_type=leave_request.type.name,
            start_date=leave_request.start_date,
            end_date=leave_request.end_date,
            duration=leave_request.duration,
            reason=leave_request.reason or "No reason provided",
        ))

    def _leave_approved(self, db: Session, event: LeaveApproved) -> None:
        leave_request = self._load_request(db, event.leave_request_id)
        requester = leave_request.user
        message = (
            f"Your {leave_request.type.name} request from {leave_request.start_date} "
            f"to {leave_request.end_date} has been approved."
        )
        self._store(db, requester.id, event.approver_id, leave_request.id, LEAVE_APPROVED, message)
        self._send_mail(LEAVE_APPROVED, LeaveMail(
            email=requester.contact_email,
            name=requester.full_name,
            leave_type=leave_request.type.name,
            start_date=leave_request.start_date,
            end_date=leave_request.end_date,
            duration=leave_request.duration,
        ))

    def _leave_rejected(self, db: Session, event: LeaveRejected) -> None:
        leave_request = self._load_request(db, event.leave_request_id)
        requester = leave_request.user
        message = (
            f"Your {leave_request.type.name} request from {leave_request.start_date} "
            f"to {leave_request.end_date} was rejected: {event.reason}"
        )
        self._store(db, requester.id, event.approver_id, leave_request.id, LEAVE_REJECTED, message)
        self._send_mail(LEAVE_REJECTED, LeaveMail(
            email=requester.contact_email,
            name=requester.full_name,
            leave_type=leave_request.type.name,
            start_date=leave_request.start_date,
            end_date=leave_request.end_date,
            duration=leave_request.duration,
            reason=event.reason,
        ))


def list_notifications(db: Session, user_id: int) -> List[Notification]:
    """A user's notifications, newest first"""
    return db.query(Notification).filter(
        Notification.recipient_id == user_id
    ).order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def mark_as_read(db: Session, notification_id: int, user_id: int) -> Notification:
    """
    Raises:
        HTTPException: 404 if the notification does not exist or belongs to someone else
    """
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.recipient_id == user_id,
    ).first()
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Notification with id {notification_id} not found"
        )
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user_id: int) -> int:
    """Returns the number of notifications updated"""
    updated = db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.read.is_(False),
    ).update({Notification.read: True}, synchronize_session=False)
    db.commit()
    return updated
