# backend/utils/notifier.py
import httpx
import logging
import smtplib
from email.message import EmailMessage
from typing import Callable, Optional
from urllib.parse import urljoin

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from database import SessionLocal
from models.notification import Notification

logger = logging.getLogger(__name__)

class Notifier:
    """Best-effort order notifications: admin alerts and customer mail.

    Only ever called after the order transaction committed (through FastAPI
    BackgroundTasks). Every failure is logged and swallowed here, nothing is
    raised back to the request.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal,
                 socket_url: Optional[str] = settings.SOCKET_URL,
                 timeout: float = settings.NOTIFY_TIMEOUT_SECONDS,
                 smtp_host: Optional[str] = settings.SMTP_HOST,
                 smtp_port: int = settings.SMTP_PORT,
                 mail_from: str = settings.MAIL_FROM):
        self.session_factory = session_factory
        self.socket_url = socket_url
        self.timeout = timeout
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.mail_from = mail_from

    def _store(self, event: str, title: str, message: str, data: dict) -> Optional[dict]:
        db = self.session_factory()
        try:
            notification = Notification(type=event, title=title, message=message, data=data)
            db.add(notification)
            db.commit()
            db.refresh(notification)
            return {
                "id": notification.id,
                "type": notification.type,
                "title": notification.title,
                "message": notification.message,
                "data": notification.data,
                "created_at": notification.created_at.isoformat() if notification.created_at else None,
            }
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to store admin notification {event}: {e}")
            return None
        finally:
            db.close()

    def _push(self, payload: dict) -> None:
        if not self.socket_url:
            return
        notify_url = urljoin(self.socket_url, "/api/notify")
        try:
            response = httpx.post(
                notify_url,
                json={"room": "admin", "event": "admin:notification", "data": payload},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to emit socket notification: {e}")

    def dispatch(self, event: str, title: str, message: str, data: Optional[dict] = None) -> None:
        try:
            stored = self._store(event, title, message, data or {})
            payload = stored or {"type": event, "title": title, "message": message, "data": data or {}}
            self._push(payload)
        except Exception:
            logger.exception("Unexpected error while dispatching %s notification", event)

    def order_created(self, payload: dict) -> None:
        self.dispatch(
            "order_created",
            "New order",
            f"Order #{payload.get('order_number')} from {payload.get('customer_name')} "
            f"with total {float(payload.get('total') or 0):,.0f}",
            payload,
        )

    def order_cancelled(self, payload: dict) -> None:
        self.dispatch(
            "order_cancelled",
            "Order cancelled",
            f"Order #{payload.get('order_number')} was cancelled",
            payload,
        )

    def _send_mail(self, to: str, subject: str, body: str) -> bool:
        if not self.smtp_host:
            return False
        message = EmailMessage()
        message["From"] = self.mail_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as smtp:
                if settings.SMTP_STARTTLS:
                    smtp.starttls()
                if settings.SMTP_USER:
                    smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Failed to send mail to {to}: {e}")
            return False
        return True

    # Customer confirmation for a placed order, sent to the shipping address
    def order_confirmation(self, payload: dict) -> None:
        to = payload.get("customer_email")
        if not to:
            return
        try:
            lines = [
                f"Hello {payload.get('customer_name') or 'customer'},",
                "",
                f"Thank you for your order #{payload.get('order_number')}.",
                f"Total: {float(payload.get('total') or 0):,.0f}",
                f"Status: {payload.get('status')}",
            ]
            if self._send_mail(to, f"Order confirmation #{payload.get('order_number')}", "\n".join(lines)):
                logger.info("Order confirmation %s sent to %s", payload.get("order_number"), to)
        except Exception:
            logger.exception("Unexpected error while sending confirmation for order %s", payload.get("order_number"))

notifier = Notifier()

# FastAPI dependency, overridden in tests
def get_notifier() -> Notifier:
    return notifier
