"""
Registration emails sent to students as their submission moves through review.

Delivery is best-effort: every method returns False instead of raising when
mail is disabled or the SMTP server fails, so a transition is never affected
by email problems.
"""
import logging
from html import escape
from typing import Any, Dict, Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from portal import settings

logger = logging.getLogger(__name__)

UNIVERSITY_NAME = "Limkokwing University"


def _layout(heading: str, paragraphs: list) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px;\">"
        f"<h2>{escape(heading)}</h2>{body}"
        f"<p>Regards,<br/>{UNIVERSITY_NAME} Registry</p>"
        "</div>"
    )


def _period(context: Dict[str, Any]) -> str:
    return f"{escape(str(context.get('semester', '')))} {escape(str(context.get('academic_year', '')))}"


class RegistrationMailer:
    def __init__(self, config: Optional[ConnectionConfig] = None):
        self._config = config

    @staticmethod
    def configured() -> bool:
        return settings.MAIL_ENABLED and bool(settings.MAIL_SERVER)

    def _connection(self) -> FastMail:
        if self._config is None:
            self._config = ConnectionConfig(
                MAIL_USERNAME=settings.MAIL_USERNAME,
                MAIL_PASSWORD=settings.MAIL_PASSWORD,
                MAIL_FROM=settings.MAIL_FROM,
                MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
                MAIL_PORT=settings.MAIL_PORT,
                MAIL_SERVER=settings.MAIL_SERVER,
                MAIL_STARTTLS=settings.MAIL_STARTTLS,
                MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
                USE_CREDENTIALS=bool(settings.MAIL_USERNAME),
            )
        return FastMail(self._config)

    async def _send(self, recipient: str, subject: str, html: str) -> bool:
        if not self.configured():
            logger.warning("Email service not configured. Skipping %r to %s", subject, recipient)
            return False
        try:
            message = MessageSchema(
                subject=subject,
                recipients=[recipient],
                body=html,
                subtype=MessageType.html,
            )
            await self._connection().send_message(message)
            logger.info("Email %r sent to %s", subject, recipient)
            return True
        except Exception:
            logger.exception("Failed to send %r to %s", subject, recipient)
            return False

    async def send_submission_received_email(self, recipient: str, context: Dict[str, Any]) -> bool:
        subject = f"Registration Submitted - {UNIVERSITY_NAME}"
        html = _layout(
            "Registration Submitted",
            [
                f"Dear {escape(context.get('student_name') or 'Student')},",
                f"Your module registration for {_period(context)} has been received "
                "and is awaiting review by your Year Leader.",
                "You will be notified as it moves through each approval stage.",
            ],
        )
        return await self._send(recipient, subject, html)

    async def send_approval_email(self, stage: str, recipient: str, context: Dict[str, Any]) -> bool:
        subject = f"Registration Update - {stage} Approved"
        paragraphs = [
            f"Dear {escape(context.get('student_name') or 'Student')},",
            f"Your registration for {_period(context)} has been approved at the "
            f"<strong>{escape(stage)}</strong> stage"
            + (f" by {escape(context['approver_name'])}." if context.get("approver_name") else "."),
        ]
        if context.get("next_stage"):
            paragraphs.append(f"It is now awaiting {escape(context['next_stage'])} review.")
        if context.get("comments"):
            paragraphs.append(f"Comments: {escape(context['comments'])}")
        return await self._send(recipient, subject, _layout("Registration Update", paragraphs))

    async def send_final_approval_email(self, recipient: str, context: Dict[str, Any]) -> bool:
        subject = f"Registration Fully Approved - {UNIVERSITY_NAME}"
        html = _layout(
            "Registration Fully Approved",
            [
                f"Dear {escape(context.get('student_name') or 'Student')},",
                f"Congratulations! Your registration for {_period(context)} has been "
                "approved by the Year Leader, Finance and the Registrar.",
                "Your confirmation slip will be available on the portal shortly.",
            ],
        )
        return await self._send(recipient, subject, html)

    async def send_rejection_email(self, recipient: str, reason: str, context: Dict[str, Any]) -> bool:
        subject = "Registration Update - Action Required"
        stage = context.get("stage")
        html = _layout(
            "Registration Requires Attention",
            [
                f"Dear {escape(context.get('student_name') or 'Student')},",
                f"Your registration for {_period(context)} was not approved"
                + (f" at the {escape(stage)} stage." if stage else "."),
                f"Reason: {escape(reason or 'No reason given')}",
                "Please contact the relevant office or submit a corrected registration.",
            ],
        )
        return await self._send(recipient, subject, html)
