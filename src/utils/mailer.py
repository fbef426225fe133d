"""Outbound email.

This module renders the portal's HTML email templates with Jinja2 and hands
the messages to an SMTP server.
"""

import logging
import smtplib
import ssl
from dataclasses import asdict
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Optional

import jinja2

import config
from core.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)

LECTURER_INVITE_TEMPLATE = "lecturer_invite.html"
STUDENT_INVITE_TEMPLATE = "student_invite.html"
ASSIGNMENT_INVITE_TEMPLATE = "assignment_invite.html"
PASSWORD_RESET_TEMPLATE = "password_reset.html"
SUBMISSION_LECTURER_TEMPLATE = "submission_lecturer.html"
SUBMISSION_STUDENT_TEMPLATE = "submission_student.html"


class Mailer:
    """Renders templates and sends them over SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = False,
        use_tls: bool = True,
        template_dir: Path = config.EMAIL_TEMPLATE_DIR,
        frontend_url: str = "",
    ):
        """Initialize the mailer.

        Args:
            host: SMTP host.
            port: SMTP port.
            sender: Address placed in the From header.
            username: Optional SMTP login.
            password: Optional SMTP password.
            use_ssl: Connect with implicit TLS (SMTPS).
            use_tls: Upgrade a plain connection with STARTTLS.
            template_dir: Directory holding the HTML templates.
            frontend_url: Base URL of the web client, exposed to templates.
        """
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.use_tls = use_tls
        self.frontend_url = frontend_url
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            autoescape=jinja2.select_autoescape(["html"]),
            undefined=jinja2.StrictUndefined,
        )

    @classmethod
    def from_config(cls) -> "Mailer":
        return cls(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            sender=config.ADMIN_MAIL,
            username=config.SMTP_USERNAME,
            password=config.SMTP_PASSWORD,
            use_ssl=config.SMTP_USE_SSL,
            use_tls=config.SMTP_USE_TLS,
            frontend_url=config.FRONTEND_ORIGIN,
        )

    def render(self, template_name: str, **context: Any) -> str:
        """Render an HTML template with the given placeholders."""
        template = self.env.get_template(template_name)
        return template.render(frontURL=self.frontend_url, **context)

    def send(self, to: str, subject: str, html: str, text: str = "Hello") -> None:
        """Send one email.

        Args:
            to: Recipient address.
            subject: Subject line.
            html: HTML body.
            text: Plain text alternative.

        Raises:
            MailDeliveryError: If the SMTP exchange fails.
        """
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        try:
            if self.use_ssl:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(
                    self.host, self.port, context=context, timeout=config.SMTP_TIMEOUT_SECONDS
                ) as s:
                    self._deliver(s, msg)
            else:
                with smtplib.SMTP(
                    self.host, self.port, timeout=config.SMTP_TIMEOUT_SECONDS
                ) as s:
                    if self.use_tls:
                        s.starttls(context=ssl.create_default_context())
                    self._deliver(s, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"Failed to send '{subject}' to {to}: {e}") from e

        logger.info("Sent '%s' to %s", subject, to)

    def _deliver(self, s: smtplib.SMTP, msg: EmailMessage) -> None:
        if self.username and self.password:
            s.login(self.username, self.password)
        s.send_message(msg)

    def send_template(self, to: str, subject: str, template_name: str, **context: Any) -> None:
        self.send(to, subject, self.render(template_name, **context))

    # --- Portal emails ---

    def send_lecturer_invite(self, user, temporary_password: str) -> None:
        """Invite a newly registered lecturer to claim their account."""
        self.send_template(
            user.email,
            "Claim Your Lecturer Account Now",
            LECTURER_INVITE_TEMPLATE,
            firstName=user.first_name,
            lastName=user.last_name,
            email=user.email,
            password=temporary_password,
            id=user.staff_id,
        )

    def send_student_invite(self, user, temporary_password: str) -> None:
        """Invite a newly registered student to claim their account."""
        self.send_template(
            user.email,
            "Claim Your Student Account Now",
            STUDENT_INVITE_TEMPLATE,
            firstName=user.first_name,
            lastName=user.last_name,
            email=user.email,
            password=temporary_password,
            id=user.staff_id,
        )

    def send_assignment_invite(
        self, student, assignment_title: str, assignment_deadline: str, assignment_code: str
    ) -> None:
        self.send_template(
            student.email,
            "Invitation to Assignment",
            ASSIGNMENT_INVITE_TEMPLATE,
            firstName=student.first_name,
            lastName=student.last_name,
            email=student.email,
            assignmentTitle=assignment_title,
            assignmentDeadline=assignment_deadline,
            assignmentCode=assignment_code,
        )

    def send_password_reset(self, email: str, link: str) -> None:
        self.send_template(
            email, "Reset Password", PASSWORD_RESET_TEMPLATE, resetURL=link
        )

    def send_submission_to_lecturer(self, notice) -> None:
        """Tell a lecturer that a student submitted work for an assignment.

        Args:
            notice: ``SubmissionNotice`` describing the submission group.
        """
        self.send_template(
            notice.lecturer_email,
            "Submitted Assignment",
            SUBMISSION_LECTURER_TEMPLATE,
            submission=asdict(notice),
        )

    def send_submission_to_student(
        self, email: str, first_name: str, last_name: str, student_id: str, assignment_code: str
    ) -> None:
        self.send_template(
            email,
            "Submitted Assignment",
            SUBMISSION_STUDENT_TEMPLATE,
            firstName=first_name,
            lastName=last_name,
            studentId=student_id,
            assignmentCode=assignment_code,
        )
