"""
Mail service rendering Jinja2 templates into the mail outbox.

send() renders `{template}.txt.j2` from the template directory and stores the
result as a MailMessage row. An SMTP (or API) delivery worker drains the
outbox; this module never opens a network connection.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound, select_autoescape
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.models.mail_message import MailMessage
from backend.src.services.collaborators import Mailer
from backend.src.services.exceptions import MailFailedError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

TEMPLATE_SUFFIX = ".txt.j2"


class MailService(Mailer):
    """
    Mailer that queues rendered messages in the outbox table.

    Usage:
        >>> mailer = MailService(db, "backend/templates/mail", "no-reply@example.com")
        >>> mailer.send(["usr_01h..."], "Standup - meeting", "event", {"name": "Daily sync"})
    """

    def __init__(
        self,
        db: Session,
        template_dir: Union[str, Path],
        sender: str,
    ):
        """
        Initialize mail service.

        Args:
            db: SQLAlchemy database session
            template_dir: Directory containing *.txt.j2 templates
            sender: From address recorded on every message
        """
        self.db = db
        self.template_dir = Path(template_dir)
        self.sender = sender
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @staticmethod
    def _template_file(template: str) -> str:
        """Map a template name ('event', './event') to its file name."""
        name = template.strip()
        if name.startswith("./"):
            name = name[2:]
        return f"{name}{TEMPLATE_SUFFIX}"

    def render(self, template: str, context: Optional[Dict[str, Any]] = None) -> str:
        """
        Render a mail body.

        Raises:
            MailFailedError: If the template directory or template is missing,
                or the template fails to render
        """
        if not self.template_dir.is_dir():
            raise MailFailedError(f"Mail template directory not found: {self.template_dir}")

        template_file = self._template_file(template)
        try:
            return self.env.get_template(template_file).render(**(context or {}))
        except TemplateNotFound as e:
            raise MailFailedError(f"Mail template '{template_file}' not found") from e
        except TemplateError as e:
            raise MailFailedError(f"Error rendering mail template '{template_file}': {e}") from e

    def send(
        self,
        recipients: List[str],
        subject: str,
        template: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Queue a mail for delivery.

        Raises:
            MailFailedError: If there are no recipients, the template fails,
                or the outbox write fails
        """
        if not recipients:
            raise MailFailedError(f"Mail '{subject}' has no recipients")

        body = self.render(template, context)
        message = MailMessage(
            sender=self.sender,
            recipients=list(recipients),
            subject=subject,
            template=template,
            context=context,
            body=body,
        )
        try:
            self.db.add(message)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Failed to queue mail",
                extra={"subject": subject, "error": str(e)},
            )
            raise MailFailedError(f"Could not queue mail '{subject}'") from e

        logger.info(
            "Queued mail",
            extra={
                "guid": message.guid,
                "subject": subject,
                "recipient_count": len(recipients),
            },
        )

    def list_pending(self) -> List[MailMessage]:
        """Messages not yet delivered, oldest first."""
        return (
            self.db.query(MailMessage)
            .filter(MailMessage.sent_at.is_(None))
            .order_by(MailMessage.id.asc())
            .all()
        )
