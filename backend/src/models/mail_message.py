"""
Mail outbox model.

MailService renders a template and stores the result here instead of talking
to an SMTP server. A delivery worker picks up rows with sent_at IS NULL.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Index

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class MailMessage(Base, GuidMixin):
    """
    Rendered mail waiting for (or past) delivery.

    Attributes:
        sender: From address
        recipients: List of recipient references
        subject: Mail subject
        template: Template name the body was rendered from
        context: Template context (JSON)
        body: Rendered body
        sent_at: Delivery timestamp (NULL = pending)
    """

    __tablename__ = "mail_outbox"
    GUID_PREFIX = "eml"

    id = Column(Integer, primary_key=True, autoincrement=True)

    sender = Column(String(255), nullable=False)
    recipients = Column(JSON, nullable=False, default=list)
    subject = Column(String(500), nullable=False)
    template = Column(String(100), nullable=False)
    context = Column(JSON, nullable=True)
    body = Column(Text, nullable=False)

    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_mail_outbox_pending", "sent_at", "id"),
    )

    @property
    def is_pending(self) -> bool:
        return self.sent_at is None

    def __repr__(self) -> str:
        return f"<MailMessage(id={self.id}, subject='{self.subject}', recipients={len(self.recipients or [])})>"
