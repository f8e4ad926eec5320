"""
Unit tests for MailService.

Tests template rendering, outbox storage and failure handling using the
bundled templates and a temporary template directory.
"""

import pytest
from sqlalchemy.exc import OperationalError

from backend.src.config.settings import get_settings
from backend.src.models.mail_message import MailMessage
from backend.src.services.exceptions import MailFailedError
from backend.src.services.mail_service import MailService


@pytest.fixture
def mail_service(test_db_session):
    """MailService using the bundled templates."""
    return MailService(test_db_session, get_settings().mail_template_dir, "events@example.com")


@pytest.fixture
def template_dir(tmp_path):
    path = tmp_path / "templates"
    path.mkdir()
    (path / "hello.txt.j2").write_text("Hello {{ name }}!")
    (path / "broken.txt.j2").write_text("{{ name | no_such_filter }}")
    return path


class TestRender:
    """Tests for MailService.render."""

    def test_bundled_event_template(self, mail_service):
        body = mail_service.render("event", {
            "title": "Standup",
            "type": "meeting",
            "start_date": "2026-03-02T09:00:00",
            "end_date": "2026-03-02T09:00:00",
            "name": "Daily sync",
        })

        assert "Standup (meeting)" in body
        assert "Daily sync" in body
        assert "2026-03-02T09:00:00" in body

    def test_dot_slash_template_name(self, test_db_session, template_dir):
        service = MailService(test_db_session, template_dir, "events@example.com")
        assert service.render("./hello", {"name": "Ada"}) == "Hello Ada!"

    def test_missing_template(self, mail_service):
        with pytest.raises(MailFailedError, match="not found"):
            mail_service.render("nope")

    def test_broken_template(self, test_db_session, template_dir):
        service = MailService(test_db_session, template_dir, "events@example.com")
        with pytest.raises(MailFailedError, match="broken"):
            service.render("broken", {"name": "Ada"})

    def test_missing_template_dir_fails_on_send(self, test_db_session, tmp_path):
        service = MailService(test_db_session, tmp_path / "absent", "events@example.com")

        with pytest.raises(MailFailedError, match="template directory not found"):
            service.send(["u1"], "Standup - meeting", "event", {"title": "Standup"})

        assert test_db_session.query(MailMessage).count() == 0


class TestSend:
    """Tests for MailService.send."""

    def test_queues_message(self, mail_service, test_db_session):
        mail_service.send(["u1", "u2"], "Standup - meeting", "event", {"title": "Standup", "name": "Daily sync"})

        message = test_db_session.query(MailMessage).one()
        assert message.guid.startswith("eml_")
        assert message.sender == "events@example.com"
        assert message.recipients == ["u1", "u2"]
        assert message.subject == "Standup - meeting"
        assert message.template == "event"
        assert "Daily sync" in message.body
        assert message.is_pending

    def test_no_recipients(self, mail_service, test_db_session):
        with pytest.raises(MailFailedError, match="no recipients"):
            mail_service.send([], "Standup - meeting", "event")

        assert test_db_session.query(MailMessage).count() == 0

    def test_store_failure(self, mail_service, test_db_session, mocker):
        mocker.patch.object(
            test_db_session,
            "commit",
            side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
        )

        with pytest.raises(MailFailedError):
            mail_service.send(["u1"], "Standup - meeting", "event", {"title": "Standup"})

    def test_list_pending(self, mail_service, test_db_session):
        mail_service.send(["u1"], "First", "event", {"title": "First"})
        mail_service.send(["u2"], "Second", "event", {"title": "Second"})

        assert [m.subject for m in mail_service.list_pending()] == ["First", "Second"]
