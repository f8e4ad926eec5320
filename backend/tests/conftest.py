"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions
- Recording fakes for the event collaborators (uploader, notifier,
  mailer, user directory)
- Sample data factories
- FastAPI test client
"""

import os
import tempfile
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['CREWBOARD_DB_URL'] = 'sqlite:///:memory:'
os.environ['CREWBOARD_PHOTO_DIR'] = tempfile.mkdtemp(prefix='crewboard-photos-')

from backend.src.models import Base, Event, User
from backend.src.services.collaborators import Mailer, Notifier, PhotoUploader, UserDirectory
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import UploadFailedError


# ============================================================================
# Database Fixtures
# ============================================================================

def _fk_pragma_on_connect(dbapi_con, con_record):
    dbapi_con.execute('pragma foreign_keys=ON')


@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    from sqlalchemy import event

    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # Enable foreign key constraints for SQLite
    # This must be set for each connection
    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope='function')
def file_db_engine(tmp_path):
    """
    File-backed SQLite engine for tests that use several connections at once.

    The busy timeout lets concurrent writers wait for each other instead of
    failing with "database is locked".
    """
    from sqlalchemy import event

    engine = create_engine(
        f"sqlite:///{tmp_path / 'crewboard.db'}",
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


# ============================================================================
# Collaborator Fakes
# ============================================================================

class RecordingUploader(PhotoUploader):
    """Uploader that keeps references in memory and can fail on demand."""

    def __init__(self, fail_on=None):
        self.fail_on = set(fail_on or [])
        self.stored = []
        self.deleted = []
        self.calls = []

    def upload(self, file, category):
        self.calls.append((file.filename, category))
        if file.filename in self.fail_on:
            raise UploadFailedError(f"Could not store {file.filename}")
        stored_ref = f"mem://{category}/{len(self.calls)}-{file.filename}"
        self.stored.append(stored_ref)
        return stored_ref

    def delete(self, stored_ref):
        self.deleted.append(stored_ref)
        self.stored.remove(stored_ref)


class RecordingNotifier(Notifier):
    """Notifier that records every call."""

    def __init__(self):
        self.calls = []

    def notify(self, title, body, type, subject_id, timestamp):
        self.calls.append({
            'title': title,
            'body': body,
            'type': type,
            'subject_id': subject_id,
            'timestamp': timestamp,
        })

    @property
    def titles(self):
        return [call['title'] for call in self.calls]


class RecordingMailer(Mailer):
    """Mailer that records every call."""

    def __init__(self):
        self.calls = []

    def send(self, recipients, subject, template, context=None):
        self.calls.append({
            'recipients': list(recipients),
            'subject': subject,
            'template': template,
            'context': context,
        })


class StaticDirectory(UserDirectory):
    """Directory returning a fixed user list."""

    def __init__(self, users):
        self.users = list(users)
        self.calls = 0

    def list_active_users(self):
        self.calls += 1
        return list(self.users)


@pytest.fixture
def uploader():
    return RecordingUploader()


@pytest.fixture
def failing_uploader():
    """Uploader that rejects any file named bad.jpg."""
    return RecordingUploader(fail_on={"bad.jpg"})


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def directory():
    return StaticDirectory(['u1', 'u2'])


@pytest.fixture
def event_service(test_db_session, uploader, notifier, mailer, directory):
    """EventService wired to the recording fakes."""
    return EventService(
        db=test_db_session,
        uploader=uploader,
        notifier=notifier,
        mailer=mailer,
        directory=directory,
    )


# ============================================================================
# Sample Data Factories
# ============================================================================

@pytest.fixture
def sample_event_data():
    """Factory for keyword arguments of EventService.create."""
    def _create(**overrides):
        data = {
            'title': 'Standup',
            'type': 'meeting',
            'start_date': datetime(2026, 3, 2, 9, 0),
            'description': 'Daily sync',
            'participants': ['u1', 'u2'],
        }
        data.update(overrides)
        return data
    return _create


@pytest.fixture
def sample_poll():
    """Poll payload with two options."""
    return {
        'question': 'Lunch?',
        'options': [{'label': 'Pizza'}, {'label': 'Sushi'}],
    }


@pytest.fixture
def sample_event(test_db_session):
    """Factory for creating Event rows directly (no side effects)."""
    def _create(**kwargs):
        defaults = {
            'title': 'Team Lunch',
            'type': 'social',
            'start_date': datetime(2026, 3, 5, 12, 0),
            'end_date': datetime(2026, 3, 5, 13, 0),
            'participants': ['u1'],
            'photo': [],
        }
        defaults.update(kwargs)
        event = Event(**defaults)
        test_db_session.add(event)
        test_db_session.commit()
        test_db_session.refresh(event)
        return event
    return _create


@pytest.fixture
def sample_user(test_db_session):
    """Factory for creating User rows."""
    def _create(email, display_name=None, is_active=True):
        user = User(email=email, display_name=display_name, is_active=is_active)
        test_db_session.add(user)
        test_db_session.commit()
        test_db_session.refresh(user)
        return user
    return _create


# ============================================================================
# FastAPI Test Client Fixture
# ============================================================================

@pytest.fixture
def photo_dir(tmp_path):
    """Directory receiving photos uploaded through the API."""
    path = tmp_path / 'photos'
    path.mkdir()
    return path


@pytest.fixture
def test_client(test_db_session, photo_dir):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from backend.src.main import app
    from backend.src.api.events import get_photo_uploader
    from backend.src.services.photo_storage_service import PhotoStorageService

    # Override dependencies
    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    def get_test_uploader():
        return PhotoStorageService(photo_dir, '/media/photos')

    from backend.src.db.database import get_db

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_photo_uploader] = get_test_uploader

    with TestClient(app) as client:
        yield client

    # Clear overrides
    app.dependency_overrides.clear()
