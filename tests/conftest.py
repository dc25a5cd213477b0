import pytest
from datetime import date, timedelta
from meetbook import create_app, db
from meetbook.config import TestingConfig
from meetbook.services.document_store import MemoryDocumentStore
from meetbook.services.meeting_service import MeetingService


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def memory_store():
    return MemoryDocumentStore(max_retries=10)

@pytest.fixture
def future_date():
    return (date.today() + timedelta(days=30)).isoformat()

@pytest.fixture
def make_meeting(memory_store, future_date):
    """Create a meeting in the memory store; keyword args override the defaults."""
    service = MeetingService(memory_store)

    def _make(**overrides):
        data = {'title': 'Intro', 'date': future_date, 'time': '14:00', 'durationMinutes': 60}
        data.update(overrides)
        return service.create_meeting(data)

    return _make
