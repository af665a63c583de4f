import pytest

from game.messaging.notifier import TopicHub
from game.messaging.router import MessageRouter
from game.server.app import create_app
from game.server.settings import GameServerSettings
from game.session.service import SessionService
from game.session.store import SessionStore
from game.tests.mocks.connection import MockConnection, RecordingNotifier


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def service(store):
    return SessionService(store)


@pytest.fixture
def hub():
    return TopicHub()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def message_router(service, hub, notifier):
    return MessageRouter(service, hub, notifier=notifier)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def settings():
    return GameServerSettings(cors_origins=["http://localhost:5173"])


@pytest.fixture
def app(settings, store, service, hub):
    return create_app(settings=settings, store=store, service=service, hub=hub)
