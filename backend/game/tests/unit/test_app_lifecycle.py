"""Tests for game server app wiring and the eviction sweeper lifecycle."""

from starlette.testclient import TestClient

from game.server.app import create_app
from game.server.settings import GameServerSettings
from game.session.service import SessionService
from game.session.store import SessionStore


class TestSweeperLifecycle:
    def test_lifespan_starts_and_stops_sweeper(self, app, store):
        with TestClient(app):
            assert store._sweeper_task is not None
            assert not store._sweeper_task.done()

        assert store._sweeper_task is None


class TestAppWiring:
    def test_store_built_from_settings(self):
        settings = GameServerSettings(lobby_max_age_seconds=120, sweep_interval_seconds=5)

        app = create_app(settings=settings)

        store: SessionStore = app.state.store
        service: SessionService = app.state.service
        assert store.lobby_max_age_seconds == 120
        assert store._sweep_interval_seconds == 5
        assert service._lobby_max_age_seconds == 120
