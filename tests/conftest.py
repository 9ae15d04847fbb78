"""Shared fixtures: independent sessions over a file-backed SQLite store per test."""

import pytest

from app import create_app
from config import Settings
from controllers.flow_controller import FlowController, Screen
from models.session_store import SessionStore
from services.persistence import PersistenceLayer


@pytest.fixture
def db_uri(tmp_path):
    return f"sqlite:///{tmp_path / 'feedback.db'}"


@pytest.fixture
def persistence(db_uri):
    layer = PersistenceLayer(db_uri)
    layer.init_schema()
    yield layer
    layer.dispose()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def flow(store, persistence):
    return FlowController(store, persistence)


@pytest.fixture
def walk_to_service():
    """Drive a flow from Start to the Service screen."""

    def _walk(flow, ratings=(5, 4, 3, 2), wants_feedback=False, feedback=''):
        assert flow.advance()
        for value in ratings:
            flow.rate(value)
            assert flow.advance()
        flow.choose_feedback(wants_feedback)
        assert flow.advance()
        if wants_feedback:
            assert flow.screen == Screen.OPEN_FEEDBACK
            flow.write_feedback(feedback)
            assert flow.advance()
        assert flow.screen == Screen.SERVICE
        return flow

    return _walk


@pytest.fixture
def settings(tmp_path, db_uri):
    return Settings(
        database_url=db_uri,
        admin_pin='2323',
        export_dir=str(tmp_path / 'exports'),
        secret_key='test',
    )


@pytest.fixture
def app(settings):
    application = create_app(settings)
    application.config['TESTING'] = True
    yield application
    application.extensions['survey']['persistence'].dispose()


@pytest.fixture
def client(app):
    return app.test_client()
