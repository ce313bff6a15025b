import os
import sys
import pytest

# Ensure the backend root (containing the `courtside` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from courtside import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = 'DEBUG'
    OUT_OF_BOUNDS_POSSESSION = 'retain'
    ENFORCE_MONOTONIC_CLOCK = False
    MAX_PLAYERS_PER_TEAM = 15


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import courtside.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


def roster_payload(team1='Team A', team2='Team B', per_team=3):
    players = [{'name': f'A{i}', 'team': team1} for i in range(1, per_team + 1)]
    players += [{'name': f'B{i}', 'team': team2} for i in range(1, per_team + 1)]
    return {
        'team1_name': team1,
        'team2_name': team2,
        'players': players,
        'initial_possession': team1,
    }


@pytest.fixture()
def game(client):
    """A created game, with players looked up by name ('A1', 'B2', ...)."""
    res = client.post('/api/games', json=roster_payload())
    assert res.status_code == 201
    data = res.get_json()
    data['by_name'] = {p['name']: p['id'] for p in data['players']}
    return data
