import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# In-memory database and quiet structured logs; must be set before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("QUESTLINE_LOG_LEVEL", "warn")

from questline import create_app, db  # noqa: E402
from tests.factories import create_user  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app()
    app.config.update({"TESTING": True, "LOGIN_DISABLED": False})
    return app


@pytest.fixture(autouse=True)
def _push_app_context(test_app):
    ctx = test_app.app_context()
    ctx.push()
    try:
        yield
    finally:
        ctx.pop()


@pytest.fixture(autouse=True)
def _fresh_db(_push_app_context):
    """Rebuild the (in-memory) schema so every test starts from empty tables."""
    db.session.remove()
    db.drop_all()
    db.create_all()
    yield
    db.session.rollback()


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


@pytest.fixture()
def user():
    return create_user("tester")


@pytest.fixture()
def auth_client(client, user):
    r = client.post("/login", json={"username": "tester", "password": "pass"})
    assert r.status_code == 200, r.get_json()
    return client
