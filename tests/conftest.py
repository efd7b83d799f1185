# tests/conftest.py
import os, sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("APP_ENV", "test")

from mina_notes import create_app
from mina_notes.extensions import db
from mina_notes.ai.provider import TextGenerator


class FakeGenerator(TextGenerator):
    """Remplace Gemini: enregistre les appels, renvoie une réponse fixe ou lève."""

    def __init__(self):
        self.calls = []
        self.reply = "Hello from Mina"
        self.error = None

    def generate(self, messages):
        self.calls.append([dict(m) for m in messages])
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def generator():
    return FakeGenerator()


@pytest.fixture()
def upload_dir(tmp_path):
    d = tmp_path / "uploads"
    d.mkdir()
    return d


@pytest.fixture()
def app(generator, upload_dir):
    # base SQLite en mémoire neuve pour chaque test
    app = create_app(
        overrides={"TESTING": True, "UPLOAD_FOLDER": str(upload_dir)},
        text_generator=generator,
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def device(device_id):
    return {"x-device-id": device_id}


@pytest.fixture()
def make_note(client):
    def _make(device_id="dev1", **fields):
        body = {"title": "Shopping", "content": "<p>milk</p>"}
        body.update(fields)
        r = client.post("/api/notes", headers=device(device_id), json=body)
        assert r.status_code == 201, r.get_json()
        return r.get_json()
    return _make
