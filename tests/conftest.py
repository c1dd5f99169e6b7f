import re
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from cinebook.core.config import Settings
from cinebook.database import Database
from cinebook.exceptions import NotificationFailed
from cinebook.main import create_app
from cinebook.services import AccountService


class RecordingSender:
    def __init__(self):
        self.outbox = []
        self.fail = False

    def send(self, to, subject, body):
        if self.fail:
            raise NotificationFailed()
        self.outbox.append({"to": to, "subject": subject, "body": body})

    def last_code(self, to):
        for message in reversed(self.outbox):
            if message["to"] == to:
                match = re.search(r">\s*(\d{6})\s*<", message["body"])
                if match:
                    return match.group(1)
        raise AssertionError(f"no code was mailed to {to}")


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings():
    return Settings(
        SECRET_KEY="test-secret",
        DATABASE_URL="sqlite://",
        ALLOWED_HOSTS=["*"],
        SMTP_SERVER="",
        _env_file=None,
    )


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def database(settings):
    database = Database(settings.DATABASE_URL)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def service(db, sender, settings, clock):
    return AccountService(db, sender, settings, clock=clock)


@pytest.fixture
def app(settings, sender):
    return create_app(settings, sender=sender)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def signup(client, sender):
    def _signup(email="a@x.com", username="alice", password="pw123456"):
        client.post("/auth/signup/request-otp", json={"email": email})
        code = sender.last_code(email)
        response = client.post(
            "/auth/signup/verify",
            json={"email": email, "username": username, "password": password, "otp": code},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _signup


@pytest.fixture
def logged_in(client, signup):
    signup()
    response = client.post("/auth/login", data={"username": "alice", "password": "pw123456"})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]
