import sys
from pathlib import Path

import httpx
import pytest

# Flat layout: make the top-level modules importable without installing.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import api  # noqa: E402
import db  # noqa: E402
from models import Gender, Role, User  # noqa: E402

BASE_URL = "https://backend.test"


@pytest.fixture(autouse=True)
def session_db(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "DB_FILE", tmp_path / "session.db")
    db.init_db()
    return db.DB_FILE


class Backend:
    """Records requests and answers them from a route table."""

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.on_request = None

    def on(self, method, path, status=200, json=None, exc=None):
        self.routes[(method, path)] = (status, json, exc)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)
        status, body, exc = self.routes.get(
            (request.method, request.url.path), (404, {"status": "error", "message": "not found"}, None)
        )
        if exc is not None:
            raise exc
        return httpx.Response(status, json=body)


@pytest.fixture
def backend():
    return Backend()


@pytest.fixture
def navigations():
    return []


@pytest.fixture
def client(backend, navigations):
    c = api.ApiClient(base_url=BASE_URL, timeout=5, navigate=navigations.append, transport=httpx.MockTransport(backend))
    yield c
    c.close()


def make_user(**overrides) -> User:
    fields = dict(
        id="7",
        email="budi@example.com",
        full_name="Budi Santoso",
        phone_number="081234567890",
        gender=Gender.MALE,
        birth_date="1990-05-17",
        address="Jl. Merdeka 1",
        role=Role.USER,
        registration_date="2024-01-02T03:04:05+00:00",
    )
    fields.update(overrides)
    return User(**fields)


ACCOUNT = {
    "id": 7,
    "uuid": "c0ffee",
    "email": "budi@example.com",
    "is_email_verified": True,
    "is_detail_completed": False,
}


def member_wire(member_id, name="Siti Aminah", email="siti@example.com", phone="081298765432"):
    return {
        "id": member_id,
        "full_name": name,
        "email": email,
        "phone_number": phone,
        "gender": "female",
        "birth_date": "1995-08-17",
        "address": "Jl. Sudirman 5",
        "registration_date": "2024-03-01T10:00:00Z",
    }
