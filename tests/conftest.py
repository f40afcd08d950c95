# tests/conftest.py
import mongomock
import pytest

from mazao import create_app
from mazao.mongo import Store
from mazao.seed import seed_admin

ADMIN_EMAIL = "admin@mazao.test"
ADMIN_PASSWORD = "admin-pass"

TEST_CONFIG = {
    "TESTING": True,
    "APP_ENV": "test",
    "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
    "JWT_COOKIE_SECURE": False,
    "BCRYPT_LOG_ROUNDS": 4,
    "MONGO_TRANSACTIONS": False,
}


@pytest.fixture
def store():
    client = mongomock.MongoClient()
    s = Store(client, client["mazao_test"], transactions=False)
    s.ensure_indexes()
    return s


@pytest.fixture
def app(store):
    app = create_app(TEST_CONFIG, store=store)
    with app.app_context():
        seed_admin(store, ADMIN_EMAIL, ADMIN_PASSWORD, "Site Admin", location="Nairobi")
    return app


def login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def register(client, email, password="secret123", full_name=None, **extra):
    body = {"email": email, "password": password, "fullName": full_name or email.split("@")[0].title()}
    body.update(extra)
    return client.post("/api/auth/register", json=body)


@pytest.fixture
def anon(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    client = app.test_client()
    resp = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert resp.status_code == 200
    client.user = resp.get_json()["data"]
    return client


def _farmer(app, email, **extra):
    client = app.test_client()
    resp = register(client, email, **extra)
    assert resp.status_code == 201, resp.get_json()
    client.user = resp.get_json()["data"]
    return client


@pytest.fixture
def alice(app):
    return _farmer(app, "alice@farm.test", full_name="Alice Wanjiru", location="Nakuru")


@pytest.fixture
def bob(app):
    return _farmer(app, "bob@farm.test", full_name="Bob Otieno", location="Kisumu")


def make_crop(client, **fields):
    body = {"name": "Maize", "type": "CEREAL", "quantity": 50, "plantingDate": "2024-03-01"}
    body.update(fields)
    resp = client.post("/api/crops", json=body)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]
