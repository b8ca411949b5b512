import json
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from learnpath import create_app
from learnpath.config import Config
from learnpath.extensions import db as _db
from learnpath.models import User, Course
from learnpath.services.paystack import PaystackClient, compute_signature

PAYSTACK_SECRET = "sk_test_secret"


class TestingConfig(Config):
    __test__ = False

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-key-that-is-long-enough-for-hs256"
    PAYSTACK_SECRET_KEY = PAYSTACK_SECRET
    PAYSTACK_CURRENCY = "USD"
    FRONTEND_URL = "http://frontend.test"


class FakePaystack(PaystackClient):
    """Real client with the HTTP layer replaced by canned responses."""

    def __init__(self):
        super().__init__(PAYSTACK_SECRET, base_url="https://paystack.test")
        self.calls = []
        self.verify_results = {}
        self.error = None

    def _request(self, method, path, **kwargs):
        self.calls.append({"method": method, "path": path, "json": kwargs.get("json")})
        if self.error is not None:
            raise self.error
        if path == "/transaction/initialize":
            reference = kwargs["json"]["reference"]
            return {
                "authorization_url": f"https://checkout.paystack.test/{reference}",
                "access_code": f"access_{len(self.calls)}",
                "reference": reference,
            }
        reference = path.rsplit("/", 1)[-1]
        return self.verify_results[reference]

    def succeed(self, reference, user_id, course_id, amount, status="success"):
        self.verify_results[reference] = {
            "status": status,
            "reference": reference,
            "amount": amount,
            "currency": "USD",
            "metadata": {"courseId": course_id, "userId": user_id, "courseName": "Course"},
        }


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    app.extensions["paystack"] = FakePaystack()
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gateway(app):
    return app.extensions["paystack"]


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role="student", email="auto", first_name="Test", last_name="User", password="secret123"):
        counter["n"] += 1
        if email == "auto":
            email = f"{role}{counter['n']}@example.com"
        user = User(email=email, first_name=first_name, last_name=last_name, role=role)
        user.set_password(password)
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture
def make_course(app, make_user):
    def _make(price="49.99", instructor=None, status="published", title="Python for Data", **fields):
        instructor = instructor or make_user(role="instructor")
        course = Course(
            title=title,
            price=Decimal(price),
            instructor_id=instructor.id,
            status=status,
            **fields
        )
        _db.session.add(course)
        _db.session.commit()
        return course

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=user.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def signed_webhook(client):
    def _post(event, secret=PAYSTACK_SECRET, body=None, signature=None):
        raw = body if body is not None else json.dumps(event).encode("utf-8")
        if signature is None:
            signature = compute_signature(secret, raw)
        return client.post(
            "/api/paystack/webhook",
            data=raw,
            headers={"x-paystack-signature": signature},
            content_type="application/json",
        )

    return _post
