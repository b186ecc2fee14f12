from datetime import date

import pytest

from oasis import create_app, db
from oasis.models import Cabin, User
from oasis.payment_client import Checkout

STAY_START = date(2030, 6, 1)
STAY_END = date(2030, 6, 4)


class FakePaymentClient:
    """Stands in for Razorpay: records orders and signature checks."""

    def __init__(self):
        self.opened = []
        self.verified = []
        self.open_error = None
        self.verify_error = None

    def open_checkout(self, config):
        if self.open_error:
            raise self.open_error
        self.opened.append(config)
        return Checkout(order_id=f"order_test_{len(self.opened)}", config=config)

    def verify_payment(self, order_id, payment_id, signature):
        if self.verify_error:
            raise self.verify_error
        self.verified.append((order_id, payment_id, signature))


@pytest.fixture
def payment_client():
    return FakePaymentClient()


@pytest.fixture
def app(payment_client):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "RAZORPAY_KEY_ID": "rzp_test_key",
        "PAYMENT_CURRENCY": "INR",
        "BUSINESS_NAME": "The Wild Oasis",
        "SENDGRID_API_KEY": None,
    })
    app.extensions["payment_client"] = payment_client

    with app.app_context():
        cabin = Cabin(name="001", max_capacity=4, regular_price=100, discount=20)
        guest = User(email="jane@example.com", full_name="Jane Guest", image="https://example.com/jane.png")
        guest.set_password("secret")
        db.session.add_all([cabin, guest])
        db.session.commit()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in(client):
    resp = client.post("/auth/login", data={"email": "jane@example.com", "password": "secret"})
    assert resp.status_code == 302
    return client


def select_stay(client, start=STAY_START, end=STAY_END, cabin_id=1):
    return client.post(
        f"/cabins/{cabin_id}/range",
        data={"start_date": start.isoformat(), "end_date": end.isoformat()},
    )
