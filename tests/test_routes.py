from oasis import actions
from oasis.models import Booking, PendingCheckout
from oasis.state import RANGE_SESSION_KEY

from conftest import select_stay


def _bookings(app):
    with app.app_context():
        return Booking.query.all()


def _pending_orders(app):
    with app.app_context():
        return sorted(p.order_id for p in PendingCheckout.query.all())


def test_cabin_list(client):
    resp = client.get("/cabins/")
    assert resp.status_code == 200
    assert b"Cabin 001" in resp.data


def test_home_redirects_to_cabins(client):
    resp = client.get("/")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/cabins/")


def test_anonymous_visitor_sees_login_message(client):
    resp = client.get("/cabins/1")
    assert b"to reserve this cabin" in resp.data
    assert b"numGuests" not in resp.data


def test_missing_cabin_is_404(client):
    assert client.get("/cabins/99").status_code == 404


def test_no_submit_controls_until_dates_selected(logged_in):
    resp = logged_in.get("/cabins/1")
    assert b"Logged in as" in resp.data
    assert b"Jane Guest" in resp.data
    assert b"Start by selecting dates" in resp.data
    assert b'name="payOffline"' not in resp.data
    assert b'name="payOnline"' not in resp.data


def test_selected_range_shows_price_and_controls(logged_in):
    select_stay(logged_in)
    resp = logged_in.get("/cabins/1")
    assert b'name="payOffline"' in resp.data
    assert b'name="payOnline"' in resp.data
    assert b"<strong>240</strong>" in resp.data
    assert b'<option value="4">4 guests</option>' in resp.data
    assert b'<option value="5">' not in resp.data


def test_invalid_range_is_rejected(logged_in):
    resp = logged_in.post(
        "/cabins/1/range",
        data={"start_date": "2030-06-04", "end_date": "2030-06-01"},
        follow_redirects=True,
    )
    assert b"The end date must be after the start date." in resp.data
    with logged_in.session_transaction() as sess:
        assert RANGE_SESSION_KEY not in sess


def test_reset_range(logged_in):
    select_stay(logged_in)
    logged_in.post("/cabins/1/range/reset")
    with logged_in.session_transaction() as sess:
        assert RANGE_SESSION_KEY not in sess


def test_reserve_requires_login(client):
    resp = client.post("/cabins/1/reserve", data={"numGuests": "2", "payOffline": "1"})
    assert resp.status_code == 302
    assert "/auth/login" in resp.headers["Location"]


def test_reserve_without_dates_books_nothing(app, logged_in, payment_client):
    resp = logged_in.post(
        "/cabins/1/reserve",
        data={"numGuests": "2", "payOffline": "1"},
        follow_redirects=True,
    )
    assert b"Start by selecting dates" in resp.data
    assert _bookings(app) == []
    assert payment_client.opened == []


def test_pay_on_arrival(app, logged_in, payment_client):
    select_stay(logged_in)
    resp = logged_in.post(
        "/cabins/1/reserve",
        data={"numGuests": "2", "observations": "", "payOffline": "1"},
        follow_redirects=True,
    )
    assert b"You will pay on arrival." in resp.data

    bookings = _bookings(app)
    assert len(bookings) == 1
    assert bookings[0].cabin_price == 240
    assert bookings[0].is_paid is False
    assert payment_client.opened == []
    with logged_in.session_transaction() as sess:
        assert RANGE_SESSION_KEY not in sess


def test_pay_on_arrival_failure_keeps_range(app, logged_in, monkeypatch):
    def broken(draft, guest_id):
        raise actions.BookingError("db down")

    monkeypatch.setattr(actions, "create_booking", broken)
    select_stay(logged_in)
    resp = logged_in.post(
        "/cabins/1/reserve",
        data={"numGuests": "2", "payOffline": "1"},
        follow_redirects=True,
    )
    assert b"There was an issue creating your booking. Please try again." in resp.data
    with logged_in.session_transaction() as sess:
        assert sess[RANGE_SESSION_KEY] == {"from": "2030-06-01", "to": "2030-06-04"}


def _open_checkout(client):
    select_stay(client)
    return client.post(
        "/cabins/1/reserve",
        data={"numGuests": "3", "observations": "Two dogs", "payOnline": "1"},
    )


def test_pay_online_renders_checkout(app, logged_in, payment_client):
    resp = _open_checkout(logged_in)

    assert resp.status_code == 200
    assert b"checkout.razorpay.com" in resp.data
    assert b"order_test_1" in resp.data
    assert b"24000" in resp.data
    assert payment_client.opened[0].amount == 24000
    assert _bookings(app) == []
    assert _pending_orders(app) == ["order_test_1"]


def test_payment_success_books_and_redirects(app, logged_in, payment_client):
    _open_checkout(logged_in)
    resp = logged_in.post("/payments/razorpay/success", data={
        "razorpay_order_id": "order_test_1",
        "razorpay_payment_id": "pay_123",
        "razorpay_signature": "sig",
    })

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/cabins/thankyou")
    assert payment_client.verified == [("order_test_1", "pay_123", "sig")]

    bookings = _bookings(app)
    assert len(bookings) == 1
    assert bookings[0].payment_id == "pay_123"
    assert bookings[0].is_paid is True
    assert bookings[0].num_guests == 3
    assert bookings[0].observations == "Two dogs"
    with logged_in.session_transaction() as sess:
        assert RANGE_SESSION_KEY not in sess
    assert _pending_orders(app) == []

    page = logged_in.get("/cabins/thankyou")
    assert b"Payment successful and room booked!" in page.data


def test_payment_success_without_payment_id(app, logged_in):
    _open_checkout(logged_in)
    resp = logged_in.post("/payments/razorpay/success", data={
        "razorpay_order_id": "order_test_1",
        "razorpay_payment_id": "",
    })

    assert not resp.headers["Location"].endswith("/cabins/thankyou")
    assert _bookings(app) == []
    assert _pending_orders(app) == ["order_test_1"]


def test_booking_failure_after_payment(app, logged_in, monkeypatch):
    def broken(draft, fields, guest_id):
        raise actions.BookingError("db down")

    monkeypatch.setattr(actions, "create_booking_online", broken)
    _open_checkout(logged_in)
    resp = logged_in.post(
        "/payments/razorpay/success",
        data={"razorpay_order_id": "order_test_1", "razorpay_payment_id": "pay_123", "razorpay_signature": "sig"},
        follow_redirects=True,
    )

    assert b"Please contact support." in resp.data
    assert resp.request.path == "/cabins/1"
    with logged_in.session_transaction() as sess:
        assert RANGE_SESSION_KEY in sess
    # kept for reconciling the captured payment
    assert _pending_orders(app) == ["order_test_1"]


def test_unknown_order_is_reported(logged_in):
    resp = logged_in.post(
        "/payments/razorpay/success",
        data={"razorpay_order_id": "order_nope", "razorpay_payment_id": "pay_123"},
        follow_redirects=True,
    )
    assert b"Please contact support." in resp.data
    assert resp.request.path == "/cabins/"


def test_payment_failed_discards_draft(app, logged_in):
    _open_checkout(logged_in)
    resp = logged_in.post(
        "/payments/razorpay/failed",
        data={"razorpay_order_id": "order_test_1", "description": "Card declined"},
        follow_redirects=True,
    )

    assert b"Payment failed: Card declined" in resp.data
    assert _bookings(app) == []
    assert _pending_orders(app) == []
    with logged_in.session_transaction() as sess:
        assert RANGE_SESSION_KEY in sess

    # a fresh checkout works after the failure
    _open_checkout(logged_in)
    resp = logged_in.post("/payments/razorpay/success", data={
        "razorpay_order_id": "order_test_2",
        "razorpay_payment_id": "pay_456",
        "razorpay_signature": "sig",
    })
    assert resp.headers["Location"].endswith("/cabins/thankyou")
    assert [b.payment_id for b in _bookings(app)] == ["pay_456"]


def test_abandoned_checkouts_do_not_accumulate(app, logged_in, payment_client):
    for _ in range(12):
        _open_checkout(logged_in)

    assert len(payment_client.opened) == 12
    assert _pending_orders(app) == ["order_test_10", "order_test_11", "order_test_12"]
    with logged_in.session_transaction() as sess:
        assert not [key for key in sess if "checkout" in key]


def test_long_observations_are_refused_before_checkout(app, logged_in, payment_client):
    select_stay(logged_in)
    resp = logged_in.post(
        "/cabins/1/reserve",
        data={"numGuests": "2", "observations": "x" * 4000, "payOnline": "1"},
        follow_redirects=True,
    )

    assert b"Please keep your notes under 1000 characters." in resp.data
    assert payment_client.opened == []
    assert _pending_orders(app) == []


def test_full_length_observations_survive_online_path(app, logged_in):
    notes = "y" * 1000
    select_stay(logged_in)
    resp = logged_in.post(
        "/cabins/1/reserve",
        data={"numGuests": "2", "observations": notes, "payOnline": "1"},
    )
    assert resp.status_code == 200
    # the draft is parked server-side, the cookie only carries the range and login
    cookie = resp.headers.get("Set-Cookie") or ""
    assert len(cookie) < 1000

    resp = logged_in.post("/payments/razorpay/success", data={
        "razorpay_order_id": "order_test_1",
        "razorpay_payment_id": "pay_123",
        "razorpay_signature": "sig",
    })
    assert resp.headers["Location"].endswith("/cabins/thankyou")
    assert _bookings(app)[0].observations == notes


def test_other_guest_cannot_complete_checkout(app, logged_in):
    _open_checkout(logged_in)
    with app.app_context():
        from oasis import db
        from oasis.models import User
        other = User(email="sam@example.com")
        other.set_password("pw")
        db.session.add(other)
        db.session.commit()

    intruder = app.test_client()
    intruder.post("/auth/login", data={"email": "sam@example.com", "password": "pw"})
    resp = intruder.post("/payments/razorpay/success", data={
        "razorpay_order_id": "order_test_1",
        "razorpay_payment_id": "pay_123",
        "razorpay_signature": "sig",
    })

    assert resp.headers["Location"].endswith("/cabins/")
    assert _bookings(app) == []
    assert _pending_orders(app) == ["order_test_1"]


def test_checkout_setup_failure(app, logged_in, payment_client):
    payment_client.open_error = RuntimeError("razorpay unreachable")
    resp = _open_checkout(logged_in)

    assert resp.status_code == 302
    page = logged_in.get("/cabins/1")
    assert b"There was an issue with the payment. Please try again." in page.data
