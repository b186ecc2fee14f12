import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Optional

from flask import current_app, flash

from . import actions
from .payment_client import Checkout, CheckoutConfig, get_payment_client

logger = logging.getLogger(__name__)

PAY_OFFLINE = "payOffline"
PAY_ONLINE = "payOnline"
SUBMIT_ACTIONS = (PAY_OFFLINE, PAY_ONLINE)

SUPPORT_MESSAGE = "There was an issue creating your booking after payment. Please contact support."


def num_nights(start: date, end: date) -> int:
    return (end - start).days


def cabin_price(nights: int, regular_price, discount):
    return nights * (regular_price - discount)


def amount_in_minor_units(price) -> int:
    return int(round(price * 100))


@dataclass
class BookingDraft:
    start_date: date
    end_date: date
    num_nights: int
    cabin_price: int
    cabin_id: int
    num_guests: int
    observations: str = ""
    payment_id: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat()
        data["end_date"] = self.end_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BookingDraft":
        data = dict(data)
        data["start_date"] = date.fromisoformat(data["start_date"])
        data["end_date"] = date.fromisoformat(data["end_date"])
        return cls(**data)


@dataclass
class Submission:
    action: str
    ok: bool
    draft: Optional[BookingDraft] = None
    fields: dict = field(default_factory=dict)
    checkout: Optional[Checkout] = None


def read_booking_fields(form, max_capacity: int) -> dict:
    """Validate the guest count and observations from a submitted form."""
    raw = (form.get("numGuests") or "").strip()
    try:
        guests = int(raw)
    except ValueError:
        raise ValueError("Please select the number of guests.")
    if guests < 1 or guests > max_capacity:
        raise ValueError(f"This cabin fits between 1 and {max_capacity} guests.")
    observations = (form.get("observations") or "").strip()
    if len(observations) > actions.MAX_OBSERVATIONS:
        raise ValueError(f"Please keep your notes under {actions.MAX_OBSERVATIONS} characters.")
    return {
        "numGuests": guests,
        "observations": observations,
    }


class SubmissionInFlight(Exception):
    pass


_in_flight = set()
_in_flight_lock = threading.Lock()


# one reservation at a time per guest, across all worker threads
@contextmanager
def submission_slot(key):
    with _in_flight_lock:
        if key in _in_flight:
            raise SubmissionInFlight(key)
        _in_flight.add(key)
    try:
        yield
    finally:
        with _in_flight_lock:
            _in_flight.discard(key)


class ReservationForm:
    """
    Booking form for a single cabin.

    Prices the stay from the shared date range and the cabin's rates, then
    records it either as pay-on-arrival or after a successful online payment.
    All outcomes are reported to the user through ``notify`` (``flash`` by
    default).
    """

    def __init__(self, cabin, user, date_range, payment_client=None, notify=flash,
                 create_booking=None, create_booking_online=None):
        self.cabin = cabin
        self.user = user
        self.date_range = date_range
        self.notify = notify
        self.create_booking = create_booking or actions.create_booking
        self.create_booking_online = create_booking_online or actions.create_booking_online
        self._payment_client = payment_client

    @property
    def payment_client(self):
        if self._payment_client is None:
            self._payment_client = get_payment_client()
        return self._payment_client

    @property
    def start_date(self):
        return self.date_range.start

    @property
    def end_date(self):
        return self.date_range.end

    @property
    def can_submit(self) -> bool:
        return self.date_range.complete

    @property
    def num_nights(self):
        if not self.can_submit:
            return None
        return num_nights(self.start_date, self.end_date)

    @property
    def cabin_price(self):
        nights = self.num_nights
        if nights is None:
            return None
        return cabin_price(nights, self.cabin.regular_price, self.cabin.discount)

    def guest_options(self):
        return [(n, f"{n} {'guest' if n == 1 else 'guests'}") for n in range(1, self.cabin.max_capacity + 1)]

    def build_draft(self, fields: dict) -> BookingDraft:
        return BookingDraft(
            start_date=self.start_date,
            end_date=self.end_date,
            num_nights=self.num_nights,
            cabin_price=self.cabin_price,
            cabin_id=self.cabin.id,
            num_guests=fields["numGuests"],
            observations=fields.get("observations", ""),
        )

    def submit(self, action: str, form) -> Submission:
        if action not in SUBMIT_ACTIONS:
            self.notify("Please choose how you would like to pay.", "warning")
            return Submission(action, False)
        if not self.can_submit:
            self.notify("Start by selecting dates", "warning")
            return Submission(action, False)

        try:
            fields = read_booking_fields(form, self.cabin.max_capacity)
        except ValueError as exc:
            self.notify(str(exc), "warning")
            return Submission(action, False)

        try:
            with submission_slot(self.user.id):
                if action == PAY_OFFLINE:
                    return self.pay_offline(fields)
                return self.pay_online(fields)
        except SubmissionInFlight:
            self.notify("Your previous reservation is still being processed.", "info")
            return Submission(action, False)

    def pay_offline(self, fields: dict) -> Submission:
        draft = self.build_draft(fields)
        try:
            self.create_booking(draft, self.user.id)
        except Exception:
            logger.exception("Error creating booking for cabin %s", self.cabin.id)
            self.notify("There was an issue creating your booking. Please try again.", "danger")
            return Submission(PAY_OFFLINE, False, draft, fields)

        self.date_range.reset()
        self.notify("Your reservation is confirmed. You will pay on arrival.", "success")
        return Submission(PAY_OFFLINE, True, draft, fields)

    def pay_online(self, fields: dict) -> Submission:
        draft = None
        try:
            draft = self.build_draft(fields)
            config = CheckoutConfig(
                key=current_app.config.get("RAZORPAY_KEY_ID") or "",
                amount=amount_in_minor_units(draft.cabin_price),
                currency=current_app.config.get("PAYMENT_CURRENCY", "INR"),
                name=current_app.config.get("BUSINESS_NAME", "The Wild Oasis"),
                description=f"Booking for {draft.num_nights} nights",
                prefill={
                    "name": getattr(self.user, "name", None) or "Guest",
                    "email": getattr(self.user, "email", None) or "",
                },
                notes={
                    "cabin_id": draft.cabin_id,
                    "guest_id": self.user.id,
                    "start_date": draft.start_date.isoformat(),
                    "end_date": draft.end_date.isoformat(),
                },
            )
            checkout = self.payment_client.open_checkout(config)
        except Exception:
            logger.exception("Error during online payment process for cabin %s", self.cabin.id)
            self.notify("There was an issue with the payment. Please try again.", "danger")
            return Submission(PAY_ONLINE, False, draft, fields)

        return Submission(PAY_ONLINE, True, draft, fields, checkout)

    def complete_online(self, draft: BookingDraft, fields: dict, payment_id: str,
                        order_id: str = None, signature: str = None) -> bool:
        """Success callback of the checkout widget. True once the booking is recorded."""
        if not payment_id:
            logger.error("Payment id missing from checkout response (order %s)", order_id)
            self.notify(SUPPORT_MESSAGE, "danger")
            return False

        # not guarded by submission_slot; create_booking_online dedupes on payment_id
        try:
            self.payment_client.verify_payment(order_id, payment_id, signature)
            draft.payment_id = payment_id
            self.create_booking_online(draft, fields, self.user.id)
        except Exception:
            logger.exception("Error creating booking after payment %s", payment_id)
            self.notify(SUPPORT_MESSAGE, "danger")
            return False

        self.notify("Payment successful and room booked!", "success")
        self.date_range.reset()
        return True

    def payment_failed(self, description: str = None):
        logger.warning("Payment failed for cabin %s: %s", self.cabin.id, description)
        self.notify(f"Payment failed: {description or 'unknown error'}", "danger")
