import logging
from sqlalchemy.exc import SQLAlchemyError
from .models import Booking
from .notifications import send_booking_confirmation
from . import db

logger = logging.getLogger(__name__)

MAX_OBSERVATIONS = 1000


class BookingError(Exception):
    """A booking could not be recorded."""


def _guest_count(fields: dict, fallback: int) -> int:
    try:
        return int(fields.get("numGuests") or fallback)
    except (TypeError, ValueError):
        return fallback


def _booking_from_draft(draft, guest_id: int, num_guests: int, observations: str, is_paid: bool) -> Booking:
    return Booking(
        start_date=draft.start_date,
        end_date=draft.end_date,
        num_nights=draft.num_nights,
        num_guests=num_guests,
        cabin_price=draft.cabin_price,
        extras_price=0,
        total_price=draft.cabin_price,
        status="unconfirmed",
        has_breakfast=False,
        is_paid=is_paid,
        observations=(observations or "")[:MAX_OBSERVATIONS],
        payment_id=draft.payment_id,
        cabin_id=draft.cabin_id,
        guest_id=guest_id,
    )


def _save(booking: Booking) -> Booking:
    try:
        db.session.add(booking)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Could not save booking for cabin %s", booking.cabin_id)
        raise BookingError("Booking could not be created") from exc
    return booking


# pay on arrival
def create_booking(draft, guest_id: int) -> Booking:
    booking = _save(_booking_from_draft(
        draft,
        guest_id,
        num_guests=draft.num_guests,
        observations=draft.observations,
        is_paid=False,
    ))
    logger.info("Booking %s created for cabin %s (pay on arrival)", booking.id, booking.cabin_id)
    send_booking_confirmation(booking)
    return booking


def create_booking_online(draft, fields: dict, guest_id: int) -> Booking:
    """
    Record a booking that was already paid through the checkout widget.

    Guest count and observations come from the submitted form fields. A
    payment id that is already recorded returns the existing booking.
    """
    if not draft.payment_id:
        raise BookingError("Online bookings need a payment id")

    existing = Booking.query.filter_by(payment_id=draft.payment_id).first()
    if existing:
        logger.info("Payment %s already recorded as booking %s", draft.payment_id, existing.id)
        return existing

    fields = fields or {}
    booking = _save(_booking_from_draft(
        draft,
        guest_id,
        num_guests=_guest_count(fields, draft.num_guests),
        observations=fields.get("observations", draft.observations),
        is_paid=True,
    ))
    logger.info("Booking %s created for cabin %s (payment %s)", booking.id, booking.cabin_id, booking.payment_id)
    send_booking_confirmation(booking)
    return booking
