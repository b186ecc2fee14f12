import logging
from flask import Blueprint, request, redirect, url_for, flash
from flask_login import current_user, login_required
from .checkouts import discard_checkout, find_checkout
from .models import Cabin
from .reservation import ReservationForm, BookingDraft, SUPPORT_MESSAGE
from .state import ReservationRange
from . import db

logger = logging.getLogger(__name__)

payments = Blueprint("payments", __name__, url_prefix="/payments")


def _pending_form(order_id):
    """Rebuild the reservation form and draft parked when the checkout opened."""
    pending = find_checkout(order_id, current_user.id)
    if not pending:
        return None, None, None
    cabin = db.session.get(Cabin, pending.cabin_id)
    if cabin is None:
        return None, None, None
    form = ReservationForm(cabin, current_user, ReservationRange())
    return form, BookingDraft.from_dict(pending.draft), dict(pending.fields or {})


# checkout.js success handler posts here
@payments.route("/razorpay/success", methods=["POST"])
@login_required
def razorpay_success():
    order_id = request.form.get("razorpay_order_id")
    payment_id = (request.form.get("razorpay_payment_id") or "").strip()
    signature = request.form.get("razorpay_signature")

    form, draft, fields = _pending_form(order_id)
    if form is None:
        logger.error("No pending checkout for order %s (payment %s)", order_id, payment_id)
        flash(SUPPORT_MESSAGE, "danger")
        return redirect(url_for("cabins.cabin_list"))

    # the draft is only consumed once its booking is recorded
    if form.complete_online(draft, fields, payment_id, order_id=order_id, signature=signature):
        discard_checkout(order_id)
        return redirect(url_for("cabins.thankyou"))
    return redirect(url_for("cabins.cabin_detail", cabin_id=form.cabin.id))


# checkout.js "payment.failed" listener posts here; the widget is gone after that
@payments.route("/razorpay/failed", methods=["POST"])
@login_required
def razorpay_failed():
    order_id = request.form.get("razorpay_order_id")
    description = request.form.get("description")

    form, _draft, _fields = _pending_form(order_id)
    if form is None:
        flash(f"Payment failed: {description or 'unknown error'}", "danger")
        return redirect(url_for("cabins.cabin_list"))

    discard_checkout(order_id)
    form.payment_failed(description)
    return redirect(url_for("cabins.cabin_detail", cabin_id=form.cabin.id))

payments_bp = payments
