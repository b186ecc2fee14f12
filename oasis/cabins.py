from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import current_user, login_required
from .models import Cabin
from .reservation import ReservationForm, PAY_OFFLINE, PAY_ONLINE
from .checkouts import remember_checkout
from .state import ReservationRange
from . import db

cabins_bp = Blueprint("cabins", __name__, url_prefix="/cabins")


# which named submit button was used (the browser only sends the one clicked)
def _submit_action(form) -> str:
    for name in (PAY_OFFLINE, PAY_ONLINE):
        if name in form:
            return name
    return form.get("action") or ""


@cabins_bp.route("/")
def cabin_list():
    cabins = Cabin.query.order_by(Cabin.name.asc()).all()
    return render_template("cabins.html", cabins=cabins)


@cabins_bp.route("/<int:cabin_id>")
def cabin_detail(cabin_id: int):
    cabin = db.get_or_404(Cabin, cabin_id)
    date_range = ReservationRange()
    form = None
    if current_user.is_authenticated:
        form = ReservationForm(cabin, current_user, date_range)
    return render_template("cabin.html", cabin=cabin, date_range=date_range, form=form)


@cabins_bp.route("/<int:cabin_id>/range", methods=["POST"])
def select_range(cabin_id: int):
    db.get_or_404(Cabin, cabin_id)
    try:
        ReservationRange().select(
            (request.form.get("start_date") or "").strip() or None,
            (request.form.get("end_date") or "").strip() or None,
        )
    except ValueError as exc:
        flash(str(exc), "warning")
    return redirect(url_for("cabins.cabin_detail", cabin_id=cabin_id))


@cabins_bp.route("/<int:cabin_id>/range/reset", methods=["POST"])
def reset_range(cabin_id: int):
    ReservationRange().reset()
    return redirect(url_for("cabins.cabin_detail", cabin_id=cabin_id))


@cabins_bp.route("/<int:cabin_id>/reserve", methods=["POST"])
@login_required
def reserve(cabin_id: int):
    cabin = db.get_or_404(Cabin, cabin_id)
    form = ReservationForm(cabin, current_user, ReservationRange())
    result = form.submit(_submit_action(request.form), request.form)

    if result.ok and result.checkout is not None:
        remember_checkout(
            result.checkout.order_id,
            guest_id=current_user.id,
            cabin_id=cabin.id,
            draft=result.draft.to_dict(),
            fields=result.fields,
        )
        return render_template(
            "checkout.html",
            cabin=cabin,
            options=result.checkout.options(),
            num_nights=result.draft.num_nights,
            cabin_price=result.draft.cabin_price,
        )

    return redirect(url_for("cabins.cabin_detail", cabin_id=cabin_id))


@cabins_bp.route("/thankyou")
@login_required
def thankyou():
    return render_template("thankyou.html")
