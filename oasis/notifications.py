import logging
from flask import current_app
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

logger = logging.getLogger(__name__)


def _confirmation_html(booking) -> str:
    cabin = booking.cabin
    payment = "Paid online" if booking.is_paid else "Pay on arrival"
    return (
        f"<h3>Thanks {booking.guest.name}!</h3>"
        f"<p>Cabin {cabin.name}: {booking.start_date:%d %b %Y} to {booking.end_date:%d %b %Y} "
        f"({booking.num_nights} nights, {booking.num_guests} guests).</p>"
        f"<p>Total: {booking.total_price} ({payment})</p>"
    )


def send_email(to_email, subject, html):
    api_key = current_app.config.get("SENDGRID_API_KEY")
    if not api_key or not to_email:
        return False
    try:
        sg = SendGridAPIClient(api_key)
        message = Mail(
            from_email=current_app.config.get("MAIL_FROM"),
            to_emails=to_email,
            subject=subject,
            html_content=html,
        )
        sg.send(message)
    except Exception:
        logger.exception("Email to %s failed", to_email)
        return False
    return True


def send_booking_confirmation(booking):
    guest = booking.guest
    if guest is None:
        return False
    return send_email(guest.email, "Your Wild Oasis reservation", _confirmation_html(booking))
