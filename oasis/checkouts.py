"""
Server-side parking for booking drafts while the checkout widget is open.

Only the gateway order id travels through the browser. Drafts for the same
guest are capped and expire, so abandoned checkouts do not pile up.
"""
import logging
from datetime import datetime, timedelta
from .models import PendingCheckout
from . import db

logger = logging.getLogger(__name__)

CHECKOUT_TTL = timedelta(hours=2)
MAX_PENDING_PER_GUEST = 3


def prune_checkouts(guest_id: int, keep: int = MAX_PENDING_PER_GUEST, now=None):
    now = now or datetime.utcnow()
    expired = PendingCheckout.query.filter(PendingCheckout.created_at < now - CHECKOUT_TTL)
    removed = expired.delete(synchronize_session=False)

    newest_first = (
        PendingCheckout.query.filter_by(guest_id=guest_id)
        .order_by(PendingCheckout.created_at.desc())
        .all()
    )
    for stale in newest_first[keep:]:
        db.session.delete(stale)
        removed += 1
    if removed:
        logger.info("Pruned %s pending checkouts", removed)
    return removed


def remember_checkout(order_id: str, guest_id: int, cabin_id: int, draft: dict, fields: dict):
    # make room for the new one
    prune_checkouts(guest_id, keep=MAX_PENDING_PER_GUEST - 1)
    pending = PendingCheckout(
        order_id=order_id,
        guest_id=guest_id,
        cabin_id=cabin_id,
        draft=draft,
        fields=fields,
    )
    db.session.add(pending)
    db.session.commit()
    return pending


def find_checkout(order_id: str, guest_id: int):
    if not order_id:
        return None
    return PendingCheckout.query.filter_by(order_id=order_id, guest_id=guest_id).first()


def discard_checkout(order_id: str):
    pending = db.session.get(PendingCheckout, order_id) if order_id else None
    if pending is not None:
        db.session.delete(pending)
        db.session.commit()
