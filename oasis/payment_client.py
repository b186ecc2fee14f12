import logging
from dataclasses import dataclass, field
import razorpay
from flask import current_app

logger = logging.getLogger(__name__)

PAYMENT_CLIENT_KEY = "payment_client"


@dataclass
class CheckoutConfig:
    key: str
    amount: int  # minor currency units
    currency: str
    name: str
    description: str
    prefill: dict = field(default_factory=dict)
    notes: dict = field(default_factory=dict)


@dataclass
class Checkout:
    order_id: str
    config: CheckoutConfig

    def options(self) -> dict:
        """Options object handed to checkout.js in the browser."""
        return {
            "key": self.config.key,
            "amount": self.config.amount,
            "currency": self.config.currency,
            "name": self.config.name,
            "description": self.config.description,
            "order_id": self.order_id,
            "prefill": self.config.prefill,
        }


class RazorpayCheckout:
    """Payment client backed by the Razorpay SDK."""

    def __init__(self, key_id: str, key_secret: str):
        self.key_id = key_id
        self.client = razorpay.Client(auth=(key_id, key_secret))

    def open_checkout(self, config: CheckoutConfig) -> Checkout:
        order = self.client.order.create({
            "amount": config.amount,
            "currency": config.currency,
            "payment_capture": 1,
            "notes": {k: str(v) for k, v in (config.notes or {}).items()},
        })
        logger.info("Razorpay order %s created for %s %s", order["id"], config.amount, config.currency)
        return Checkout(order_id=order["id"], config=config)

    def verify_payment(self, order_id: str, payment_id: str, signature: str):
        # raises razorpay.errors.SignatureVerificationError on mismatch
        self.client.utility.verify_payment_signature({
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        })


def get_payment_client():
    """
    Return the app's payment client, building a Razorpay one on first use.
    Raises RuntimeError if the keys are not configured.
    """
    client = current_app.extensions.get(PAYMENT_CLIENT_KEY)
    if client is not None:
        return client

    key_id = current_app.config.get("RAZORPAY_KEY_ID")
    key_secret = current_app.config.get("RAZORPAY_KEY_SECRET")
    if not key_id or not key_secret:
        raise RuntimeError("Razorpay keys are not configured (RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET).")

    client = RazorpayCheckout(key_id, key_secret)
    current_app.extensions[PAYMENT_CLIENT_KEY] = client
    return client
