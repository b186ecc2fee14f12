from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from . import db, login_manager

# Guest account
class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120))
    image = db.Column(db.String(255))

    bookings = db.relationship("Booking", back_populates="guest")

    def set_password(self, plaintext: str):
        self.password_hash = generate_password_hash(plaintext)

    def check_password(self, plaintext: str) -> bool:
        return check_password_hash(self.password_hash, plaintext)

    @property
    def name(self):
        if self.full_name:
            return self.full_name
        if self.email:
            return self.email.split("@")[0]
        return "Guest"


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


class Cabin(db.Model):
    __tablename__ = "cabin"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    max_capacity = db.Column(db.Integer, nullable=False)
    regular_price = db.Column(db.Integer, nullable=False)
    discount = db.Column(db.Integer, nullable=False, default=0)
    image = db.Column(db.String(255))
    description = db.Column(db.Text)

    bookings = db.relationship("Booking", back_populates="cabin")

    __table_args__ = (
        db.CheckConstraint("max_capacity > 0", name="ck_cabin_capacity"),
        db.CheckConstraint("discount <= regular_price", name="ck_cabin_discount"),
    )

    def __repr__(self):
        return f"<Cabin {self.name} cap={self.max_capacity} price={self.regular_price}-{self.discount}>"


# a recorded stay; pay-on-arrival bookings have no payment_id
class Booking(db.Model):
    __tablename__ = "booking"

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    num_nights = db.Column(db.Integer, nullable=False)
    num_guests = db.Column(db.Integer, nullable=False)
    cabin_price = db.Column(db.Integer, nullable=False, default=0)
    extras_price = db.Column(db.Integer, nullable=False, default=0)
    total_price = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default="unconfirmed")
    has_breakfast = db.Column(db.Boolean, nullable=False, default=False)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    observations = db.Column(db.String(1000))
    payment_id = db.Column(db.String(64), unique=True, nullable=True, index=True)

    cabin_id = db.Column(db.Integer, db.ForeignKey("cabin.id"), nullable=False, index=True)
    guest_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)

    cabin = db.relationship("Cabin", back_populates="bookings")
    guest = db.relationship("User", back_populates="bookings")

    def __repr__(self):
        return f"<Booking cabin={self.cabin_id} {self.start_date}->{self.end_date} paid={self.is_paid}>"


# a booking draft waiting for the checkout widget's callback, keyed by gateway order
class PendingCheckout(db.Model):
    __tablename__ = "pending_checkout"

    order_id = db.Column(db.String(64), primary_key=True)
    guest_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    cabin_id = db.Column(db.Integer, db.ForeignKey("cabin.id"), nullable=False)
    draft = db.Column(db.JSON, nullable=False)
    fields = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<PendingCheckout {self.order_id} guest={self.guest_id} cabin={self.cabin_id}>"
