from datetime import datetime
from models.db import db

GATEWAYS = ("flutterwave", "paystack", "cash")
METHODS = ("card", "bank_transfer", "ussd", "qr", "cash")


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    gateway = db.Column(db.String(20), nullable=False, default="flutterwave")
    method = db.Column(db.String(20), nullable=False, default="card")
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="NGN")

    status = db.Column(db.String(20), nullable=False, default="INIT")  # INIT, PAID, FAILED
    reference = db.Column(db.String(64), nullable=False, unique=True, index=True)
    transaction_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    paid_at = db.Column(db.DateTime, nullable=True)
