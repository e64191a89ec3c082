from datetime import datetime
from models.db import db


class AuditLog(db.Model):
    """Append-only trail of security and booking events."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    # acting user; null for anonymous events such as unknown-email logins
    user_id = db.Column(db.Integer, nullable=True, index=True)
    actor_role = db.Column(db.String(20), nullable=True)

    action = db.Column(db.String(80), nullable=False, index=True)  # LOGIN_FAIL, BOOKING_CANCEL, PAYMENT_PAID
    entity = db.Column(db.String(40), nullable=True)   # user, booking, payment
    entity_id = db.Column(db.String(40), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    details = db.Column(db.JSON, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
