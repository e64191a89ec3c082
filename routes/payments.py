from flask import Blueprint, jsonify, g

from services import payment_service
from utils.auth_context import login_required
from utils.validators import json_body

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


@payments_bp.post("/initiate")
@login_required
def initiate_payment():
    data = json_body()
    payment = payment_service.initiate_payment(
        data.get("bookingId"),
        g.user,
        gateway=data.get("gateway"),
        method=data.get("method"),
    )
    paid = payment.status == "PAID"
    status_code = 200 if payment.status != "FAILED" else 402
    body = {
        "success": payment.status != "FAILED",
        "data": payment_service.serialize_payment(payment),
        "message": "Payment successful" if paid else (
            "Payment failed. Please try again" if payment.status == "FAILED"
            else "Cash payment will be collected at the visit"
        ),
    }
    return jsonify(body), status_code


@payments_bp.get("/booking/<int:booking_id>")
@login_required
def booking_payments(booking_id: int):
    rows = payment_service.payments_for_booking(booking_id, g.user)
    return jsonify(success=True, data=[payment_service.serialize_payment(p) for p in rows]), 200
