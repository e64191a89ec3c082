from flask import Blueprint, request, jsonify, g

from models.user import ROLE_ADMIN, ROLE_CLIENT, ROLE_NURSE
from security.rbac import require_roles
from services import booking_service
from services.assessments import list_assessments
from services.booking_service import serialize_booking
from services.user_service import serialize_user_brief
from utils.auth_context import login_required
from utils.validators import clean_str, json_body

bookings_bp = Blueprint("bookings", __name__, url_prefix="/bookings")


# ---------- catalog + pricing ----------
@bookings_bp.get("/assessments")
def assessments():
    return jsonify(success=True, data=list_assessments()), 200


@bookings_bp.post("/quote")
@login_required
def quote():
    _, _, _, breakdown = booking_service.quote_request(json_body())
    return jsonify(success=True, data=breakdown.to_dict()), 200


# ---------- PATIENTS: create + view ----------
@bookings_bp.post("")
@require_roles(ROLE_CLIENT)
def create_booking():
    booking = booking_service.create_booking(g.user, json_body())
    return jsonify(
        success=True,
        data=serialize_booking(booking),
        message="Assessment booking created",
    ), 201


@bookings_bp.get("/my-bookings")
@login_required
def my_bookings():
    rows = booking_service.list_for_user(g.user, request.args.get("status"))
    return jsonify(success=True, data=[serialize_booking(b) for b in rows]), 200


# ---------- NURSE/ADMIN: overview ----------
@bookings_bp.get("/all")
@require_roles(ROLE_ADMIN, ROLE_NURSE)
def all_bookings():
    rows = booking_service.list_all(request.args.get("status"))
    return jsonify(success=True, data=[serialize_booking(b) for b in rows]), 200


@bookings_bp.get("/stats")
@require_roles(ROLE_ADMIN)
def booking_stats():
    return jsonify(success=True, data=booking_service.booking_stats()), 200


@bookings_bp.get("/available-nurses")
@require_roles(ROLE_ADMIN)
def available_nurses():
    nurses = booking_service.available_nurses()
    return jsonify(success=True, data=[serialize_user_brief(n) for n in nurses]), 200


# ---------- single booking ----------
@bookings_bp.get("/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    booking = booking_service.get_booking_for(g.user, booking_id)
    return jsonify(success=True, data=serialize_booking(booking)), 200


@bookings_bp.put("/<int:booking_id>")
@require_roles(ROLE_ADMIN, ROLE_NURSE)
def update_booking(booking_id: int):
    booking = booking_service.update_booking(booking_id, g.user, json_body())
    return jsonify(
        success=True,
        data=serialize_booking(booking),
        message="Booking updated successfully",
    ), 200


@bookings_bp.put("/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id: int):
    reason = clean_str(json_body(), "reason", max_len=255)
    booking = booking_service.cancel_booking(booking_id, g.user, reason)
    return jsonify(
        success=True,
        data=serialize_booking(booking),
        message="Booking cancelled successfully",
    ), 200


@bookings_bp.put("/<int:booking_id>/assign-nurse")
@require_roles(ROLE_ADMIN)
def assign_nurse(booking_id: int):
    booking = booking_service.assign_nurse(booking_id, json_body().get("nurseId"), g.user)
    return jsonify(
        success=True,
        data=serialize_booking(booking),
        message="Nurse assigned successfully",
    ), 200


@bookings_bp.put("/<int:booking_id>/complete")
@require_roles(ROLE_ADMIN, ROLE_NURSE)
def complete_booking(booking_id: int):
    booking = booking_service.complete_booking(booking_id, g.user, json_body())
    return jsonify(
        success=True,
        data=serialize_booking(booking),
        message="Booking completed",
    ), 200
