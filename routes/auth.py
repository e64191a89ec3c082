from flask import Blueprint, jsonify, g

from services import auth_service
from utils.auth_context import login_required
from utils.validators import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/register")
def register():
    result = auth_service.register(json_body())
    return jsonify(success=True, **result), 201


@auth_bp.post("/login")
def login():
    result = auth_service.login(json_body())
    return jsonify(success=True, **result), 200


@auth_bp.post("/forgot-password")
def forgot_password():
    message = auth_service.forgot_password(json_body())
    return jsonify(message=message, success=True), 200


@auth_bp.post("/reset-password")
def reset_password():
    message = auth_service.reset_password(json_body())
    return jsonify(message=message, success=True), 200


@auth_bp.post("/change-password")
@login_required
def change_password():
    message = auth_service.change_password(g.user, json_body())
    return jsonify(message=message, success=True), 200


@auth_bp.get("/verify-email/<token>")
def verify_email(token: str):
    message = auth_service.verify_email(token)
    return jsonify(message=message, success=True), 200


@auth_bp.post("/verify-phone")
@login_required
def verify_phone():
    message = auth_service.verify_phone(g.user, json_body().get("code"))
    return jsonify(message=message, success=True), 200


@auth_bp.post("/resend-verification")
@login_required
def resend_verification():
    message = auth_service.resend_verification(g.user, json_body().get("type"))
    return jsonify(message=message, success=True), 200


@auth_bp.post("/refresh-token")
def refresh_token():
    result = auth_service.refresh(json_body().get("refreshToken"))
    return jsonify(success=True, **result), 200


@auth_bp.get("/profile")
@login_required
def profile():
    return jsonify(success=True, data=auth_service.profile(g.user.id)), 200


@auth_bp.post("/logout")
@login_required
def logout():
    auth_service.logout(g.user)
    return jsonify(message="Successfully logged out", success=True), 200
