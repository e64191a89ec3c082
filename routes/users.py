from flask import Blueprint, request, jsonify, g

from models.user import ROLE_ADMIN, ROLE_NURSE
from security.rbac import require_roles
from services import user_service
from utils.audit import log_event
from utils.auth_context import login_required
from utils.validators import json_body
from utils.errors import ForbiddenError

users_bp = Blueprint("users", __name__, url_prefix="/users")


@users_bp.get("")
@require_roles(ROLE_ADMIN)
def list_users():
    users, pagination = user_service.list_users(
        page=request.args.get("page", 1, type=int),
        limit=request.args.get("limit", 10, type=int),
        role=request.args.get("role"),
        status=request.args.get("status"),
        search=request.args.get("search"),
        sort_by=request.args.get("sortBy", "createdAt"),
        sort_order=request.args.get("sortOrder", "DESC"),
    )
    return jsonify(
        success=True,
        data=[user_service.serialize_user(u) for u in users],
        pagination=pagination,
    ), 200


@users_bp.get("/stats")
@require_roles(ROLE_ADMIN)
def user_stats():
    return jsonify(success=True, data=user_service.user_stats()), 200


@users_bp.get("/profile")
@login_required
def get_profile():
    return jsonify(success=True, data=user_service.serialize_user(g.user)), 200


@users_bp.put("/profile")
@login_required
def update_profile():
    user = user_service.apply_profile_update(g.user, json_body())
    log_event("PROFILE_UPDATE", user_id=user.id)
    return jsonify(
        success=True,
        data=user_service.serialize_user(user),
        message="Profile updated successfully",
    ), 200


@users_bp.get("/<int:user_id>")
@require_roles(ROLE_ADMIN, ROLE_NURSE)
def get_user(user_id: int):
    user = user_service.get_user(user_id)
    return jsonify(success=True, data=user_service.serialize_user(user)), 200


@users_bp.put("/<int:user_id>")
@require_roles(ROLE_ADMIN)
def update_user(user_id: int):
    user = user_service.apply_profile_update(user_service.get_user(user_id), json_body())
    log_event("ADMIN_USER_UPDATE", user_id=g.user.id, entity="user", entity_id=user.id)
    return jsonify(
        success=True,
        data=user_service.serialize_user(user),
        message="User updated successfully",
    ), 200


@users_bp.put("/<int:user_id>/status")
@require_roles(ROLE_ADMIN)
def update_status(user_id: int):
    status = json_body().get("status")
    user = user_service.update_status(user_service.get_user(user_id), status)
    log_event("ADMIN_USER_STATUS", user_id=g.user.id, entity="user", entity_id=user.id,
              metadata={"status": status})
    return jsonify(
        success=True,
        data=user_service.serialize_user(user),
        message="User status updated successfully",
    ), 200


@users_bp.put("/<int:user_id>/role")
@require_roles(ROLE_ADMIN)
def update_role(user_id: int):
    role = json_body().get("role")
    user = user_service.get_user(user_id)
    if user.id == g.user.id and role != ROLE_ADMIN:
        raise ForbiddenError("Cannot remove your own admin role")

    user = user_service.update_role(user, role)
    log_event("ADMIN_USER_ROLE", user_id=g.user.id, entity="user", entity_id=user.id,
              metadata={"role": role})
    return jsonify(
        success=True,
        data=user_service.serialize_user(user),
        message="User role updated successfully",
    ), 200


@users_bp.delete("/<int:user_id>")
@require_roles(ROLE_ADMIN)
def delete_user(user_id: int):
    user = user_service.get_user(user_id)
    if user.id == g.user.id:
        raise ForbiddenError("Cannot delete your own account")

    user_service.delete_user(user)
    log_event("ADMIN_USER_DELETE", user_id=g.user.id, entity="user", entity_id=user_id)
    return jsonify(success=True, message="User deleted successfully"), 200
