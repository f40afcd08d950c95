# mazao/routes/admin/user_routes.py

from flask import Blueprint, request
from flask_jwt_extended import current_user

from mazao.errors import respond
from mazao.identity import require_admin
from mazao.mongo import get_store
from mazao.services.admin.user_service import UserService

# ======================================================
# USERS  →  /api/users/*   (admin only)
# ======================================================
user_bp = Blueprint("user_bp", __name__, url_prefix="/api/users")
user_bp.before_request(require_admin)


def _service() -> UserService:
    return UserService(get_store())


@user_bp.get("/")
def list_users():
    return respond(_service().list_users(request.args))


@user_bp.get("/stats/count")
def count_users():
    return respond(_service().count_users())


# ------------------  FARMERS ------------------
@user_bp.get("/farmers")
def list_farmers():
    return respond(_service().list_farmers())


@user_bp.post("/farmers/new")
def create_farmer():
    result = _service().create_farmer(request.get_json(silent=True))
    return respond(result, 201, "Farmer created successfully")


# ------------------  SINGLE USER ------------------
@user_bp.get("/<user_id>")
def get_user(user_id):
    return respond(_service().get_user(current_user, user_id))


@user_bp.put("/<user_id>")
def update_user(user_id):
    result = _service().update_user(current_user, user_id, request.get_json(silent=True))
    return respond(result, message="User updated successfully")


@user_bp.delete("/<user_id>")
def delete_user(user_id):
    result = _service().delete_user(current_user, user_id)
    return respond(result, message="User and associated data deleted successfully")
