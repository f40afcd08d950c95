# mazao/routes/farmer/profile_routes.py
from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import current_user

from mazao.errors import respond
from mazao.identity import require_principal
from mazao.mongo import get_store
from mazao.services.farmer.profile_service import ProfileService


profile_bp = Blueprint("profile_bp", __name__, url_prefix="/api/profile")
profile_bp.before_request(require_principal)


def _service() -> ProfileService:
    return ProfileService(get_store())


@profile_bp.get("/me")
def my_profile():
    return respond(_service().get_my_profile(current_user))


@profile_bp.put("/me")
def update_my_profile():
    result = _service().update_my_profile(current_user, request.get_json(silent=True))
    return respond(result, message="Profile updated successfully")


@profile_bp.get("/stats")
def dashboard_stats():
    return respond(_service().dashboard_stats(current_user))
