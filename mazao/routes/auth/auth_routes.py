# mazao/routes/auth/auth_routes.py

from __future__ import annotations

from flask import Blueprint, current_app, request
from flask_jwt_extended import current_user, jwt_required

from mazao.errors import Result, respond
from mazao.identity import clear_session, issue_session
from mazao.models.user_models import public_user
from mazao.mongo import get_store
from mazao.services.auth_service import AuthService

# -------------------------------------------------------------------
# Blueprint
# -------------------------------------------------------------------
auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _service() -> AuthService:
    return AuthService(get_store())


def _with_session(result: Result, status: int = 200, message=None):
    """Respond with the public user and attach a fresh session cookie."""
    if not result.ok:
        return respond(result)
    user = result.value
    response, code = respond(Result.success(public_user(user)), status, message)
    issue_session(response, user["_id"])
    return response, code


# -------------------------------------------------------------------
# Login / register
# -------------------------------------------------------------------
@auth_bp.post("/login")
def login():
    result = _service().login(request.get_json(silent=True))
    if result.ok:
        current_app.logger.info("login ok id=%s", result.value["_id"])
    return _with_session(result, message="Login successful")


@auth_bp.post("/register")
def register():
    result = _service().register(request.get_json(silent=True))
    return _with_session(result, status=201, message="Registration successful")


# -------------------------------------------------------------------
# Current session
# -------------------------------------------------------------------
@auth_bp.get("/me")
@jwt_required()
def me():
    return respond(_service().me(current_user))


@auth_bp.route("/logout", methods=["GET", "POST"])
def logout():
    response, status = respond(Result.success(), message="Logged out successfully")
    clear_session(response)
    return response, status
