# mazao/identity.py
"""
Session/identity resolution and the admin role gate.

The session is an HTTP-only cookie carrying a signed JWT whose subject is the
principal id. flask-jwt-extended verifies signature/expiry; the user lookup
loader below turns the subject into a Principal (or rejects the request when
the account no longer exists).
"""
from __future__ import annotations

from typing import Optional

from flask import current_app, request
from flask_jwt_extended import (
    JWTManager,
    create_access_token,
    current_user,
    set_access_cookies,
    unset_jwt_cookies,
    verify_jwt_in_request,
)

from mazao.errors import ErrorKind, error_response
from mazao.models.user_models import Principal, Role
from mazao.mongo import Store, get_store, to_object_id

jwt = JWTManager()

# never load the hash into a request context
PRINCIPAL_PROJECTION = {"_id": 1, "email": 1, "role": 1, "createdAt": 1}


def load_principal(store: Store, identity) -> Optional[Principal]:
    oid = to_object_id(identity)
    if oid is None:
        return None
    doc = store.users.find_one({"_id": oid}, PRINCIPAL_PROJECTION)
    return Principal.from_doc(doc) if doc else None


def is_admin(principal: Optional[Principal]) -> bool:
    return principal is not None and principal.role == Role.ADMIN


# -------------------------------------------------------------------
# JWT wiring
# -------------------------------------------------------------------
def init_jwt(app):
    jwt.init_app(app)

    @jwt.user_lookup_loader
    def _lookup(_jwt_header, jwt_data):
        return load_principal(get_store(), jwt_data.get("sub"))

    @jwt.user_lookup_error_loader
    def _lookup_failed(_jwt_header, _jwt_data):
        return error_response(ErrorKind.UNAUTHENTICATED, "Not authorized, account no longer exists")

    @jwt.unauthorized_loader
    def _missing(_reason):
        return error_response(ErrorKind.UNAUTHENTICATED, "Not authorized, no token")

    @jwt.invalid_token_loader
    def _invalid(_reason):
        return error_response(ErrorKind.UNAUTHENTICATED, "Not authorized, token failed")

    @jwt.expired_token_loader
    def _expired(_jwt_header, _jwt_data):
        return error_response(ErrorKind.UNAUTHENTICATED, "Not authorized, token expired")


def issue_session(response, principal_id: str):
    token = create_access_token(identity=str(principal_id))
    set_access_cookies(response, token)
    return response


def clear_session(response):
    unset_jwt_cookies(response)
    return response


# -------------------------------------------------------------------
# Blueprint guards (used with bp.before_request)
# -------------------------------------------------------------------
def require_principal():
    if request.method == "OPTIONS":
        return None
    verify_jwt_in_request()
    return None


def require_admin():
    if request.method == "OPTIONS":
        return None
    verify_jwt_in_request()
    if not is_admin(current_user):
        current_app.logger.info("admin gate denied principal=%s", current_user.id)
        return error_response(ErrorKind.FORBIDDEN, "Access denied. Admin rights required.")
    return None
