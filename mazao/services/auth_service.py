# mazao/services/auth_service.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from bson import ObjectId
from flask import current_app
from flask_bcrypt import Bcrypt
from pymongo.errors import DuplicateKeyError

from mazao.errors import ErrorKind, Result
from mazao.models.common import parse_model
from mazao.models.user_models import (
    LoginRequest,
    Principal,
    RegisterRequest,
    Role,
    public_user,
)
from mazao.mongo import Store, utcnow

bcrypt = Bcrypt()


class AuthService:
    def __init__(self, store: Store):
        self.store = store

    # ------------------------------------------------------------
    # Account creation (principal + embedded profile, one write)
    # ------------------------------------------------------------
    def create_account(self, req: RegisterRequest, role: Role) -> Result[Dict[str, Any]]:
        if self.store.users.find_one({"email": req.email}, {"_id": 1}):
            return Result.fail(ErrorKind.CONFLICT, "User already exists")

        now = utcnow()
        user_id = ObjectId()
        doc = {
            "_id": user_id,
            "email": req.email,
            "password": bcrypt.generate_password_hash(req.password).decode("utf-8"),
            "role": role.value,
            "createdAt": now,
            "updatedAt": now,
            "profile": {
                "id": ObjectId(),
                "fullName": req.fullName,
                "location": req.location,
                "contactInfo": req.contactInfo,
                "avatar": getattr(req, "avatar", None),
            },
        }

        try:
            self.store.users.insert_one(doc)
        except DuplicateKeyError:
            # lost a race with a concurrent signup for the same email
            return Result.fail(ErrorKind.CONFLICT, "User already exists")

        current_app.logger.info("account created id=%s role=%s", user_id, role.value)
        return Result.success(doc)

    def register(self, payload: Optional[Mapping[str, Any]]) -> Result[Dict[str, Any]]:
        """Farmer self-signup. Admins are only ever seeded."""
        parsed = parse_model(RegisterRequest, payload)
        if not parsed.ok:
            return parsed
        return self.create_account(parsed.value, Role.FARMER)

    # ------------------------------------------------------------
    # Login / me
    # ------------------------------------------------------------
    def login(self, payload: Optional[Mapping[str, Any]]) -> Result[Dict[str, Any]]:
        data = payload if isinstance(payload, Mapping) else {}
        if not data.get("email") or not data.get("password"):
            return Result.fail(ErrorKind.INVALID_INPUT, "Please provide email and password")

        parsed = parse_model(LoginRequest, data)
        if not parsed.ok:
            return parsed
        req = parsed.value

        user = self.store.users.find_one({"email": req.email})
        if not user or not bcrypt.check_password_hash(user.get("password", ""), req.password):
            current_app.logger.info("failed login for %s", req.email)
            return Result.fail(ErrorKind.UNAUTHENTICATED, "Invalid email or password")

        return Result.success(user)

    def me(self, principal: Principal) -> Result[Dict[str, Any]]:
        user = self.store.users.find_one({"_id": ObjectId(principal.id)})
        if not user:
            return Result.fail(ErrorKind.NOT_FOUND, "User not found")
        return Result.success(public_user(user))
