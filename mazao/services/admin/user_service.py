# mazao/services/admin/user_service.py
from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from flask import current_app
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from mazao.errors import ErrorKind, Result
from mazao.models.common import paged, parse_model
from mazao.models.user_models import (
    FarmerCreateRequest,
    Principal,
    Role,
    UserListQuery,
    UserUpdateRequest,
    public_user,
)
from mazao.mongo import Store, to_object_id, utcnow
from mazao.policy import Action, ResourceKind, authorize
from mazao.services.auth_service import AuthService, bcrypt

PROFILE_FIELDS = ("fullName", "location", "contactInfo", "avatar")


class UserService:
    def __init__(self, store: Store):
        self.store = store

    def _find(self, user_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.store.users.find_one({"_id": oid})

    # ------------------------------------------------------------
    # LIST / COUNT
    # ------------------------------------------------------------
    def list_users(self, args: Mapping[str, Any]) -> Result[Dict[str, Any]]:
        parsed = parse_model(UserListQuery, args)
        if not parsed.ok:
            return parsed
        q = parsed.value

        flt: Dict[str, Any] = {}
        if q.role:
            flt["role"] = q.role.value
        if q.search:
            rx = {"$regex": re.escape(q.search), "$options": "i"}
            flt["$or"] = [{"email": rx}, {"profile.fullName": rx}]

        total = self.store.users.count_documents(flt)
        cur = (
            self.store.users.find(flt, {"password": 0})
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip(q.skip)
            .limit(q.limit)
        )
        return Result.success(paged([public_user(u) for u in cur], q, total))

    def count_users(self) -> Result[Dict[str, int]]:
        farmers = self.store.users.count_documents({"role": Role.FARMER.value})
        admins = self.store.users.count_documents({"role": Role.ADMIN.value})
        return Result.success({"total": farmers + admins, "farmers": farmers, "admins": admins})

    def list_farmers(self) -> Result[List[Dict[str, Any]]]:
        cur = self.store.users.find(
            {"role": Role.FARMER.value}, {"email": 1, "profile": 1}
        ).sort("profile.fullName", 1)
        rows = []
        for u in cur:
            profile = u.get("profile") or {}
            rows.append({
                "id": str(u["_id"]),
                "email": u.get("email", ""),
                "fullName": profile.get("fullName", ""),
                "location": profile.get("location"),
            })
        return Result.success(rows)

    # ------------------------------------------------------------
    # CREATE (admin-side farmer onboarding)
    # ------------------------------------------------------------
    def create_farmer(self, payload: Optional[Mapping[str, Any]]) -> Result[Dict[str, Any]]:
        parsed = parse_model(FarmerCreateRequest, payload)
        if not parsed.ok:
            return parsed

        created = AuthService(self.store).create_account(parsed.value, Role.FARMER)
        if not created.ok:
            return created
        return Result.success(public_user(created.value))

    # ------------------------------------------------------------
    # SINGLE RECORD
    # ------------------------------------------------------------
    def get_user(self, principal: Principal, user_id: str) -> Result[Dict[str, Any]]:
        checked = authorize(principal, self._find(user_id), Action.READ, ResourceKind.PRINCIPAL)
        if not checked.ok:
            return checked

        user = checked.value
        data = public_user(user)
        data["cropCount"] = self.store.crops.count_documents({"farmerId": user["_id"]})
        return Result.success(data)

    def update_user(self, principal: Principal, user_id: str, payload: Optional[Mapping[str, Any]]) -> Result[Dict[str, Any]]:
        checked = authorize(principal, self._find(user_id), Action.UPDATE, ResourceKind.PRINCIPAL)
        if not checked.ok:
            return checked
        user = checked.value

        parsed = parse_model(UserUpdateRequest, payload)
        if not parsed.ok:
            return parsed
        req = parsed.value

        if req.role is not None and req.role.value != user.get("role"):
            return Result.fail(ErrorKind.INVALID_INPUT, "Role cannot be changed")

        patch: Dict[str, Any] = {}
        if req.email is not None and req.email != user.get("email"):
            taken = self.store.users.find_one(
                {"email": req.email, "_id": {"$ne": user["_id"]}}, {"_id": 1}
            )
            if taken:
                return Result.fail(ErrorKind.CONFLICT, "Email is already in use")
            patch["email"] = req.email

        if req.password:
            patch["password"] = bcrypt.generate_password_hash(req.password).decode("utf-8")

        sent = req.model_dump(exclude_unset=True)
        for key in PROFILE_FIELDS:
            if key not in sent:
                continue
            if key == "fullName" and not sent[key]:
                continue
            patch[f"profile.{key}"] = sent[key]

        if not patch:
            return Result.success(public_user(user))

        patch["updatedAt"] = utcnow()
        try:
            self.store.users.update_one({"_id": user["_id"]}, {"$set": patch})
        except DuplicateKeyError:
            return Result.fail(ErrorKind.CONFLICT, "Email is already in use")

        current_app.logger.info("user %s updated by %s", user["_id"], principal.id)
        return Result.success(public_user(self.store.users.find_one({"_id": user["_id"]})))

    def delete_user(self, principal: Principal, user_id: str) -> Result[Dict[str, Any]]:
        checked = authorize(principal, self._find(user_id), Action.DELETE, ResourceKind.PRINCIPAL)
        if not checked.ok:
            return checked
        oid = checked.value["_id"]

        with self.store.transaction() as session:
            crops = self.store.crops.delete_many({"farmerId": oid}, session=session)
            self.store.users.delete_one({"_id": oid}, session=session)

        current_app.logger.info(
            "user %s deleted by %s (cascade: %d crops)", oid, principal.id, crops.deleted_count
        )
        return Result.success({"id": str(oid), "deletedCrops": crops.deleted_count})
