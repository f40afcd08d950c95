# mazao/services/farmer/profile_service.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from bson import ObjectId
from flask import current_app
from pymongo import DESCENDING

from mazao.errors import ErrorKind, Result
from mazao.models.common import parse_model
from mazao.models.farmer.crop_models import public_crop
from mazao.models.user_models import Principal, ProfileUpdateRequest, Role, public_user
from mazao.mongo import Store, to_iso, utcnow
from mazao.policy import Action, ResourceKind, authorize, scope_filter

RECENT_LIMIT = 5


class ProfileService:
    """Self-service profile: every call acts on the caller's own record."""

    def __init__(self, store: Store):
        self.store = store

    def _own(self, principal: Principal, action: Action) -> Result[Dict[str, Any]]:
        doc = self.store.users.find_one({"_id": ObjectId(principal.id)})
        return authorize(principal, doc, action, ResourceKind.PRINCIPAL)

    def _recent_crops(self, match: Dict[str, Any]):
        cur = (
            self.store.crops.find(match)
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .limit(RECENT_LIMIT)
        )
        return [public_crop(c) for c in cur]

    def _sum_quantity(self, match: Dict[str, Any]) -> int:
        rows = list(self.store.crops.aggregate([
            {"$match": match},
            {"$group": {"_id": None, "total": {"$sum": "$quantity"}}},
        ]))
        return rows[0]["total"] if rows else 0

    def _count_by(self, match: Dict[str, Any], field: str):
        return [
            {field: row["_id"], "count": row["count"]}
            for row in self.store.crops.aggregate([
                {"$match": match},
                {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
                {"$sort": {"count": -1}},
            ])
        ]

    # ------------------------------------------------------------
    # GET /profile/me
    # ------------------------------------------------------------
    def get_my_profile(self, principal: Principal) -> Result[Dict[str, Any]]:
        own = self._own(principal, Action.READ)
        if not own.ok:
            return own

        match = {"farmerId": ObjectId(principal.id)}

        user = public_user(own.value)
        user["crops"] = self._recent_crops(match)

        stats = {
            "totalCrops": self.store.crops.count_documents(match),
            "cropsByType": self._count_by(match, "type"),
            "totalQuantity": self._sum_quantity(match),
        }
        return Result.success({"user": user, "stats": stats})

    # ------------------------------------------------------------
    # PUT /profile/me
    # ------------------------------------------------------------
    def update_my_profile(self, principal: Principal, payload: Optional[Mapping[str, Any]]) -> Result[Dict[str, Any]]:
        own = self._own(principal, Action.UPDATE)
        if not own.ok:
            return own

        data = payload if isinstance(payload, Mapping) else {}
        if not data.get("fullName"):
            return Result.fail(ErrorKind.INVALID_INPUT, "Full name is required")

        parsed = parse_model(ProfileUpdateRequest, data)
        if not parsed.ok:
            return parsed
        sent = parsed.value.model_dump(exclude_unset=True)

        patch: Dict[str, Any] = {f"profile.{k}": v for k, v in sent.items()}
        if not (own.value.get("profile") or {}).get("id"):
            # accounts created outside the API may lack a profile id
            patch["profile.id"] = ObjectId()
        patch["updatedAt"] = utcnow()

        self.store.users.update_one({"_id": own.value["_id"]}, {"$set": patch})
        current_app.logger.info("profile updated for %s", principal.id)
        return Result.success(public_user(self.store.users.find_one({"_id": own.value["_id"]})))

    # ------------------------------------------------------------
    # GET /profile/stats (role-shaped dashboard numbers)
    # ------------------------------------------------------------
    def dashboard_stats(self, principal: Principal) -> Result[Dict[str, Any]]:
        if principal.is_admin:
            return Result.success(self._admin_stats())
        return Result.success(self._farmer_stats(principal))

    def _farmer_stats(self, principal: Principal) -> Dict[str, Any]:
        match = scope_filter(principal, {}, ResourceKind.CROP)
        return {
            "totalCrops": self.store.crops.count_documents(match),
            "cropsByStatus": self._count_by(match, "status"),
            "recentCrops": self._recent_crops(match),
            "totalQuantity": self._sum_quantity(match),
        }

    def _admin_stats(self) -> Dict[str, Any]:
        farmers = {"role": Role.FARMER.value}
        by_location = [
            {"location": row["_id"], "count": row["count"]}
            for row in self.store.users.aggregate([
                {"$match": {**farmers, "profile.location": {"$nin": [None, ""]}}},
                {"$group": {"_id": "$profile.location", "count": {"$sum": 1}}},
                {"$sort": {"count": -1}},
            ])
        ]
        recent = (
            self.store.users.find(farmers, {"email": 1, "createdAt": 1, "profile": 1})
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .limit(RECENT_LIMIT)
        )
        return {
            "totalFarmers": self.store.users.count_documents(farmers),
            "totalCrops": self.store.crops.count_documents({}),
            "farmersByLocation": by_location,
            "recentRegistrations": [
                {
                    "id": str(u["_id"]),
                    "email": u.get("email", ""),
                    "createdAt": to_iso(u.get("createdAt")),
                    "profile": {
                        "fullName": (u.get("profile") or {}).get("fullName"),
                        "location": (u.get("profile") or {}).get("location"),
                    },
                }
                for u in recent
            ],
        }
