# mazao/services/farmer/crop_service.py

from __future__ import annotations

import re
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bson import ObjectId
from flask import current_app
from pymongo import DESCENDING

from mazao.errors import ErrorKind, Result
from mazao.models.common import paged, parse_model
from mazao.models.farmer.crop_models import (
    CropCreateRequest,
    CropListQuery,
    CropUpdateRequest,
    public_crop,
)
from mazao.models.user_models import Principal, Role, farmer_summary
from mazao.mongo import Store, to_object_id, utcnow
from mazao.policy import Action, ResourceKind, authorize, scope_filter

RECENT_LIMIT = 5

# fields a PUT may clear by sending null
NULLABLE_FIELDS = ("harvestDate", "description")


def _as_datetime(d: Optional[date]) -> Optional[datetime]:
    # BSON has no bare date type
    if d is None:
        return None
    return datetime.combine(d, time())


class CropService:
    def __init__(self, store: Store):
        self.store = store

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------
    def _find(self, crop_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(crop_id)
        if oid is None:
            return None
        return self.store.crops.find_one({"_id": oid})

    def _farmers_by_id(self, ids: Iterable[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
        ids = list({i for i in ids if i is not None})
        if not ids:
            return {}
        cur = self.store.users.find({"_id": {"$in": ids}}, {"email": 1, "profile": 1})
        return {u["_id"]: u for u in cur}

    def _resolve_farmer(self, farmer_id: Optional[str], session=None) -> Result[ObjectId]:
        """An assigned owner must be an existing FARMER principal."""
        oid = to_object_id(farmer_id) if farmer_id else None
        if oid is None:
            return Result.fail(ErrorKind.INVALID_INPUT, "A valid farmerId is required")
        farmer = self.store.users.find_one(
            {"_id": oid, "role": Role.FARMER.value}, {"_id": 1}, session=session
        )
        if not farmer:
            return Result.fail(ErrorKind.INVALID_INPUT, "Farmer not found")
        return Result.success(oid)

    def _owner_for_create(self, principal: Principal, requested: Optional[str], session=None) -> Result[ObjectId]:
        if principal.is_admin:
            return self._resolve_farmer(requested, session=session)

        # farmers always create for themselves
        if requested and requested != principal.id:
            return Result.fail(ErrorKind.FORBIDDEN, "Farmers can only create crops for themselves")
        return Result.success(ObjectId(principal.id))

    def _with_farmers(self, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        farmers = self._farmers_by_id(d.get("farmerId") for d in docs)
        return [public_crop(d, farmer_summary(farmers.get(d.get("farmerId")))) for d in docs]

    # ------------------------------------------------------------
    # LIST (scoped)
    # ------------------------------------------------------------
    def list_crops(self, principal: Principal, args: Mapping[str, Any]) -> Result[Dict[str, Any]]:
        parsed = parse_model(CropListQuery, args)
        if not parsed.ok:
            return parsed
        q = parsed.value

        flt: Dict[str, Any] = {}
        if q.type:
            flt["type"] = q.type.value
        if q.status:
            flt["status"] = q.status.value
        if q.farmerId:
            oid = to_object_id(q.farmerId)
            if oid is None:
                return Result.fail(ErrorKind.INVALID_INPUT, "farmerId is not a valid id")
            flt["farmerId"] = oid
        if q.search:
            rx = {"$regex": re.escape(q.search), "$options": "i"}
            flt["$or"] = [{"name": rx}, {"description": rx}]

        flt = scope_filter(principal, flt, ResourceKind.CROP)

        total = self.store.crops.count_documents(flt)
        docs = list(
            self.store.crops.find(flt)
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip(q.skip)
            .limit(q.limit)
        )
        return Result.success(paged(self._with_farmers(docs), q, total))

    # ------------------------------------------------------------
    # SINGLE CROP
    # ------------------------------------------------------------
    def get_crop(self, principal: Principal, crop_id: str) -> Result[Dict[str, Any]]:
        checked = authorize(principal, self._find(crop_id), Action.READ, ResourceKind.CROP)
        if not checked.ok:
            return checked
        return Result.success(self._with_farmers([checked.value])[0])

    def create_crop(self, principal: Principal, payload: Optional[Mapping[str, Any]]) -> Result[Dict[str, Any]]:
        parsed = parse_model(CropCreateRequest, payload)
        if not parsed.ok:
            return parsed
        req = parsed.value

        now = utcnow()
        doc = {
            "name": req.name,
            "type": req.type.value,
            "quantity": req.quantity,
            "plantingDate": _as_datetime(req.plantingDate),
            "harvestDate": _as_datetime(req.harvestDate),
            "description": req.description,
            "status": req.status.value,
            "createdAt": now,
            "updatedAt": now,
        }
        with self.store.transaction() as session:
            # owner lookup and insert commit together
            owner = self._owner_for_create(principal, req.farmerId, session=session)
            if not owner.ok:
                return owner
            doc["farmerId"] = owner.value
            doc["_id"] = self.store.crops.insert_one(doc, session=session).inserted_id

        current_app.logger.info("crop %s created for farmer %s by %s", doc["_id"], doc["farmerId"], principal.id)
        return Result.success(self._with_farmers([doc])[0])

    def update_crop(self, principal: Principal, crop_id: str, payload: Optional[Mapping[str, Any]]) -> Result[Dict[str, Any]]:
        checked = authorize(principal, self._find(crop_id), Action.UPDATE, ResourceKind.CROP)
        if not checked.ok:
            return checked
        crop = checked.value

        parsed = parse_model(CropUpdateRequest, payload)
        if not parsed.ok:
            return parsed
        sent = parsed.value.model_dump(exclude_unset=True)

        patch: Dict[str, Any] = {}
        for key, value in sent.items():
            if key == "farmerId":
                continue
            if value is None and key not in NULLABLE_FIELDS:
                continue
            if key in ("plantingDate", "harvestDate"):
                value = _as_datetime(value)
            elif isinstance(value, Enum):
                value = value.value
            patch[key] = value

        planting = patch.get("plantingDate", crop.get("plantingDate"))
        harvest = patch.get("harvestDate", crop.get("harvestDate"))
        if planting and harvest and harvest < planting:
            return Result.fail(ErrorKind.INVALID_INPUT, "Harvest date cannot be before planting date")

        new_owner = sent.get("farmerId")
        reassign = new_owner is not None and new_owner != str(crop.get("farmerId"))
        if reassign and not principal.is_admin:
            return Result.fail(ErrorKind.FORBIDDEN, "Farmers cannot reassign crop ownership")

        patch["updatedAt"] = utcnow()
        with self.store.transaction() as session:
            if reassign:
                owner = self._resolve_farmer(new_owner, session=session)
                if not owner.ok:
                    return owner
                patch["farmerId"] = owner.value
            self.store.crops.update_one({"_id": crop["_id"]}, {"$set": patch}, session=session)

        current_app.logger.info("crop %s updated by %s", crop["_id"], principal.id)
        return Result.success(self._with_farmers([self.store.crops.find_one({"_id": crop["_id"]})])[0])

    def delete_crop(self, principal: Principal, crop_id: str) -> Result[Dict[str, Any]]:
        checked = authorize(principal, self._find(crop_id), Action.DELETE, ResourceKind.CROP)
        if not checked.ok:
            return checked

        self.store.crops.delete_one({"_id": checked.value["_id"]})
        current_app.logger.info("crop %s deleted by %s", checked.value["_id"], principal.id)
        return Result.success({"id": str(checked.value["_id"])})

    # ------------------------------------------------------------
    # STATS SUMMARY (scoped)
    # ------------------------------------------------------------
    def stats_summary(self, principal: Principal) -> Result[Dict[str, Any]]:
        match = scope_filter(principal, {}, ResourceKind.CROP)
        crops = self.store.crops

        by_status = [
            {"status": row["_id"], "count": row["count"]}
            for row in crops.aggregate([
                {"$match": match},
                {"$group": {"_id": "$status", "count": {"$sum": 1}}},
                {"$sort": {"count": -1}},
            ])
        ]
        by_type = [
            {"type": row["_id"], "count": row["count"], "totalQuantity": row["totalQuantity"]}
            for row in crops.aggregate([
                {"$match": match},
                {"$group": {"_id": "$type", "count": {"$sum": 1}, "totalQuantity": {"$sum": "$quantity"}}},
                {"$sort": {"count": -1}},
            ])
        ]

        by_farmer: List[Dict[str, Any]] = []
        if principal.is_admin:
            rows = list(crops.aggregate([
                {"$group": {"_id": "$farmerId", "cropCount": {"$sum": 1}, "totalQuantity": {"$sum": "$quantity"}}},
                {"$sort": {"cropCount": -1}},
            ]))
            farmers = self._farmers_by_id(r["_id"] for r in rows)
            for r in rows:
                profile = (farmers.get(r["_id"]) or {}).get("profile") or {}
                by_farmer.append({
                    "farmerId": str(r["_id"]),
                    "farmerName": profile.get("fullName") or "Unknown Farmer",
                    "cropCount": r["cropCount"],
                    "totalQuantity": r["totalQuantity"],
                })

        recent = list(crops.find(match).sort([("createdAt", DESCENDING), ("_id", DESCENDING)]).limit(RECENT_LIMIT))

        return Result.success({
            "summary": {
                "totalCrops": sum(s["count"] for s in by_status),
                "totalQuantity": sum(t["totalQuantity"] for t in by_type),
            },
            "charts": {"byStatus": by_status, "byType": by_type, "byFarmer": by_farmer},
            "recentCrops": self._with_farmers(recent),
        })
