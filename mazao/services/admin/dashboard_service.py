# mazao/services/admin/dashboard_service.py

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING

from mazao.models.admin.dashboard_models import (
    ActivityItem,
    DashboardStats,
    RegionBucket,
    SystemOverview,
)
from mazao.models.user_models import Role, public_user
from mazao.mongo import Store, utcnow

FARMERS = {"role": Role.FARMER.value}
HAS_LOCATION = {"profile.location": {"$nin": [None, ""]}}


# -----------------------------
# Small helpers
# -----------------------------
def month_windows(now: datetime) -> Tuple[datetime, datetime]:
    """(start of previous month, start of current month)"""
    this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    prev_month = (this_month - timedelta(days=1)).replace(day=1)
    return prev_month, this_month


def growth(current: int, previous: int) -> int:
    if previous == 0:
        return 100 if current > 0 else 0
    return round((current - previous) / previous * 100)


def _activity_time(dt_val: Optional[datetime]) -> str:
    if not dt_val:
        return ""
    return dt_val.strftime("%b %d, %Y, %I:%M %p")


class DashboardService:
    def __init__(self, store: Store):
        self.store = store

    def _yield(self, match: Dict[str, Any]) -> int:
        rows = list(self.store.crops.aggregate([
            {"$match": match},
            {"$group": {"_id": None, "total": {"$sum": "$quantity"}}},
        ]))
        return rows[0]["total"] if rows else 0

    def _farmer_regions(self) -> Dict[Any, str]:
        cur = self.store.users.find({**FARMERS, **HAS_LOCATION}, {"profile.location": 1})
        return {u["_id"]: u["profile"]["location"] for u in cur}

    # ---------------------------------------------------------
    # /dashboard/stats
    # ---------------------------------------------------------
    def stats(self, now: Optional[datetime] = None) -> DashboardStats:
        prev_start, this_start = month_windows(now or utcnow())
        this_window = {"createdAt": {"$gte": this_start}}
        prev_window = {"createdAt": {"$gte": prev_start, "$lt": this_start}}

        users, crops = self.store.users, self.store.crops
        return DashboardStats(
            totalFarmers=users.count_documents(FARMERS),
            totalCrops=crops.count_documents({}),
            totalYield=self._yield({}),
            activeRegions=len(set(self._farmer_regions().values())),
            farmersGrowth=growth(
                users.count_documents({**FARMERS, **this_window}),
                users.count_documents({**FARMERS, **prev_window}),
            ),
            cropsGrowth=growth(
                crops.count_documents(this_window),
                crops.count_documents(prev_window),
            ),
            yieldGrowth=growth(self._yield(this_window), self._yield(prev_window)),
        )

    # ---------------------------------------------------------
    # /dashboard/crops/distribution
    # ---------------------------------------------------------
    def crop_distribution(self) -> List[Dict[str, Any]]:
        total = self.store.crops.count_documents({})
        rows = self.store.crops.aggregate([
            {"$group": {"_id": "$type", "count": {"$sum": 1}, "totalQuantity": {"$sum": "$quantity"}}},
            {"$sort": {"count": -1}},
        ])
        return [
            {
                "type": r["_id"],
                "count": r["count"],
                "totalQuantity": r["totalQuantity"] or 0,
                "percentage": round(r["count"] / total * 100) if total else 0,
            }
            for r in rows
        ]

    # ---------------------------------------------------------
    # /dashboard/activity/recent
    # ---------------------------------------------------------
    def recent_activity(self, per_source: int = 10, limit: int = 15) -> List[Dict[str, Any]]:
        newest = [("createdAt", DESCENDING), ("_id", DESCENDING)]
        farmers = list(self.store.users.find(FARMERS, {"password": 0}).sort(newest).limit(per_source))
        crops = list(self.store.crops.find({}).sort(newest).limit(per_source))

        owners = {
            u["_id"]: u
            for u in self.store.users.find(
                {"_id": {"$in": list({c["farmerId"] for c in crops})}}, {"profile": 1}
            )
        } if crops else {}

        events: List[Tuple[datetime, ActivityItem]] = []
        for f in farmers:
            name = (f.get("profile") or {}).get("fullName")
            events.append((f.get("createdAt") or datetime.min, ActivityItem(
                id=f"farmer-{f['_id']}",
                type="farmer_registered",
                title="New Farmer Registered",
                description=f"{name or 'Unknown farmer'} joined the platform",
                timestamp=_activity_time(f.get("createdAt")),
                farmerName=name,
            )))

        for c in crops:
            name = ((owners.get(c["farmerId"]) or {}).get("profile") or {}).get("fullName")
            events.append((c.get("createdAt") or datetime.min, ActivityItem(
                id=f"crop-{c['_id']}",
                type="crop_added",
                title="New Crop Added",
                description=f"{name or 'Unknown farmer'} added {c.get('quantity', 0)}kg of {c.get('name', '')}",
                timestamp=_activity_time(c.get("createdAt")),
                farmerName=name,
                cropType=c.get("name"),
            )))

        events.sort(key=lambda e: e[0], reverse=True)
        return [asdict(item) for _, item in events[:limit]]

    # ---------------------------------------------------------
    # /dashboard/farmers/regions
    # ---------------------------------------------------------
    def farmers_by_region(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        regions = self._farmer_regions()

        buckets: Dict[str, RegionBucket] = {}
        for location in regions.values():
            buckets.setdefault(location, RegionBucket(region=location)).farmerCount += 1

        for row in self.store.crops.aggregate([
            {"$match": {"farmerId": {"$in": list(regions)}}},
            {"$group": {"_id": "$farmerId", "count": {"$sum": 1}}},
        ]):
            buckets[regions[row["_id"]]].cropCount += row["count"]

        ordered = sorted(buckets.values(), key=lambda b: (-b.farmerCount, b.region))
        if limit:
            ordered = ordered[:limit]
        return [asdict(b) for b in ordered]

    # ---------------------------------------------------------
    # /dashboard/overview
    # ---------------------------------------------------------
    def overview(self) -> SystemOverview:
        newest = self.store.users.find(FARMERS, {"password": 0}).sort(
            [("createdAt", DESCENDING), ("_id", DESCENDING)]
        ).limit(5)
        return SystemOverview(
            stats=self.stats(),
            cropDistribution=self.crop_distribution(),
            recentActivity=[public_user(u) for u in newest],
            regionDistribution=self.farmers_by_region(limit=8),
        )
