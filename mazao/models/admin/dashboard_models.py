# mazao/models/admin/dashboard_models.py

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional


@dataclass
class DashboardStats:
    totalFarmers: int = 0
    totalCrops: int = 0
    totalYield: int = 0
    activeRegions: int = 0
    farmersGrowth: int = 0
    cropsGrowth: int = 0
    yieldGrowth: int = 0


@dataclass
class ActivityItem:
    id: str
    type: str
    title: str
    description: str
    timestamp: str
    farmerName: Optional[str] = None
    cropType: Optional[str] = None


@dataclass
class RegionBucket:
    region: str
    farmerCount: int = 0
    cropCount: int = 0


@dataclass
class SystemOverview:
    stats: Optional[DashboardStats] = None
    cropDistribution: List[Dict[str, Any]] = field(default_factory=list)
    recentActivity: List[Dict[str, Any]] = field(default_factory=list)
    regionDistribution: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
