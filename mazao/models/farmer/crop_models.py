# mazao/models/farmer/crop_models.py
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from mazao.models.common import MAX_INT64, ListQuery
from mazao.mongo import to_iso


class CropType(str, Enum):
    CEREAL = "CEREAL"
    LEGUME = "LEGUME"
    VEGETABLE = "VEGETABLE"
    FRUIT = "FRUIT"
    ROOT_TUBER = "ROOT_TUBER"
    OTHER = "OTHER"


class CropStatus(str, Enum):
    PLANTED = "PLANTED"
    HARVESTED = "HARVESTED"
    SOLD = "SOLD"


def _date_part(v):
    # accept "2024-01-01" as well as full ISO timestamps from date pickers
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
        if "T" in v:
            return v.split("T", 1)[0]
    return v


class CropFields(BaseModel):
    name: Optional[str] = None
    type: Optional[CropType] = None
    quantity: Optional[int] = Field(None, gt=0, le=MAX_INT64, strict=True)
    plantingDate: Optional[date] = None
    harvestDate: Optional[date] = None
    description: Optional[str] = None
    status: Optional[CropStatus] = None
    farmerId: Optional[str] = None

    @field_validator("plantingDate", "harvestDate", mode="before")
    @classmethod
    def date_part(cls, v):
        return _date_part(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Crop name is required")
        return v

    @field_validator("farmerId", mode="before")
    @classmethod
    def blank_farmer(cls, v):
        return None if v == "" else v


class CropCreateRequest(CropFields):
    name: str
    type: CropType
    quantity: int = Field(..., gt=0, le=MAX_INT64, strict=True)
    plantingDate: date
    status: CropStatus = CropStatus.PLANTED

    @model_validator(mode="after")
    def harvest_after_planting(self):
        if self.harvestDate and self.harvestDate < self.plantingDate:
            raise ValueError("Harvest date cannot be before planting date")
        return self


class CropUpdateRequest(CropFields):
    """Partial update; the merged record is re-checked by the service."""


class CropListQuery(ListQuery):
    type: Optional[CropType] = None
    status: Optional[CropStatus] = None
    farmerId: Optional[str] = None

    @field_validator("type", "status", "farmerId", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


def public_crop(doc: Dict[str, Any], farmer: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    data = {
        "id": str(doc["_id"]),
        "name": doc.get("name", ""),
        "type": doc.get("type"),
        "quantity": doc.get("quantity", 0),
        "plantingDate": to_iso(doc.get("plantingDate")),
        "harvestDate": to_iso(doc.get("harvestDate")),
        "description": doc.get("description"),
        "status": doc.get("status"),
        "farmerId": str(doc.get("farmerId", "")),
        "createdAt": to_iso(doc.get("createdAt")),
        "updatedAt": to_iso(doc.get("updatedAt")),
    }
    if farmer is not None:
        data["farmer"] = farmer
    return data
