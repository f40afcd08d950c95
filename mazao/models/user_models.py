# mazao/models/user_models.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from mazao.models.common import ListQuery
from mazao.mongo import to_iso

_PHONE_RE = re.compile(r"^(\+254|0)[1-9]\d{8}$")


class Role(str, Enum):
    ADMIN = "ADMIN"
    FARMER = "FARMER"


@dataclass(frozen=True)
class Principal:
    """The acting account attached to a request. Never carries the hash."""

    id: str
    email: str
    role: Role
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Principal":
        return cls(
            id=str(doc["_id"]),
            email=doc.get("email", ""),
            role=Role(doc.get("role", Role.FARMER.value)),
            created_at=doc.get("createdAt"),
        )


# -------------------------------------------------------------------
# Validators shared by several payloads
# -------------------------------------------------------------------
def _loose_email(v: str) -> str:
    v = (v or "").strip().lower()
    if "@" not in v or " " in v:
        raise ValueError("invalid email format (expected something like user@host)")
    return v


def _contact(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    if not _PHONE_RE.match(re.sub(r"\s", "", v)):
        raise ValueError("Please provide a valid phone number")
    return v.strip()


def _required_name(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("Full name is required")
    return v


# -------------------------------------------------------------------
# Auth payloads
# -------------------------------------------------------------------
class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    check_email = field_validator("email")(_loose_email)


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=6, max_length=72)
    fullName: str
    location: Optional[str] = None
    contactInfo: Optional[str] = None

    check_email = field_validator("email")(_loose_email)
    check_name = field_validator("fullName")(_required_name)
    check_contact = field_validator("contactInfo")(_contact)


# admin-side farmer creation takes the same shape as self-signup
class FarmerCreateRequest(RegisterRequest):
    avatar: Optional[str] = None


# -------------------------------------------------------------------
# Update payloads
# -------------------------------------------------------------------
class ProfileUpdateRequest(BaseModel):
    fullName: str
    location: Optional[str] = None
    contactInfo: Optional[str] = None
    avatar: Optional[str] = None

    check_name = field_validator("fullName")(_required_name)
    check_contact = field_validator("contactInfo")(_contact)


class UserUpdateRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    role: Optional[Role] = None
    fullName: Optional[str] = None
    location: Optional[str] = None
    contactInfo: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _loose_email(v)

    @field_validator("fullName")
    @classmethod
    def check_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _required_name(v)

    check_contact = field_validator("contactInfo")(_contact)

    @field_validator("password", mode="before")
    @classmethod
    def blank_password(cls, v):
        # edit forms post an empty password when it is left unchanged
        return None if v == "" else v


class UserListQuery(ListQuery):
    role: Optional[Role] = None

    @field_validator("role", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v


# -------------------------------------------------------------------
# Response shaping: built field by field so the hash can never leak
# -------------------------------------------------------------------
def public_profile(profile: Optional[Dict[str, Any]], user_id) -> Optional[Dict[str, Any]]:
    if not profile:
        return None
    return {
        "id": str(profile.get("id", "")),
        "userId": str(user_id),
        "fullName": profile.get("fullName", ""),
        "location": profile.get("location"),
        "contactInfo": profile.get("contactInfo"),
        "avatar": profile.get("avatar"),
    }


def public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "email": doc.get("email", ""),
        "role": doc.get("role", ""),
        "createdAt": to_iso(doc.get("createdAt")),
        "updatedAt": to_iso(doc.get("updatedAt")),
        "profile": public_profile(doc.get("profile"), doc["_id"]),
    }


def farmer_summary(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return None
    profile = doc.get("profile") or {}
    return {
        "id": str(doc["_id"]),
        "email": doc.get("email", ""),
        "profile": {
            "fullName": profile.get("fullName"),
            "location": profile.get("location"),
        },
    }
