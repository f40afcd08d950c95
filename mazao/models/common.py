# mazao/models/common.py
from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from mazao.errors import ErrorKind, Result

M = TypeVar("M", bound=BaseModel)

MAX_PAGE_SIZE = 1000

# BSON integers are signed 64-bit
MAX_INT64 = 2**63 - 1
# keeps (page - 1) * limit inside int64 for cursor.skip()
MAX_PAGE = MAX_INT64 // MAX_PAGE_SIZE


class ListQuery(BaseModel):
    page: int = Field(1, ge=1, le=MAX_PAGE)
    limit: int = Field(10, ge=1, le=MAX_PAGE_SIZE)
    search: Optional[str] = None

    @field_validator("search", mode="before")
    @classmethod
    def blank_search(cls, v):
        v = (v or "").strip()
        return v or None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(x) for x in err.get("loc", ()) if x != "__root__")
    msg = err.get("msg", "Invalid input")
    # "Value error, ..." is pydantic's prefix for validator-raised ValueErrors
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{loc}: {msg}" if loc else msg


def parse_model(model_cls: Type[M], data: Optional[Mapping[str, Any]]) -> Result[M]:
    """Validate a request body / query mapping into `model_cls`."""
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        return Result.fail(ErrorKind.INVALID_INPUT, "Request body must be a JSON object")
    # werkzeug MultiDict: keep the first value per key
    data = data.to_dict() if hasattr(data, "to_dict") else dict(data)
    try:
        return Result.success(model_cls.model_validate(data))
    except ValidationError as e:
        return Result.fail(ErrorKind.INVALID_INPUT, _first_error(e))


def pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
        "limit": limit,
    }


def paged(items, query: ListQuery, total: int) -> Dict[str, Any]:
    return {"items": items, "pagination": pagination(query.page, query.limit, total)}
