from __future__ import annotations
from typing import Any, Optional
import math

from fastapi import Query
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from .constants import ValidationConstants


def success_response(data: Any = None, message: Optional[str] = None, **extra) -> dict:
    """Envelope padrão de sucesso: {"success": true, "data": ..., ...}"""
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonable_encoder(body)


class PageParams(BaseModel):
    page: int = 1
    limit: int = ValidationConstants.DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(ValidationConstants.DEFAULT_PAGE_SIZE, ge=1, le=ValidationConstants.MAX_PAGE_SIZE),
) -> PageParams:
    return PageParams(page=page, limit=limit)


def paginate(query, params: PageParams):
    """Aplica offset/limit numa query SQLAlchemy e devolve (itens, meta)."""
    total = query.order_by(None).count()
    items = query.offset(params.offset).limit(params.limit).all()
    meta = {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "total_pages": math.ceil(total / params.limit) if total else 0,
    }
    return items, meta
