"""Evaluation schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.marketplace_service.models.enums import (
    EvaluationGrade,
    EvaluationStatus,
)


class EvaluationSubmitRequest(BaseModel):
    order_sn: str
    sku_id: int
    grade: EvaluationGrade = EvaluationGrade.GOOD
    service_score: Optional[int] = Field(None, ge=1, le=5)
    content: str = Field("", max_length=500)
    images: list[str] = Field(default_factory=list)


class EvaluationReplyRequest(BaseModel):
    reply: str = Field(..., min_length=1, max_length=500)
    reply_images: list[str] = Field(default_factory=list)


class EvaluationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    goods_id: int
    sku_id: int
    order_sn: str
    store_id: int
    grade: EvaluationGrade
    service_score: Optional[int] = None
    content: str
    images: list[str] = []
    reply: Optional[str] = None
    reply_images: list[str] = []
    status: EvaluationStatus
    created_at: datetime


class EvaluationListResponse(BaseModel):
    items: list[EvaluationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class EvaluationCountResponse(BaseModel):
    all: int
    good: int
    moderate: int
    worse: int
