from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AgentRequest(BaseModel):
    message: str = Field(default="", max_length=4000)


class ProductMatch(BaseModel):
    id: str
    name: str
    price: float
    color: str


class AgentResponse(BaseModel):
    reply: str
    action: str | None = None
    product_id: str | None = None
    top_matches: list[ProductMatch] = Field(default_factory=list)


class HistoryItem(BaseModel):
    role: str
    content: str
    timestamp: datetime


class HistoryResponse(BaseModel):
    messages: list[HistoryItem]
