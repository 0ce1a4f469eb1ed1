from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ProductModel(BaseModel):
    id: int
    name: str
    description: str
    price: float
    image_url: str
    color: str
    stock_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field(return_type=bool)
    def in_stock(self) -> bool:
        return self.stock_count > 0


class SearchResponse(BaseModel):
    query: str
    color: str
    count: int
    items: list[ProductModel]


class ProductDetail(BaseModel):
    product: ProductModel
    related: list[ProductModel]


class ProductCreate(BaseModel):
    name: str = Field(..., max_length=200)
    price: float
    color: str
    description: str = ""
    stock_count: int | None = None
    image_url: str = ""


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    price: float | None = None
    color: str | None = None
    description: str | None = None
    stock_count: int | None = None
    image_url: str | None = None
