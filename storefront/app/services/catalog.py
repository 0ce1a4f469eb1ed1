from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..db.models import Product
from ..metrics import CATALOG_SEARCHES

logger = logging.getLogger(__name__)

DEFAULT_STOCK = 100


class ProductColor(str, Enum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    PURPLE = "purple"
    PINK = "pink"
    WHITE = "white"
    BLACK = "black"
    MULTICOLOR = "multicolor"


COLORS: tuple[str, ...] = tuple(color.value for color in ProductColor)


class ProductValidationError(ValueError):
    """Rejected product input, reported back to the admin."""


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _normalize_color(color: str | None) -> str | None:
    if color is None:
        return None
    normalized = color.strip().lower()
    if normalized not in COLORS:
        raise ProductValidationError(f"Color must be one of: {', '.join(COLORS)}")
    return normalized


def _validated_fields(fields: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    if "name" in fields:
        name = (fields["name"] or "").strip()
        if not name:
            raise ProductValidationError("Product name is required")
        cleaned["name"] = name
    if "description" in fields:
        cleaned["description"] = (fields["description"] or "").strip()
    if "price" in fields:
        price = fields["price"]
        if price is None or float(price) < 0:
            raise ProductValidationError("Valid price is required")
        cleaned["price"] = float(price)
    if "color" in fields and fields["color"] is not None:
        cleaned["color"] = _normalize_color(fields["color"])
    if "stock_count" in fields and fields["stock_count"] is not None:
        stock = int(fields["stock_count"])
        if stock < 0:
            raise ProductValidationError("Stock count cannot be negative")
        cleaned["stock_count"] = stock
    if "image_url" in fields and fields["image_url"] is not None:
        cleaned["image_url"] = fields["image_url"].strip()
    return cleaned


class CatalogService:
    """Product queries for the storefront and CRUD for the admin API."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def search(self, query: str | None = None, color: str | None = None) -> list[Product]:
        """Case-insensitive substring match on name or description, newest first.

        ``color`` of ``None``, ``""`` or ``"all"`` disables the color filter.
        """

        stmt = select(Product)
        filtered = False
        if color and color.lower() != "all":
            stmt = stmt.where(Product.color == color.lower())
            filtered = True
        term = (query or "").strip()
        if term:
            pattern = _like_pattern(term)
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern, escape="\\"),
                    Product.description.ilike(pattern, escape="\\"),
                )
            )
            filtered = True
        stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc())

        async with self._session_factory() as session:
            products = list((await session.scalars(stmt)).all())
        CATALOG_SEARCHES.labels(filtered=str(filtered).lower()).inc()
        logger.debug("catalog search", extra={"extra_fields": {"results": len(products)}})
        return products

    async def list_products(self) -> list[Product]:
        return await self.search()

    async def list_by_color(self, color: str) -> list[Product]:
        normalized = _normalize_color(color)
        async with self._session_factory() as session:
            result = await session.scalars(
                select(Product)
                .where(Product.color == normalized)
                .order_by(Product.created_at.desc(), Product.id.desc())
            )
            return list(result.all())

    async def get_product(self, product_id: int) -> Product | None:
        async with self._session_factory() as session:
            return await session.get(Product, product_id)

    async def related_products(self, product: Product, limit: int = 4) -> Sequence[Product]:
        async with self._session_factory() as session:
            result = await session.scalars(
                select(Product)
                .where(Product.color == product.color, Product.id != product.id)
                .order_by(Product.created_at.desc(), Product.id.desc())
                .limit(limit)
            )
            return list(result.all())

    async def create_product(
        self,
        *,
        name: str,
        price: float,
        color: str,
        description: str = "",
        stock_count: int | None = None,
        image_url: str = "",
    ) -> Product:
        fields = _validated_fields(
            {
                "name": name,
                "price": price,
                "color": color,
                "description": description,
                "stock_count": stock_count,
                "image_url": image_url,
            }
        )
        if "color" not in fields:
            raise ProductValidationError("Color is required")
        fields.setdefault("stock_count", DEFAULT_STOCK)
        async with self._session_factory() as session:
            product = Product(**fields)
            session.add(product)
            await session.commit()
            await session.refresh(product)
        logger.info("Product created", extra={"extra_fields": {"product_id": product.id}})
        return product

    async def update_product(self, product_id: int, **changes: Any) -> Product | None:
        fields = _validated_fields(changes)
        async with self._session_factory() as session:
            product = await session.get(Product, product_id)
            if product is None:
                return None
            for key, value in fields.items():
                setattr(product, key, value)
            await session.commit()
            await session.refresh(product)
        logger.info("Product updated", extra={"extra_fields": {"product_id": product_id}})
        return product

    async def delete_product(self, product_id: int) -> Product | None:
        async with self._session_factory() as session:
            product = await session.get(Product, product_id)
            if product is None:
                return None
            await session.delete(product)
            await session.commit()
        logger.info("Product deleted", extra={"extra_fields": {"product_id": product_id}})
        return product


__all__ = [
    "COLORS",
    "CatalogService",
    "ProductColor",
    "ProductValidationError",
]
