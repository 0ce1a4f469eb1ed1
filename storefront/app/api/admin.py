from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..core.security import require_admin_token
from ..schemas.catalog import ProductCreate, ProductModel, ProductUpdate
from ..services.catalog import CatalogService, ProductValidationError
from ..services.ratelimit import RateLimiter
from .deps import client_key, enforce_rate_limit, get_catalog_service, get_rate_limiter

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_token)],
)


def _enforce_limit(request: Request, limiter: RateLimiter) -> None:
    enforce_rate_limit(limiter, f"admin:{client_key(request)}", limit=60, window_seconds=60)


@router.get("/products", response_model=list[ProductModel])
async def list_products(
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[ProductModel]:
    return [ProductModel.model_validate(p) for p in await catalog.list_products()]


@router.post("/products", response_model=ProductModel, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: Request,
    payload: ProductCreate,
    catalog: CatalogService = Depends(get_catalog_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> ProductModel:
    _enforce_limit(request, limiter)
    try:
        product = await catalog.create_product(**payload.model_dump())
    except ProductValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ProductModel.model_validate(product)


@router.put("/products/{product_id}", response_model=ProductModel)
async def update_product(
    request: Request,
    product_id: int,
    payload: ProductUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> ProductModel:
    _enforce_limit(request, limiter)
    try:
        product = await catalog.update_product(product_id, **payload.model_dump(exclude_unset=True))
    except ProductValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return ProductModel.model_validate(product)


@router.delete("/products/{product_id}")
async def delete_product(
    request: Request,
    product_id: int,
    catalog: CatalogService = Depends(get_catalog_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> dict[str, object]:
    _enforce_limit(request, limiter)
    product = await catalog.delete_product(product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return {"ok": True, "id": product_id}
