"""
Product Service — Product catalogue API routes

/buscar, /precio and /contar are registered before /{product_id}.
"""
import logging
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from product_service.db.database import get_db
from product_service.models.product import Product
from product_service.schemas.product import (
    ProductCreateRequest,
    ProductDocument,
    ProductListDocument,
    ProductResource,
    ProductUpdateRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/productos", tags=["products"])


async def _get_or_404(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"Product not found with id {product_id}")
    return product


async def _name_taken(db: AsyncSession, name: str, exclude_id: int | None = None) -> bool:
    stmt = select(Product.id).where(Product.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


def _as_list(products) -> ProductListDocument:
    return ProductListDocument(data=[ProductResource.from_product(p) for p in products])


@router.post("", response_model=ProductDocument, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreateRequest, db: AsyncSession = Depends(get_db)):
    attrs = payload.data.attributes
    if await _name_taken(db, attrs.nombre):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=f"A product named '{attrs.nombre}' already exists")

    product = Product(name=attrs.nombre, price=attrs.precio, description=attrs.descripcion)
    db.add(product)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=f"A product named '{attrs.nombre}' already exists")
    await db.refresh(product)
    logger.info("Created product %s (%s)", product.id, product.name)
    return ProductDocument(data=ProductResource.from_product(product))


@router.get("", response_model=ProductListDocument)
async def list_products(db: AsyncSession = Depends(get_db)):
    """All products, newest first."""
    result = await db.execute(select(Product).order_by(Product.created_at.desc(), Product.id.desc()))
    return _as_list(result.scalars().all())


@router.get("/buscar", response_model=ProductListDocument)
async def search_products(nombre: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Product)
        .where(func.lower(Product.name).contains(nombre.lower(), autoescape=True))
        .order_by(Product.name)
    )
    return _as_list(result.scalars().all())


@router.get("/precio", response_model=ProductListDocument)
async def products_by_price(
    precio_min: Decimal = Query(..., alias="precioMin", ge=0),
    precio_max: Decimal = Query(..., alias="precioMax", ge=0),
    db: AsyncSession = Depends(get_db),
):
    if precio_min > precio_max:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Minimum price cannot be greater than maximum price")
    result = await db.execute(
        select(Product)
        .where(Product.price.between(precio_min, precio_max))
        .order_by(Product.price.asc(), Product.id.asc())
    )
    return _as_list(result.scalars().all())


@router.get("/contar", response_model=int)
async def count_products(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(func.count(Product.id)))
    return result.scalar_one()


@router.get("/{product_id}", response_model=ProductDocument)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await _get_or_404(db, product_id)
    return ProductDocument(data=ProductResource.from_product(product))


@router.get("/{product_id}/existe", response_model=bool)
async def product_exists(product_id: int, db: AsyncSession = Depends(get_db)):
    return await db.get(Product, product_id) is not None


@router.put("/{product_id}", response_model=ProductDocument)
async def update_product(product_id: int, payload: ProductUpdateRequest, db: AsyncSession = Depends(get_db)):
    """Partial update: only the attributes present in the body are changed."""
    product = await _get_or_404(db, product_id)
    attrs = payload.data.attributes

    if attrs.nombre is not None and attrs.nombre != product.name:
        if await _name_taken(db, attrs.nombre, exclude_id=product_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail=f"A product named '{attrs.nombre}' already exists")
        product.name = attrs.nombre
    if attrs.precio is not None:
        product.price = attrs.precio
    if attrs.descripcion is not None:
        product.description = attrs.descripcion

    await db.commit()
    await db.refresh(product)
    logger.info("Updated product %s", product_id)
    return ProductDocument(data=ProductResource.from_product(product))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await _get_or_404(db, product_id)
    await db.delete(product)
    await db.commit()
    logger.info("Deleted product %s", product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
