"""
Product Service — Pydantic schemas ({"data": {"type": "productos", "id", "attributes"}})
"""
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from product_service.models.product import Product


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductCreateAttributes(CamelModel):
    nombre: str = Field(..., min_length=1, max_length=255)
    precio: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    descripcion: str | None = Field(None, max_length=2000)


class ProductUpdateAttributes(CamelModel):
    nombre: str | None = Field(None, min_length=1, max_length=255)
    precio: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    descripcion: str | None = Field(None, max_length=2000)


class ProductCreateData(CamelModel):
    type: str | None = "productos"
    attributes: ProductCreateAttributes


class ProductUpdateData(CamelModel):
    type: str | None = "productos"
    attributes: ProductUpdateAttributes


class ProductCreateRequest(CamelModel):
    data: ProductCreateData


class ProductUpdateRequest(CamelModel):
    data: ProductUpdateData


class ProductAttributes(CamelModel):
    nombre: str
    precio: Decimal
    descripcion: str | None = None
    fecha_creacion: datetime
    fecha_actualizacion: datetime


class ProductResource(CamelModel):
    type: str = "productos"
    id: str
    attributes: ProductAttributes

    @classmethod
    def from_product(cls, product: Product) -> "ProductResource":
        return cls(
            id=str(product.id),
            attributes=ProductAttributes(
                nombre=product.name,
                precio=product.price,
                descripcion=product.description,
                fecha_creacion=product.created_at,
                fecha_actualizacion=product.updated_at,
            ),
        )


class ProductDocument(CamelModel):
    data: ProductResource


class ProductListDocument(CamelModel):
    data: list[ProductResource]
