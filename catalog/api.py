from django.http import HttpRequest
from ninja import Router

from factory_floor.exceptions import parse_id
from factory_floor.schemas import MessageResponseSchema
from .schemas import (
    ProductCreateSchema, ProductDetailResponseSchema, ProductListResponseSchema,
    ProductResponseSchema, ProductUpdateSchema,
)
from .services import ProductService

router = Router()


@router.get("/", response=ProductListResponseSchema)
def list_products(request: HttpRequest):
    return {"success": True, "products": list(ProductService.get_products())}


@router.post("/", response={201: ProductResponseSchema})
def create_product(request: HttpRequest, payload: ProductCreateSchema):
    product = ProductService.create_product(payload.model_dump())
    return 201, {"success": True, "message": "Product created", "product": product}


@router.get("/{product_id}", response=ProductDetailResponseSchema)
def get_product(request: HttpRequest, product_id: str):
    """One product with its 20 most recent performance records."""
    product = ProductService.get_product(parse_id(product_id, "product"))
    return {"success": True, "product": product}


@router.put("/{product_id}", response=ProductResponseSchema)
def update_product(request: HttpRequest, product_id: str, payload: ProductUpdateSchema):
    product = ProductService.update_product(
        parse_id(product_id, "product"), payload.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Product updated", "product": product}


@router.patch("/{product_id}/toggle-status", response=ProductResponseSchema)
def toggle_product_status(request: HttpRequest, product_id: str):
    product = ProductService.toggle_product(parse_id(product_id, "product"))
    state = "active" if product.is_active else "inactive"
    return {"success": True, "message": f"Product is now {state}", "product": product}


@router.delete("/{product_id}", response=MessageResponseSchema)
def delete_product(request: HttpRequest, product_id: str):
    ProductService.delete_product(parse_id(product_id, "product"))
    return {"success": True, "message": "Product deleted"}
