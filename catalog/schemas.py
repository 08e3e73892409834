import datetime as dt
from decimal import Decimal

from ninja import Field, Schema
from pydantic import field_validator

from roster.schemas import ProductionLineBriefSchema, WorkerBriefSchema


def _required_text(value, label):
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


class ProductBriefSchema(Schema):
    id: int
    name: str
    code: str
    category: str | None = None


class ProductSchema(ProductBriefSchema):
    description: str | None = None
    unit_price: float | None = None
    is_active: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class ProductPerformanceSchema(Schema):
    """One of a product's latest performance records."""
    id: int
    date: dt.date
    shift: str | None = None
    pieces_made: int
    time_taken: float
    error_rate: float
    worker: WorkerBriefSchema
    production_line: ProductionLineBriefSchema


class ProductDetailSchema(ProductSchema):
    recent_performance_records: list[ProductPerformanceSchema] = []


class ProductCreateSchema(Schema):
    name: str = Field(..., max_length=100)
    code: str = Field(..., max_length=50)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    unit_price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _required_text(value, "Name")

    @field_validator("code")
    @classmethod
    def check_code(cls, value: str) -> str:
        return _required_text(value, "Product code")


class ProductUpdateSchema(Schema):
    name: str | None = Field(None, max_length=100)
    code: str | None = Field(None, max_length=50)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    unit_price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        return _required_text(value, "Name")

    @field_validator("code")
    @classmethod
    def check_code(cls, value: str | None) -> str | None:
        return _required_text(value, "Product code")


class ProductListResponseSchema(Schema):
    success: bool = True
    products: list[ProductSchema]


class ProductDetailResponseSchema(Schema):
    success: bool = True
    product: ProductDetailSchema


class ProductResponseSchema(Schema):
    success: bool = True
    message: str
    product: ProductSchema
