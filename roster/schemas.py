import datetime as dt
import re

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from ninja import Field, Schema
from pydantic import field_validator

from factory_floor.schemas import PaginationSchema

CIN_PATTERN = re.compile(r"^\d{8}$")


def _clean_cin(value):
    if value is None:
        return value
    value = value.strip()
    if not CIN_PATTERN.match(value):
        raise ValueError("CIN must be exactly 8 digits")
    return value


def _clean_email(value):
    """Trim and lower-case; empty strings pass through so updates can clear the field."""
    if value is None:
        return value
    value = value.strip().lower()
    if not value:
        return value
    try:
        validate_email(value)
    except DjangoValidationError:
        raise ValueError("Invalid email format")
    return value


# Workers

class WorkerBriefSchema(Schema):
    """Public worker profile embedded in assignments and conflict reports."""
    id: int
    name: str
    cin: str
    role: str | None = None


class WorkerContactSchema(WorkerBriefSchema):
    email: str | None = None
    phone: str | None = None


class WorkerSchema(WorkerContactSchema):
    created_at: dt.datetime
    updated_at: dt.datetime


class WorkerListItemSchema(WorkerSchema):
    assignment_count: int = 0


class ProductionLineBriefSchema(Schema):
    id: int
    name: str
    location: str | None = None
    is_active: bool


class WorkerAssignmentSchema(Schema):
    """One row of a worker's recent schedule."""
    id: int
    date: dt.date
    shift: str
    position: str
    production_line: ProductionLineBriefSchema


class WorkerDetailSchema(WorkerListItemSchema):
    recent_assignments: list[WorkerAssignmentSchema] = []


class WorkerCreateSchema(Schema):
    name: str = Field(..., min_length=1, max_length=100)
    cin: str
    email: str | None = None
    phone: str | None = Field(None, max_length=20)
    role: str | None = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("cin")
    @classmethod
    def check_cin(cls, value: str) -> str:
        return _clean_cin(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        return _clean_email(value)


class WorkerUpdateSchema(Schema):
    name: str | None = Field(None, min_length=1, max_length=100)
    cin: str | None = None
    email: str | None = None
    phone: str | None = Field(None, max_length=20)
    role: str | None = Field(None, max_length=100)

    @field_validator("cin")
    @classmethod
    def check_cin(cls, value: str | None) -> str | None:
        return _clean_cin(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        return _clean_email(value)


class WorkerListQuerySchema(Schema):
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)


class WorkerListResponseSchema(Schema):
    success: bool = True
    workers: list[WorkerListItemSchema]
    pagination: PaginationSchema


class WorkerDetailResponseSchema(Schema):
    success: bool = True
    worker: WorkerDetailSchema


class WorkerResponseSchema(Schema):
    success: bool = True
    message: str
    worker: WorkerSchema


class ImportedRowSchema(Schema):
    row: int
    worker: WorkerSchema


class RejectedRowSchema(Schema):
    row: int
    data: dict[str, str | None]
    error: str


class ImportResultsSchema(Schema):
    success: list[ImportedRowSchema]
    errors: list[RejectedRowSchema]
    total: int


class WorkerImportResponseSchema(Schema):
    success: bool = True
    message: str
    results: ImportResultsSchema


# Production lines

class ProductionLineSchema(ProductionLineBriefSchema):
    description: str | None = None
    capacity: int | None = None
    target_output: int | None = None
    created_at: dt.datetime
    updated_at: dt.datetime


class ProductionLineListItemSchema(ProductionLineSchema):
    current_assignments: int = 0


class LineAssignmentSchema(Schema):
    id: int
    date: dt.date
    shift: str
    position: str
    worker: WorkerBriefSchema


class ProductionLineDetailSchema(ProductionLineListItemSchema):
    recent_assignments: list[LineAssignmentSchema] = []


class ProductionLineCreateSchema(Schema):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    location: str | None = Field(None, max_length=200)
    capacity: int | None = Field(None, gt=0)
    target_output: int | None = Field(None, gt=0)


class ProductionLineUpdateSchema(Schema):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    location: str | None = Field(None, max_length=200)
    capacity: int | None = Field(None, gt=0)
    target_output: int | None = Field(None, gt=0)
    is_active: bool | None = None


class ProductionLineListResponseSchema(Schema):
    success: bool = True
    production_lines: list[ProductionLineListItemSchema]


class ProductionLineDetailResponseSchema(Schema):
    success: bool = True
    production_line: ProductionLineDetailSchema


class ProductionLineResponseSchema(Schema):
    success: bool = True
    message: str
    production_line: ProductionLineSchema
