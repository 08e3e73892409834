import datetime as dt
from typing import Literal

from ninja import Field, Schema
from pydantic import field_validator

from assignments.models import Shift
from assignments.schemas import DateRangeSchema, truncate_to_day
from catalog.schemas import ProductBriefSchema, ProductSchema
from factory_floor.schemas import PaginationSchema
from roster.schemas import (
    ProductionLineBriefSchema, ProductionLineSchema, WorkerBriefSchema, WorkerContactSchema,
)

GroupBy = Literal["date", "worker", "product", "production_line"]


class PerformanceRecordSchema(Schema):
    id: int
    date: dt.date
    shift: Shift | None = None
    pieces_made: int
    time_taken: float
    error_rate: float
    worker: WorkerBriefSchema
    product: ProductBriefSchema
    production_line: ProductionLineBriefSchema
    created_at: dt.datetime
    updated_at: dt.datetime


class PerformanceRecordDetailSchema(PerformanceRecordSchema):
    worker: WorkerContactSchema
    product: ProductSchema
    production_line: ProductionLineSchema


class PerformanceRecordCreateSchema(Schema):
    worker_id: int = Field(..., gt=0)
    product_id: int = Field(..., gt=0)
    production_line_id: int = Field(..., gt=0)
    date: dt.date
    shift: Shift | None = None
    pieces_made: int = Field(..., ge=0)
    time_taken: float = Field(..., ge=0)
    error_rate: float = Field(..., ge=0, le=100)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return truncate_to_day(value)


class PerformanceRecordUpdateSchema(Schema):
    worker_id: int | None = Field(None, gt=0)
    product_id: int | None = Field(None, gt=0)
    production_line_id: int | None = Field(None, gt=0)
    date: dt.date | None = None
    shift: Shift | None = None
    pieces_made: int | None = Field(None, ge=0)
    time_taken: float | None = Field(None, ge=0)
    error_rate: float | None = Field(None, ge=0, le=100)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return truncate_to_day(value)


class PerformanceFilterSchema(Schema):
    page: int = Field(1, ge=1)
    limit: int = Field(100, ge=1, le=100)
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    worker_id: int | None = Field(None, gt=0)
    product_id: int | None = Field(None, gt=0)
    production_line_id: int | None = Field(None, gt=0)
    shift: Shift | None = None


class AnalyticsQuerySchema(Schema):
    start_date: str | None = None
    end_date: str | None = None
    worker_id: int | None = Field(None, gt=0)
    production_line_id: int | None = Field(None, gt=0)
    group_by: GroupBy = "date"


class PerformanceRecordListResponseSchema(Schema):
    success: bool = True
    performance_records: list[PerformanceRecordSchema]
    pagination: PaginationSchema


class PerformanceRecordDetailResponseSchema(Schema):
    success: bool = True
    performance_record: PerformanceRecordDetailSchema


class PerformanceRecordResponseSchema(Schema):
    success: bool = True
    message: str
    performance_record: PerformanceRecordSchema


class OverallMetricsSchema(Schema):
    total_pieces: int
    avg_error_rate: float
    avg_time_taken: float
    total_records: int


class GroupedMetricsSchema(Schema):
    """Metrics for one group; only the key matching ``group_by`` is set."""
    date: dt.date | None = None
    worker: WorkerBriefSchema | None = None
    product: ProductBriefSchema | None = None
    production_line: ProductionLineBriefSchema | None = None
    total_pieces: int
    avg_error_rate: float
    avg_time_taken: float
    count: int


class AnalyticsSchema(Schema):
    overall: OverallMetricsSchema
    grouped: list[GroupedMetricsSchema]
    group_by: GroupBy
    date_range: DateRangeSchema


class AnalyticsResponseSchema(Schema):
    success: bool = True
    analytics: AnalyticsSchema
